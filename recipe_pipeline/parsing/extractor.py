"""Recover a single JSON object from free-form model output.

Models routinely break "JSON only" instructions: they add a preamble, trailing
commentary, markdown fences, or stop mid-object. Extraction strips fences and
then tries an ordered tuple of strategies, cheapest and strictest first:

1. parse_balanced_object - first ``{`` bracket-matched to its closing ``}``
2. parse_whole_text      - the whole cleaned text
3. parse_greedy_span     - first ``{`` to last ``}``

Each strategy is a pure ``str -> dict`` function that raises ``ValueError``
when it cannot produce a JSON object, so every strategy is testable alone.
"""

import json
import re
from typing import Any, Callable

from recipe_pipeline.models.errors import UnparseableOutputError
from recipe_pipeline.utils.logger import logger
from recipe_pipeline.utils.safe_execute import safe_execute_sync


# Opening or closing fence, with or without a language tag (```json, ```JSON, ```)
_FENCE_RE = re.compile(r"```[A-Za-z0-9_+-]*[ \t]*")

ExtractionStrategy = Callable[[str], dict[str, Any]]


def strip_code_fences(text: str) -> str:
    """Remove triple-backtick fence markers, keeping the fenced content."""
    return _FENCE_RE.sub("", text).strip()


def _loads_object(candidate: str) -> dict[str, Any]:
    parsed = json.loads(candidate)
    if not isinstance(parsed, dict):
        raise ValueError(f"expected a JSON object, got {type(parsed).__name__}")
    return parsed


def find_balanced_object(text: str) -> str:
    """Return the span from the first ``{`` to its matching ``}``.

    Braces inside JSON string literals are ignored, so values such as
    "Mix {optional} herbs" do not break the match.

    Raises:
        ValueError: No ``{`` in the text, or the object is never closed (truncated output).
    """
    start = text.find("{")
    if start == -1:
        raise ValueError("no '{' in text")

    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue

        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return text[start : index + 1]

    raise ValueError("unbalanced braces (output truncated?)")


def parse_balanced_object(text: str) -> dict[str, Any]:
    return _loads_object(find_balanced_object(text))


def parse_whole_text(text: str) -> dict[str, Any]:
    return _loads_object(text)


def parse_greedy_span(text: str) -> dict[str, Any]:
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        raise ValueError("no '{' ... '}' span in text")
    return _loads_object(text[start : end + 1])


EXTRACTION_STRATEGIES: tuple[ExtractionStrategy, ...] = (
    parse_balanced_object,
    parse_whole_text,
    parse_greedy_span,
)


def extract_json_object(text: str) -> dict[str, Any]:
    """Recover the JSON object embedded in raw model output.

    Args:
        text: Accumulated provider output (may be fenced or prose-wrapped).

    Returns:
        The first JSON object any strategy recovers.

    Raises:
        UnparseableOutputError: Every strategy failed.
    """
    cleaned = strip_code_fences(text or "")
    if not cleaned:
        raise UnparseableOutputError("Model output is empty after removing code fences")

    for strategy in EXTRACTION_STRATEGIES:
        parsed = safe_execute_sync(
            lambda: strategy(cleaned),
            f"JSON extraction strategy {strategy.__name__} failed",
            log_level="debug",
            default_return=None,
        )
        if parsed is not None:
            logger.debug(f"Extracted JSON object with {strategy.__name__}")
            return parsed

    preview = cleaned[:120].replace("\n", " ")
    raise UnparseableOutputError(f"Could not extract valid JSON from model output ({len(cleaned)} chars): {preview!r}")

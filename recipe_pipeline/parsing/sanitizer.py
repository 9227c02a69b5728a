"""Sanitize and validate recipe candidates recovered from model output.

Sanitizing only touches ingredient ``amount`` values, which models often
write as text ("1/2", "1-2", "2 cups"). Everything else is validated as-is
against ``RecipeDraft``. Entries that fail validation are dropped and logged;
the batch fails only when no entry survives.
"""

import math
import re
from typing import Any, List

from pydantic import ValidationError

from recipe_pipeline.models.errors import CandidateValidationError, NoValidRecipesError, UnparseableOutputError
from recipe_pipeline.models.models import ParsedRecipeCandidate, RecipeDraft, RejectedCandidate
from recipe_pipeline.utils.logger import logger


DEFAULT_AMOUNT = 1.0

_NUMBER_RE = re.compile(r"\d+(?:\.\d+)?|\.\d+")
_MIXED_FRACTION_RE = re.compile(r"(?<![\d./])(\d+)\s+(\d+(?:\.\d+)?)\s*/\s*(\d+(?:\.\d+)?)")
_FRACTION_RE = re.compile(r"(?<![\d./])(\d+(?:\.\d+)?|\.\d+)\s*/\s*(\d+(?:\.\d+)?)")

_VULGAR_FRACTIONS = {
    "½": "1/2", "⅓": "1/3", "⅔": "2/3", "¼": "1/4", "¾": "3/4",
    "⅕": "1/5", "⅛": "1/8", "⅜": "3/8", "⅝": "5/8", "⅞": "7/8",
}


def _leading_number(text: str) -> float | None:
    """First numeric run in the text, or None."""
    match = _NUMBER_RE.search(text)
    return float(match.group()) if match else None


def _parse_fraction(text: str) -> float | None:
    """Parse the first "a/b" or "n a/b" in the text ("about 1/2" -> 0.5); None when there is no usable fraction."""
    mixed = _MIXED_FRACTION_RE.search(text)
    if mixed:
        whole, numerator, denominator = (float(g) for g in mixed.groups())
        return whole + numerator / denominator if denominator else None
    simple = _FRACTION_RE.search(text)
    if simple:
        numerator, denominator = (float(g) for g in simple.groups())
        return numerator / denominator if denominator else None
    return None


def _replace_vulgar_fractions(text: str) -> str:
    # "1½" -> "1 1/2", "½" -> "1/2"
    for symbol, fraction in _VULGAR_FRACTIONS.items():
        if symbol in text:
            text = re.sub(rf"(\d)\s*{symbol}", rf"\1 {fraction}", text).replace(symbol, fraction)
    return text


def sanitize_amount(value: Any) -> float:
    """Coerce an ingredient amount into a finite non-negative number.

    - numbers are kept (non-finite or negative ones fall back to 1)
    - "a/b" and "n a/b" become the quotient
    - ranges "a-b" use the lower bound
    - otherwise the leading numeric text is used ("2 cups" -> 2)
    - anything without digits becomes 1
    """
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        number = float(value)
    else:
        text = _replace_vulgar_fractions(str(value).strip()) if value is not None else ""
        number = None
        if "/" in text:
            number = _parse_fraction(text)
        if number is None and "-" in text:
            number = _leading_number(text.split("-", 1)[0])
        if number is None:
            number = _leading_number(text)
        if number is None:
            number = DEFAULT_AMOUNT

    if not math.isfinite(number) or number < 0:
        return DEFAULT_AMOUNT
    return number


def sanitize_candidate(candidate: ParsedRecipeCandidate) -> ParsedRecipeCandidate:
    """Return a copy of the candidate with every ingredient amount sanitized.

    Other fields are left untouched; non-object ingredient entries are passed
    through for validation to reject.
    """
    sanitized = dict(candidate)
    ingredients = candidate.get("ingredients")
    if isinstance(ingredients, list):
        cleaned = []
        for ingredient in ingredients:
            if isinstance(ingredient, dict):
                # A missing amount ("salt, to taste") gets the default like any non-numeric one
                ingredient = {**ingredient, "amount": sanitize_amount(ingredient.get("amount"))}
            cleaned.append(ingredient)
        sanitized["ingredients"] = cleaned
    return sanitized


def validate_candidate(candidate: Any) -> RecipeDraft:
    """Map an untyped candidate onto the recipe schema.

    Raises:
        CandidateValidationError: With one reason per violated rule.
    """
    if not isinstance(candidate, dict):
        raise CandidateValidationError([f"expected an object, got {type(candidate).__name__}"])
    try:
        return RecipeDraft.model_validate(candidate)
    except ValidationError as e:
        reasons = [f"{'.'.join(str(part) for part in err['loc']) or 'recipe'}: {err['msg']}" for err in e.errors()]
        raise CandidateValidationError(reasons) from e


def parse_recipe_entries(parsed: dict[str, Any]) -> List[Any]:
    """Return the ``recipes`` array of the parsed output.

    Raises:
        UnparseableOutputError: ``recipes`` missing or not an array (fails the whole attempt).
    """
    recipes = parsed.get("recipes")
    if not isinstance(recipes, list):
        raise UnparseableOutputError("Invalid recipe format: missing recipes array")
    return recipes


def sanitize_and_validate(parsed: dict[str, Any]) -> tuple[List[RecipeDraft], List[RejectedCandidate]]:
    """Sanitize and validate every candidate independently.

    Returns:
        (valid drafts in model order, rejected candidates)

    Raises:
        UnparseableOutputError: ``recipes`` missing or not an array.
        NoValidRecipesError: No candidate survived (including an empty array).
    """
    entries = parse_recipe_entries(parsed)

    drafts: List[RecipeDraft] = []
    rejected: List[RejectedCandidate] = []
    for index, entry in enumerate(entries):
        candidate = sanitize_candidate(entry) if isinstance(entry, dict) else entry
        try:
            drafts.append(validate_candidate(candidate))
        except CandidateValidationError as e:
            title = entry.get("title") if isinstance(entry, dict) else None
            title = title if isinstance(title, str) else None
            logger.warning(f"Invalid recipe filtered out: {title or 'Unknown'} ({e})")
            rejected.append(RejectedCandidate(index=index, title=title, reasons=e.reasons))

    if not drafts:
        raise NoValidRecipesError(
            f"No valid recipes generated ({len(entries)} candidates, all rejected)",
            rejected=rejected,
        )

    if rejected:
        logger.info(f"Kept {len(drafts)} of {len(entries)} recipes ({len(rejected)} filtered)")
    return drafts, rejected

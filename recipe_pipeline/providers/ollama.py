"""Streaming transport for a locally hosted Ollama server.

Ollama's ``/api/generate`` with ``stream: true`` answers with newline-delimited
JSON objects shaped ``{model, created_at, response, done}``. The body is read
incrementally so progress callbacks fire while the model is still generating.
"""

import json
from typing import Any, Optional

import httpx

from recipe_pipeline.models.errors import EmptyResponseError
from recipe_pipeline.models.models import ProviderKind
from recipe_pipeline.providers.base import (
    ProgressCallback,
    notify_progress,
    transport_error_from_exception,
    transport_error_from_status,
)
from recipe_pipeline.utils.config import Config, config
from recipe_pipeline.utils.logger import logger
from recipe_pipeline.utils.safe_execute import safe_execute_sync


def parse_stream_line(line: str) -> Optional[dict[str, Any]]:
    """Decode one NDJSON line of the stream.

    Returns None for blank lines and for lines that are not JSON objects;
    a bad line is skipped, it never aborts the whole call.
    """
    line = line.strip()
    if not line:
        return None

    chunk = safe_execute_sync(
        lambda: json.loads(line),
        f"Skipping undecodable stream line ({line[:80]!r})",
        log_level="warning",
        default_return=None,
    )
    if not isinstance(chunk, dict):
        if chunk is not None:
            logger.warning(f"Skipping non-object stream line: {line[:80]!r}")
        return None
    return chunk


class OllamaTransport:
    """Talk to Ollama's streaming generate endpoint."""

    kind = ProviderKind.OLLAMA

    def __init__(
        self,
        base_url: str,
        model: str,
        temperature: float = 0.7,
        timeout: float = 120.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        """Initialize transport.

        Args:
            base_url: Ollama server URL, e.g. http://localhost:11434.
            model: Model tag to run (e.g. "gemma3:1b").
            temperature: Sampling temperature.
            timeout: Per-request timeout in seconds.
            http_client: Optional shared client (connection pooling only). When
                omitted, each call opens and closes its own client.
        """
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.temperature = temperature
        self.timeout = timeout
        self._http_client = http_client

    @classmethod
    def from_config(cls, cfg: Config = config, http_client: Optional[httpx.AsyncClient] = None) -> "OllamaTransport":
        return cls(
            base_url=cfg.OLLAMA_BASE_URL,
            model=cfg.OLLAMA_MODEL,
            temperature=cfg.OLLAMA_TEMPERATURE,
            timeout=cfg.REQUEST_TIMEOUT_SECONDS,
            http_client=http_client,
        )

    async def generate(self, prompt: str, on_progress: Optional[ProgressCallback] = None) -> str:
        """Stream a completion and return the accumulated text.

        Args:
            prompt: Full instruction string.
            on_progress: Called with every non-empty text fragment as it arrives.

        Returns:
            The concatenated ``response`` fragments.

        Raises:
            TransportError: Non-2xx status, network failure or timeout.
            EmptyResponseError: The stream produced no text.
        """
        payload = {
            "model": self.model,
            "prompt": prompt,
            "temperature": self.temperature,
            "stream": True,
        }
        url = f"{self.base_url}/api/generate"
        logger.debug(f"POST {url} (model={self.model}, prompt={len(prompt)} chars)")

        try:
            if self._http_client is not None:
                return await self._stream(self._http_client, url, payload, on_progress)
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                return await self._stream(client, url, payload, on_progress)
        except httpx.HTTPError as e:
            raise transport_error_from_exception(self.kind, e) from e

    async def _stream(
        self,
        client: httpx.AsyncClient,
        url: str,
        payload: dict[str, Any],
        on_progress: Optional[ProgressCallback],
    ) -> str:
        fragments: list[str] = []

        async with client.stream("POST", url, json=payload, timeout=self.timeout) as response:
            if not response.is_success:
                body = (await response.aread()).decode("utf-8", errors="replace")
                raise transport_error_from_status(self.kind, response.status_code, body)

            async for line in response.aiter_lines():
                chunk = parse_stream_line(line)
                if chunk is None:
                    continue

                fragment = chunk.get("response") or ""
                if not isinstance(fragment, str):
                    fragment = str(fragment)
                if fragment:
                    fragments.append(fragment)
                    await notify_progress(on_progress, fragment)

                if chunk.get("done") is True:
                    text = "".join(fragments)
                    logger.debug(f"Stream completed: {len(fragments)} fragments, {len(text)} chars")
                    if not text.strip():
                        raise EmptyResponseError("Ollama finished without producing any text")
                    return text

        text = "".join(fragments)
        if not text.strip():
            raise EmptyResponseError("Ollama stream ended without producing any text")
        logger.warning(f"Stream ended without a done flag, using {len(text)} accumulated chars")
        return text

"""Non-streaming transport for the hosted OpenAI chat completions API."""

from typing import Optional

import httpx

from recipe_pipeline.models.errors import EmptyResponseError, TransportError
from recipe_pipeline.models.models import ProviderKind
from recipe_pipeline.prompts.prompts import SYSTEM_PROMPT
from recipe_pipeline.providers.base import (
    ProgressCallback,
    notify_progress,
    transport_error_from_exception,
    transport_error_from_status,
)
from recipe_pipeline.utils.config import Config, config
from recipe_pipeline.utils.logger import logger


class OpenAITransport:
    """Single request/response call to ``/chat/completions``."""

    kind = ProviderKind.OPENAI

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4",
        base_url: str = "https://api.openai.com/v1",
        temperature: float = 0.7,
        max_tokens: int = 2000,
        timeout: float = 120.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        """Initialize transport.

        Raises:
            ValueError: If api_key is None or empty string.
        """
        if not api_key:
            raise ValueError("OPENAI_API_KEY is required")

        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout
        self._http_client = http_client

    @classmethod
    def from_config(cls, cfg: Config = config, http_client: Optional[httpx.AsyncClient] = None) -> "OpenAITransport":
        return cls(
            api_key=cfg.OPENAI_API_KEY,
            model=cfg.OPENAI_MODEL,
            base_url=cfg.OPENAI_BASE_URL,
            temperature=cfg.OPENAI_TEMPERATURE,
            max_tokens=cfg.OPENAI_MAX_TOKENS,
            timeout=cfg.REQUEST_TIMEOUT_SECONDS,
            http_client=http_client,
        )

    async def generate(self, prompt: str, on_progress: Optional[ProgressCallback] = None) -> str:
        """Send the prompt and return the whole completion text.

        This backend does not stream: ``on_progress`` receives the full text once.

        Raises:
            TransportError: Non-2xx status (status and body embedded), network
                failure, or a response envelope without a message.
            EmptyResponseError: The completion text is empty.
        """
        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }
        headers = {"Authorization": f"Bearer {self.api_key}"}
        url = f"{self.base_url}/chat/completions"
        logger.debug(f"POST {url} (model={self.model}, prompt={len(prompt)} chars)")

        try:
            if self._http_client is not None:
                response = await self._http_client.post(url, json=payload, headers=headers, timeout=self.timeout)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.post(url, json=payload, headers=headers)
        except httpx.HTTPError as e:
            raise transport_error_from_exception(self.kind, e) from e

        if not response.is_success:
            raise transport_error_from_status(self.kind, response.status_code, response.text)

        text = self._extract_content(response)
        if not text.strip():
            raise EmptyResponseError("OpenAI returned an empty completion")

        await notify_progress(on_progress, text)
        return text

    def _extract_content(self, response: httpx.Response) -> str:
        """Pull ``choices[0].message.content`` out of the response envelope."""
        try:
            data = response.json()
            content = data["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise TransportError(
                f"openai response envelope not understood: {type(e).__name__}: {e}",
                status_code=response.status_code,
                body=response.text,
            ) from e
        return content or ""

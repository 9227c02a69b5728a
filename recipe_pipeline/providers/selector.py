"""Provider selection with a bounded reachability probe.

Prefers the local Ollama server (free, private) when it answers ``/api/tags``
within PROBE_TIMEOUT_SECONDS; otherwise falls back to the hosted OpenAI API
when a key is configured. The choice is cached on the selector instance and
only re-probed on explicit request.
"""

import asyncio
from typing import Optional

import httpx

from recipe_pipeline.models.errors import NoProviderAvailableError
from recipe_pipeline.models.models import ProviderKind, ProviderStatus
from recipe_pipeline.utils.config import Config, config
from recipe_pipeline.utils.logger import logger
from recipe_pipeline.utils.safe_execute import safe_execute_async


class ProviderSelector:
    """Decide which backend the transport should use.

    One selector is owned by one ``GenerationService``; there is no
    module-level provider state.
    """

    def __init__(self, cfg: Config = config, http_client: Optional[httpx.AsyncClient] = None) -> None:
        """Initialize selector.

        Args:
            cfg: Configuration (provider pinning, URLs, probe timeout, credentials).
            http_client: Optional shared client used for probing.
        """
        self.config = cfg
        self._http_client = http_client
        self._selected: Optional[ProviderKind] = None
        self._lock = asyncio.Lock()

    @property
    def selected(self) -> Optional[ProviderKind]:
        """Cached selection, or None if nothing has been selected yet."""
        return self._selected

    async def _get_tags(self) -> httpx.Response:
        url = f"{self.config.OLLAMA_BASE_URL}/api/tags"
        timeout = self.config.PROBE_TIMEOUT_SECONDS
        if self._http_client is not None:
            return await self._http_client.get(url, timeout=timeout)
        async with httpx.AsyncClient(timeout=timeout) as client:
            return await client.get(url)

    async def probe_local(self) -> bool:
        """Check whether the local provider answers within the probe timeout.

        Bounded by PROBE_TIMEOUT_SECONDS regardless of any caller timeout.
        Never raises: any failure means "not reachable".
        """

        async def _probe() -> bool:
            response = await asyncio.wait_for(self._get_tags(), timeout=self.config.PROBE_TIMEOUT_SECONDS)
            return response.is_success

        return await safe_execute_async(
            _probe(),
            f"Ollama not available at {self.config.OLLAMA_BASE_URL}",
            log_level="warning",
            default_return=False,
        )

    async def list_local_models(self) -> list[str]:
        """Return model names installed on the local provider (empty when unreachable)."""

        async def _list() -> list[str]:
            response = await asyncio.wait_for(self._get_tags(), timeout=self.config.PROBE_TIMEOUT_SECONDS)
            response.raise_for_status()
            models = response.json().get("models") or []
            return [m["name"] for m in models if isinstance(m, dict) and m.get("name")]

        return await safe_execute_async(
            _list(),
            "List local models",
            log_level="debug",
            default_return=[],
        )

    async def select(self, force_refresh: bool = False) -> ProviderKind:
        """Return the backend to use, probing only when nothing is cached.

        Args:
            force_refresh: Ignore the cached choice and probe again.

        Returns:
            ProviderKind: Selected backend.

        Raises:
            NoProviderAvailableError: Local provider unreachable and no hosted credentials.
        """
        async with self._lock:
            if self._selected is not None and not force_refresh:
                return self._selected

            self._selected = await self._detect()
            return self._selected

    async def refresh(self) -> ProviderKind:
        """Re-probe and replace the cached choice."""
        return await self.select(force_refresh=True)

    async def _detect(self) -> ProviderKind:
        pinned = self.config.AI_PROVIDER
        if pinned == ProviderKind.OLLAMA.value:
            logger.info("Using Ollama (pinned by AI_PROVIDER)")
            return ProviderKind.OLLAMA
        if pinned == ProviderKind.OPENAI.value:
            if not self.config.has_openai_credentials:
                raise NoProviderAvailableError("AI_PROVIDER=openai but OPENAI_API_KEY is not configured")
            logger.info("Using OpenAI (pinned by AI_PROVIDER)")
            return ProviderKind.OPENAI

        logger.info("Detecting available AI providers...")
        if await self.probe_local():
            logger.info("✓ Ollama is available")
            return ProviderKind.OLLAMA

        if self.config.has_openai_credentials:
            logger.warning("Ollama not available, falling back to OpenAI")
            return ProviderKind.OPENAI

        logger.error("No AI provider available")
        raise NoProviderAvailableError(
            f"Ollama is not reachable at {self.config.OLLAMA_BASE_URL} and OPENAI_API_KEY is not configured"
        )

    async def status(self) -> ProviderStatus:
        """Report the current provider, its availability and (for Ollama) installed models."""
        try:
            provider = await self.select()
        except NoProviderAvailableError:
            return ProviderStatus(provider=None, available=False)

        if provider is ProviderKind.OPENAI:
            return ProviderStatus(provider=provider, available=True)

        # A pinned or cached Ollama choice may have gone away since selection
        available = await self.probe_local()
        models = await self.list_local_models() if available else []
        return ProviderStatus(provider=provider, available=available, models=models)

"""Recipe generation service: provider selection, retries and cancellation.

One attempt runs the whole pipeline:
prompt -> provider transport -> JSON extraction -> sanitize/validate -> assemble.
Failed attempts are retried with a fixed delay, up to MAX_ATTEMPTS; errors
that another attempt cannot fix propagate immediately.
"""

import asyncio
from typing import Callable, List, Optional

import httpx

from recipe_pipeline.models.errors import GenerationCancelledError, RecipeGenerationError
from recipe_pipeline.models.models import (
    GenerationRequest,
    GenerationResult,
    ProviderKind,
    ProviderStatus,
    Recipe,
    RejectedCandidate,
)
from recipe_pipeline.parsing.extractor import extract_json_object
from recipe_pipeline.parsing.sanitizer import sanitize_and_validate
from recipe_pipeline.pipeline.assembler import assemble_recipes
from recipe_pipeline.pipeline.images import ImageLookup, placeholder_image
from recipe_pipeline.prompts.prompts import build_recipe_prompt
from recipe_pipeline.providers.base import ProgressCallback, ProviderTransport
from recipe_pipeline.providers.ollama import OllamaTransport
from recipe_pipeline.providers.openai_chat import OpenAITransport
from recipe_pipeline.providers.selector import ProviderSelector
from recipe_pipeline.utils.config import Config, config
from recipe_pipeline.utils.logger import logger


TransportFactory = Callable[[ProviderKind], ProviderTransport]


class GenerationService:
    """Entry point for generating recipes from health goals.

    Construct once per process and share it: the provider choice is cached on
    the instance. Concurrent ``generate`` calls share no per-call state; each
    one gets fresh transports and its own attempt counter.
    """

    def __init__(
        self,
        cfg: Config = config,
        http_client: Optional[httpx.AsyncClient] = None,
        image_lookup: Optional[ImageLookup] = None,
        selector: Optional[ProviderSelector] = None,
        transport_factory: Optional[TransportFactory] = None,
    ) -> None:
        """Initialize service.

        Args:
            cfg: Pipeline configuration.
            http_client: Optional shared httpx client for connection pooling.
            image_lookup: Maps (title, meal type) to an image reference. Defaults to a placeholder URL.
            selector: Provider selector; one is created from ``cfg`` when omitted.
            transport_factory: Builds the transport for a provider; defaults to the HTTP transports.
        """
        self.config = cfg
        self._http_client = http_client
        self.image_lookup = image_lookup or placeholder_image
        self.selector = selector or ProviderSelector(cfg, http_client)
        self._transport_factory = transport_factory or self._default_transport

    def _default_transport(self, provider: ProviderKind) -> ProviderTransport:
        if provider is ProviderKind.OLLAMA:
            return OllamaTransport.from_config(self.config, self._http_client)
        return OpenAITransport.from_config(self.config, self._http_client)

    async def provider_status(self) -> ProviderStatus:
        return await self.selector.status()

    async def refresh_provider(self) -> ProviderKind:
        """Forget the cached provider and probe again."""
        return await self.selector.refresh()

    async def generate_recipes(
        self,
        request: GenerationRequest,
        on_progress: Optional[ProgressCallback] = None,
        *,
        timeout: Optional[float] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> List[Recipe]:
        """Generate recipes and return only the recipe list.

        See ``generate`` for arguments and errors.
        """
        result = await self.generate(request, on_progress, timeout=timeout, cancel_event=cancel_event)
        return result.recipes

    async def generate(
        self,
        request: GenerationRequest,
        on_progress: Optional[ProgressCallback] = None,
        *,
        timeout: Optional[float] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> GenerationResult:
        """Generate recipes for a request, retrying failed attempts.

        Args:
            request: Validated generation request.
            on_progress: Receives raw text fragments as the model produces them.
                Fragments from a failed attempt are not retracted.
            timeout: Seconds for the whole call, retries and delays included.
            cancel_event: Setting this event aborts the call.

        Returns:
            GenerationResult: Recipes, filtered candidates, provider used and attempt count.

        Raises:
            NoProviderAvailableError: No backend can be used (raised before any call).
            GenerationCancelledError: ``timeout`` elapsed or ``cancel_event`` was set.
            TransportError: Network or HTTP failure (401/403 are not retried).
            EmptyResponseError: The provider produced no text.
            UnparseableOutputError: No JSON recipes object could be recovered.
            NoValidRecipesError: Every candidate failed validation.
        """
        if timeout is None and cancel_event is None:
            return await self._generate_with_retries(request, on_progress)
        return await self._run_cancellable(self._generate_with_retries(request, on_progress), timeout, cancel_event)

    async def _run_cancellable(
        self,
        coro,
        timeout: Optional[float],
        cancel_event: Optional[asyncio.Event],
    ) -> GenerationResult:
        """Run the generation until it finishes, the timeout elapses or the event is set."""
        task = asyncio.ensure_future(coro)
        waiters = {task}
        cancel_waiter = None
        if cancel_event is not None:
            cancel_waiter = asyncio.ensure_future(cancel_event.wait())
            waiters.add(cancel_waiter)

        try:
            done, _ = await asyncio.wait(waiters, timeout=timeout, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            # The caller's own task was cancelled: stop the work and propagate as-is
            task.cancel()
            raise
        finally:
            if cancel_waiter is not None:
                cancel_waiter.cancel()

        if task in done:
            return task.result()

        task.cancel()
        # Wait for the in-flight request to unwind; its outcome is superseded by the cancellation
        await asyncio.gather(task, return_exceptions=True)

        if cancel_event is not None and cancel_event.is_set():
            reason = "cancelled by caller"
        else:
            reason = f"timed out after {timeout}s"
        logger.warning(f"Recipe generation {reason}")
        raise GenerationCancelledError(f"Recipe generation {reason}")

    async def _generate_with_retries(
        self,
        request: GenerationRequest,
        on_progress: Optional[ProgressCallback],
    ) -> GenerationResult:
        max_attempts = self.config.MAX_ATTEMPTS
        delay = self.config.RETRY_DELAY_SECONDS

        last_exception: Optional[RecipeGenerationError] = None
        for attempt in range(1, max_attempts + 1):
            extra = {"attempt": attempt}
            try:
                # Cached after the first successful selection
                provider = await self.selector.select()
                extra["provider"] = provider.value
                logger.info(
                    f"Generating {request.count} recipes for {', '.join(g.value for g in request.health_goals)} "
                    f"(attempt {attempt}/{max_attempts})",
                    extra=extra,
                )

                recipes, rejected = await self._run_attempt(provider, request, on_progress)

                logger.info(f"✓ Generated {len(recipes)} recipes", extra=extra)
                return GenerationResult(recipes=recipes, rejected=rejected, provider=provider, attempts=attempt)

            except RecipeGenerationError as e:
                last_exception = e
                if not e.retryable:
                    logger.error(f"Recipe generation failed ({type(e).__name__}, not retried): {e}", extra=extra)
                    raise

                if attempt < max_attempts:
                    logger.warning(
                        f"Attempt {attempt}/{max_attempts} failed ({type(e).__name__}: {e}), retrying in {delay}s...",
                        extra=extra,
                    )
                    await asyncio.sleep(delay)

        logger.error(f"Recipe generation failed after {max_attempts} attempts: {last_exception}")
        raise last_exception

    async def _run_attempt(
        self,
        provider: ProviderKind,
        request: GenerationRequest,
        on_progress: Optional[ProgressCallback],
    ) -> tuple[List[Recipe], List[RejectedCandidate]]:
        """One full pipeline run; every stage failure raises a RecipeGenerationError."""
        prompt = build_recipe_prompt(
            request.health_goals,
            request.count,
            custom_description=request.custom_description,
            meal_type=request.meal_type,
            exclude_ingredients=request.exclude_ingredients,
        )
        logger.debug(f"Prompt built ({len(prompt)} chars)")

        transport = self._transport_factory(provider)
        text = await transport.generate(prompt, on_progress)
        logger.debug(f"Received {len(text)} chars from {provider.value}")

        parsed = extract_json_object(text)
        drafts, rejected = sanitize_and_validate(parsed)
        return assemble_recipes(drafts, request, self.image_lookup), rejected

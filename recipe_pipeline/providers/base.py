"""Shared contract for provider transports.

Every backend exposes ``await transport.generate(prompt, on_progress) -> str``
regardless of whether it streams. Transports keep no state between calls:
each call owns its accumulator and decodes its own response body.
"""

import inspect
from typing import Any, Awaitable, Callable, Optional, Protocol, Union

import httpx

from recipe_pipeline.models.errors import TransportError
from recipe_pipeline.models.models import ProviderKind


# on_progress may be a plain function or a coroutine function
ProgressCallback = Callable[[str], Union[None, Awaitable[None]]]


class ProviderTransport(Protocol):
    """Uniform text-generation contract over streaming and non-streaming backends."""

    kind: ProviderKind

    async def generate(self, prompt: str, on_progress: Optional[ProgressCallback] = None) -> str:
        ...


async def notify_progress(on_progress: Optional[ProgressCallback], fragment: str) -> None:
    """Invoke the progress callback, awaiting it when it returns an awaitable."""
    if on_progress is None:
        return
    result: Any = on_progress(fragment)
    if inspect.isawaitable(result):
        await result


def transport_error_from_status(provider: ProviderKind, status_code: int, body: str) -> TransportError:
    """Build the TransportError for a non-success HTTP status, embedding status and body."""
    snippet = body.strip()
    if len(snippet) > 500:
        snippet = snippet[:500] + "..."
    return TransportError(
        f"{provider.value} API error: HTTP {status_code}: {snippet or httpx.codes.get_reason_phrase(status_code)}",
        status_code=status_code,
        body=body,
    )


def transport_error_from_exception(provider: ProviderKind, exc: httpx.HTTPError) -> TransportError:
    """Wrap an httpx network/timeout failure."""
    return TransportError(f"{provider.value} request failed: {type(exc).__name__}: {exc}")

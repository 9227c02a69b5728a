"""Helpers for steps whose failure is an expected branch, not an error.

Decoding a single stream line, trying one JSON extraction strategy and
probing the local provider may all fail routinely. These helpers log the
failure at the requested level and hand back a fallback value so the caller
can move on to the next line, strategy or provider.
"""

from typing import Any, Awaitable, Callable, TypeVar

from recipe_pipeline.utils.logger import logger


T = TypeVar("T")

LOG_LEVELS = ("debug", "warning", "error")


def _log_failure(operation_name: str, exception: Exception, log_level: str) -> None:
    level = log_level if log_level in LOG_LEVELS else "warning"
    getattr(logger, level)(f"{operation_name}: {exception}")


async def safe_execute_async(
    coro: Awaitable[T],
    operation_name: str,
    log_level: str = "warning",
    default_return: Any = None,
) -> T | Any:
    """Await ``coro``; on failure log it and return ``default_return``.

    Only ``Exception`` subclasses are handled, so ``asyncio.CancelledError``
    still propagates.
    """
    try:
        return await coro
    except Exception as e:
        _log_failure(operation_name, e, log_level)
        return default_return


def safe_execute_sync(
    func: Callable[[], T],
    operation_name: str,
    log_level: str = "warning",
    default_return: Any = None,
) -> T | Any:
    """Call ``func()``; on failure log it and return ``default_return``.

    Args:
        func: Zero-argument callable.
        operation_name: Prefix for the log message.
        log_level: "debug", "warning" or "error" (unknown levels log as warning).
        default_return: Fallback value returned when ``func`` raises.
    """
    try:
        return func()
    except Exception as e:
        _log_failure(operation_name, e, log_level)
        return default_return

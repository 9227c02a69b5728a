"""Error taxonomy for recipe generation.

Every failure that can end an attempt is a ``RecipeGenerationError``. The
``retryable`` flag tells the orchestrator whether another attempt can help;
callers branch on the concrete class (e.g. fall back to cached recipes on
``NoProviderAvailableError``).
"""

from typing import Optional


class RecipeGenerationError(Exception):
    """Base class for all pipeline failures."""

    retryable: bool = True


class TransportError(RecipeGenerationError):
    """Network failure or non-success HTTP status from a provider.

    Credential failures (401/403) are not retryable: repeating the call
    with the same key cannot succeed.
    """

    NON_RETRYABLE_STATUSES = frozenset({401, 403})

    def __init__(self, message: str, status_code: Optional[int] = None, body: str = "") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body

    @property
    def retryable(self) -> bool:
        return self.status_code not in self.NON_RETRYABLE_STATUSES


class EmptyResponseError(RecipeGenerationError):
    """Provider call finished without producing any text."""


class UnparseableOutputError(RecipeGenerationError):
    """No JSON object matching the recipes contract could be recovered from the output."""


class NoValidRecipesError(RecipeGenerationError):
    """Output parsed, but every recipe candidate failed validation."""

    def __init__(self, message: str = "No valid recipes generated", rejected: Optional[list] = None) -> None:
        super().__init__(message)
        self.rejected = rejected or []


class GenerationCancelledError(RecipeGenerationError):
    """Caller aborted the generation (timeout or cancel event)."""

    retryable = False


class NoProviderAvailableError(RecipeGenerationError):
    """Neither the local provider is reachable nor hosted credentials are configured."""

    retryable = False


class CandidateValidationError(ValueError):
    """A single recipe candidate does not satisfy the recipe schema.

    Recovered locally by the sanitizer (the entry is dropped); never ends an attempt.
    """

    def __init__(self, reasons: list[str]) -> None:
        super().__init__("; ".join(reasons) or "invalid recipe")
        self.reasons = reasons

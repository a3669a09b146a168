"""Exception hierarchy for the assistant core.

Every error raised on purpose by this package derives from
``AssistantError`` so callers can catch a single base type at the
transport boundary.
"""

from __future__ import annotations

from typing import Any


class AssistantError(Exception):
    """Base exception for all assistant errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ValidationError(AssistantError):
    """Malformed input, rejected before any store mutation."""


class ConfigurationError(AssistantError):
    """Missing or invalid settings detected while wiring collaborators."""


# -- Collaborators -------------------------------------------------------------


class CollaboratorError(AssistantError):
    """A store or context-provider call failed. Not retried."""


class StoreError(CollaboratorError):
    """The record store failed to read or write."""


class ContextProviderError(CollaboratorError):
    """The external context provider failed to gather context."""


# -- Model backend -------------------------------------------------------------


class BackendError(AssistantError):
    """The model backend returned a non-success response or was unreachable.

    ``status`` is the HTTP status code, or ``None`` for transport failures.
    """

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message, {"status": status} if status is not None else None)
        self.status = status


class ExhaustedRetriesError(AssistantError):
    """Every attempt of a retried operation failed."""

    def __init__(self, operation: str, attempts: int, last_error: BaseException) -> None:
        super().__init__(
            f"{operation} failed after {attempts} attempt(s): {last_error}",
            {"operation": operation, "attempts": attempts},
        )
        self.operation = operation
        self.attempts = attempts
        self.last_error = last_error

"""Failure events and the sinks that receive them."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from assistant.store.models import utc_now

logger = logging.getLogger(__name__)


@dataclass
class FailureEvent:
    """One failed attempt of a retried operation."""

    operation: str
    attempt: int
    error: str
    error_type: str
    context: dict[str, Any] = field(default_factory=dict)
    occurred_at: str = field(default_factory=utc_now)

    @classmethod
    def from_exception(
        cls,
        operation: str,
        attempt: int,
        exc: BaseException,
        context: dict[str, Any] | None = None,
    ) -> FailureEvent:
        return cls(
            operation=operation,
            attempt=attempt,
            error=str(exc),
            error_type=type(exc).__name__,
            context=dict(context or {}),
        )


@runtime_checkable
class ObservabilitySink(Protocol):
    """Receives failure events. Must return quickly and never block the turn."""

    def record(self, event: FailureEvent) -> None:
        ...


class LoggingSink:
    """Writes failure events to the application log."""

    def record(self, event: FailureEvent) -> None:
        logger.warning(
            "%s attempt %d failed (%s): %s context=%s",
            event.operation,
            event.attempt,
            event.error_type,
            event.error,
            event.context,
        )


class MemorySink:
    """Keeps failure events in a list. Handy for tests and diagnostics."""

    def __init__(self) -> None:
        self.events: list[FailureEvent] = []

    def record(self, event: FailureEvent) -> None:
        self.events.append(event)


def emit_failure(sink: ObservabilitySink | None, event: FailureEvent) -> None:
    """Deliver *event* to *sink*; sink errors are logged and ignored."""
    if sink is None:
        return
    try:
        sink.record(event)
    except Exception:
        logger.exception("Observability sink failed for %s", event.operation)

"""Bounded retry with exponential backoff for model backend calls."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, TypeVar

from assistant.errors import ExhaustedRetriesError
from assistant.observability import FailureEvent, emit_failure

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from assistant.observability import ObservabilitySink

logger = logging.getLogger(__name__)

T = TypeVar("T")


def exponential_backoff(base: float = 2.0) -> Callable[[int], float]:
    """Return a backoff function giving ``base ** attempt`` seconds."""

    def _delay(attempt: int) -> float:
        return base**attempt

    return _delay


@dataclass
class RetryPolicy:
    """How many times to try, and how long to wait after each failure.

    Attributes:
        max_attempts: Total attempts including the first.
        backoff: Maps the 1-based number of the failed attempt to a delay
            in seconds. The default gives 2s after attempt 1, 4s after 2.
    """

    max_attempts: int = 3
    backoff: Callable[[int], float] = field(default_factory=exponential_backoff)

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            msg = f"max_attempts must be at least 1, got {self.max_attempts}"
            raise ValueError(msg)


async def execute_with_retry(
    operation: Callable[[], Awaitable[T]],
    *,
    policy: RetryPolicy | None = None,
    operation_name: str = "operation",
    context: dict[str, Any] | None = None,
    sink: ObservabilitySink | None = None,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> T:
    """Run *operation* until it succeeds or the policy is exhausted.

    Every failed attempt is reported to *sink*. No delay follows the final
    attempt; its error is re-raised wrapped in ``ExhaustedRetriesError``.

    Args:
        operation: Zero-argument coroutine factory, called once per attempt.
        policy: Attempt limit and backoff. Defaults to 3 attempts, 2s/4s.
        operation_name: Label used in logs and failure events.
        context: Extra fields attached to every failure event.
        sink: Observability sink for failure events.
        sleep: Awaitable delay function, injectable for tests.

    Raises:
        ExhaustedRetriesError: When every attempt raised.
    """
    policy = policy or RetryPolicy()
    last_error: Exception | None = None

    for attempt in range(1, policy.max_attempts + 1):
        try:
            result = await operation()
        except Exception as exc:
            last_error = exc
            logger.warning(
                "%s: attempt %d/%d failed: %s",
                operation_name,
                attempt,
                policy.max_attempts,
                exc,
            )
            emit_failure(sink, FailureEvent.from_exception(operation_name, attempt, exc, context))
            if attempt < policy.max_attempts:
                delay = policy.backoff(attempt)
                logger.info("%s: retrying in %.1fs", operation_name, delay)
                await sleep(delay)
            continue
        if attempt > 1:
            logger.info("%s succeeded on attempt %d", operation_name, attempt)
        return result

    logger.error("%s: all %d attempts exhausted", operation_name, policy.max_attempts)
    raise ExhaustedRetriesError(operation_name, policy.max_attempts, last_error) from last_error

"""Tests for execute_with_retry() and the observability sinks."""

import logging

import pytest

from assistant.errors import BackendError, ExhaustedRetriesError
from assistant.observability import FailureEvent, LoggingSink, MemorySink, emit_failure
from assistant.retry import RetryPolicy, execute_with_retry, exponential_backoff


def _flaky(fail_times: int, result: str = "ok"):
    """Build an operation that fails *fail_times* times, then returns *result*."""
    calls = {"count": 0}

    async def operation() -> str:
        calls["count"] += 1
        if calls["count"] <= fail_times:
            raise BackendError(f"failure {calls['count']}", status=503)
        return result

    return operation, calls


async def test_returns_immediately_on_success(sleeper) -> None:
    operation, calls = _flaky(0)
    sink = MemorySink()

    result = await execute_with_retry(operation, sink=sink, sleep=sleeper)

    assert result == "ok"
    assert calls["count"] == 1
    assert sleeper.delays == []
    assert sink.events == []


async def test_fails_twice_then_succeeds(sleeper) -> None:
    operation, calls = _flaky(2, result="third time lucky")
    sink = MemorySink()

    result = await execute_with_retry(
        operation,
        operation_name="generate_response",
        context={"user_id": "u1"},
        sink=sink,
        sleep=sleeper,
    )

    assert result == "third time lucky"
    assert calls["count"] == 3
    assert sleeper.delays == [2, 4]
    assert sum(sleeper.delays) == 2**1 + 2**2
    assert [e.attempt for e in sink.events] == [1, 2]
    assert all(e.operation == "generate_response" for e in sink.events)
    assert sink.events[0].context == {"user_id": "u1"}
    assert sink.events[0].error_type == "BackendError"


async def test_always_failing_raises_after_three_attempts(sleeper) -> None:
    operation, calls = _flaky(10)
    sink = MemorySink()

    with pytest.raises(ExhaustedRetriesError) as exc_info:
        await execute_with_retry(operation, operation_name="op", sink=sink, sleep=sleeper)

    err = exc_info.value
    assert calls["count"] == 3
    assert err.attempts == 3
    assert err.operation == "op"
    assert isinstance(err.last_error, BackendError)
    assert err.last_error.message == "failure 3"
    assert err.__cause__ is err.last_error
    # No wait after the final attempt
    assert sleeper.delays == [2, 4]
    assert len(sink.events) == 3


async def test_custom_policy(sleeper) -> None:
    operation, calls = _flaky(10)
    policy = RetryPolicy(max_attempts=4, backoff=lambda attempt: attempt * 0.5)

    with pytest.raises(ExhaustedRetriesError):
        await execute_with_retry(operation, policy=policy, sleep=sleeper)

    assert calls["count"] == 4
    assert sleeper.delays == [0.5, 1.0, 1.5]


async def test_single_attempt_never_sleeps(sleeper) -> None:
    operation, _ = _flaky(1)

    with pytest.raises(ExhaustedRetriesError):
        await execute_with_retry(operation, policy=RetryPolicy(max_attempts=1), sleep=sleeper)

    assert sleeper.delays == []


async def test_broken_sink_does_not_fail_operation(sleeper, caplog) -> None:
    class BrokenSink:
        def record(self, event: FailureEvent) -> None:
            raise RuntimeError("sink down")

    operation, _ = _flaky(1)

    with caplog.at_level(logging.ERROR, logger="assistant.observability"):
        result = await execute_with_retry(operation, sink=BrokenSink(), sleep=sleeper)

    assert result == "ok"
    assert "Observability sink failed" in caplog.text


def test_policy_rejects_zero_attempts() -> None:
    with pytest.raises(ValueError, match="max_attempts"):
        RetryPolicy(max_attempts=0)


def test_exponential_backoff() -> None:
    backoff = exponential_backoff()
    assert [backoff(n) for n in (1, 2, 3)] == [2, 4, 8]
    assert exponential_backoff(3.0)(2) == 9.0


def test_failure_event_from_exception() -> None:
    event = FailureEvent.from_exception("op", 2, ValueError("bad"), {"k": "v"})
    assert event.operation == "op"
    assert event.attempt == 2
    assert event.error == "bad"
    assert event.error_type == "ValueError"
    assert event.context == {"k": "v"}
    assert "T" in event.occurred_at


def test_logging_sink_writes_warning(caplog) -> None:
    event = FailureEvent.from_exception("generate_response", 1, RuntimeError("timeout"))
    with caplog.at_level(logging.WARNING, logger="assistant.observability"):
        LoggingSink().record(event)
    assert "generate_response attempt 1 failed" in caplog.text


def test_emit_failure_without_sink_is_noop() -> None:
    emit_failure(None, FailureEvent.from_exception("op", 1, RuntimeError("x")))

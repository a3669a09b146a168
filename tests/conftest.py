"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from assistant.config import Settings
from assistant.context.models import ParaContext, ParaItem
from assistant.errors import BackendError
from assistant.llm.client import Completion
from assistant.observability import MemorySink
from assistant.store.sqlite import SqliteRecordStore


class FakeBackend:
    """Model backend that fails a set number of times, then replies."""

    def __init__(self, reply: str = "Happy to help!", fail_times: int = 0) -> None:
        self.reply = reply
        self.fail_times = fail_times
        self.calls: list[dict[str, Any]] = []

    async def complete(
        self,
        messages: list[dict[str, str]],
        *,
        model: str,
        temperature: float,
        max_tokens: int,
    ) -> Completion:
        self.calls.append({
            "messages": messages,
            "model": model,
            "temperature": temperature,
            "max_tokens": max_tokens,
        })
        if len(self.calls) <= self.fail_times:
            raise BackendError("Service unavailable", status=503)
        return Completion(content=f"{self.reply} (attempt {len(self.calls)})")


class FakeContextProvider:
    """Context provider returning a fixed result, or raising a fixed error."""

    def __init__(self, result: Any = None, error: Exception | None = None) -> None:
        self.result = result
        self.error = error
        self.calls: list[tuple[str, str]] = []

    async def gather(self, query: str, user_id: str) -> Any:
        self.calls.append((query, user_id))
        if self.error is not None:
            raise self.error
        return self.result


class RecordingSleep:
    """Stand-in for asyncio.sleep that records requested delays."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def store(tmp_path: Path) -> SqliteRecordStore:
    """Create a SqliteRecordStore backed by a temp database."""
    return SqliteRecordStore(db_path=tmp_path / "test.db")


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    return Settings(database_path=tmp_path / "test.db", zai_api_key="test-key")


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def para_context() -> ParaContext:
    return ParaContext(
        projects=[ParaItem(title="Website relaunch", status="active", due="2026-11-01")],
        areas=[ParaItem(title="Health")],
    )


@pytest.fixture
def context_provider(para_context: ParaContext) -> FakeContextProvider:
    return FakeContextProvider(result=para_context)


@pytest.fixture
def sink() -> MemorySink:
    return MemorySink()


@pytest.fixture
def sleeper() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def make_backend() -> type[FakeBackend]:
    """Factory for backends with a custom reply or failure count."""
    return FakeBackend


@pytest.fixture
def make_context_provider() -> type[FakeContextProvider]:
    """Factory for context providers with a custom result or error."""
    return FakeContextProvider

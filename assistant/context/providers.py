"""Context providers — gather PARA context for a user's query."""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Protocol, runtime_checkable

import httpx

from assistant.context.models import parse_context
from assistant.errors import ContextProviderError

if TYPE_CHECKING:
    from collections.abc import Callable

    from assistant.context.models import OpaqueContext, ParaContext

logger = logging.getLogger(__name__)


@runtime_checkable
class ContextProvider(Protocol):
    """Protocol that all context providers must satisfy."""

    async def gather(self, query: str, user_id: str) -> ParaContext | OpaqueContext | None:
        """Return context relevant to *query*, or None when there is none."""
        ...


class NullContextProvider:
    """Provider used when no PARA source is configured."""

    async def gather(self, query: str, user_id: str) -> None:
        return None


class HttpContextProvider:
    """Fetches context from an HTTP endpoint.

    POSTs ``{"query": ..., "user_id": ...}`` as JSON and parses the reply
    with ``parse_context``. A 204 or JSON ``null`` means no context.

    Args:
        url: Endpoint to POST to.
        token: Optional bearer token.
        timeout: Request timeout in seconds.
        transport: Custom httpx transport (tests use ``httpx.MockTransport``).
    """

    def __init__(
        self,
        url: str,
        token: str = "",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._url = url
        self._token = token
        self._timeout = timeout
        self._transport = transport

    async def gather(self, query: str, user_id: str) -> ParaContext | OpaqueContext | None:
        headers = {"Authorization": f"Bearer {self._token}"} if self._token else {}
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                resp = await client.post(
                    self._url,
                    json={"query": query, "user_id": user_id},
                    headers=headers,
                )
        except httpx.HTTPError as exc:
            logger.exception("Context provider request failed")
            raise ContextProviderError(f"Context provider unreachable: {exc}") from exc

        if resp.status_code == 204:
            return None
        if resp.status_code != 200:
            msg = f"Context provider returned {resp.status_code}: {resp.text[:200]}"
            raise ContextProviderError(msg, {"status": resp.status_code})

        try:
            payload = resp.json()
        except ValueError as exc:
            raise ContextProviderError("Context provider returned invalid JSON") from exc

        return parse_context(payload, source=self._url)


class CachedContextProvider:
    """Caches another provider's results per user and query for *ttl* seconds.

    Empty results are cached too so repeated misses don't hammer the
    upstream provider. Errors are never cached. Expired entries are dropped
    on every lookup.
    """

    def __init__(
        self,
        inner: ContextProvider,
        ttl: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._inner = inner
        self._ttl = ttl
        self._clock = clock
        self._entries: dict[tuple[str, str], tuple[float, ParaContext | OpaqueContext | None]] = {}

    def _evict_expired(self, now: float) -> None:
        expired = [key for key, (expires_at, _) in self._entries.items() if expires_at <= now]
        for key in expired:
            del self._entries[key]

    async def gather(self, query: str, user_id: str) -> ParaContext | OpaqueContext | None:
        key = (user_id, query.strip().lower())
        now = self._clock()
        self._evict_expired(now)
        cached = self._entries.get(key)
        if cached is not None:
            logger.debug("Context cache hit for user %s", user_id)
            return cached[1]

        result = await self._inner.gather(query, user_id)
        self._entries[key] = (now + self._ttl, result)
        return result

    def size(self) -> int:
        """Number of entries currently cached."""
        return len(self._entries)

    def clear(self) -> int:
        """Drop all cached entries. Returns how many were removed."""
        count = len(self._entries)
        self._entries.clear()
        return count

"""Memory retrieval for prompt personalization."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from assistant.store.base import RecordStore
    from assistant.store.models import Memory

logger = logging.getLogger(__name__)


async def retrieve_memories(store: RecordStore, user_id: str, limit: int = 10) -> list[Memory]:
    """Fetch a user's most recent memories, most recent first.

    Reading counts as access: the store bumps ``accessed_count`` and
    ``last_accessed`` on every returned memory.
    """
    memories = await store.list_recent_memories(user_id, limit)
    logger.debug("Retrieved %d memories for user %s", len(memories), user_id)
    return memories

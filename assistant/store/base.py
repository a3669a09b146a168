"""RecordStore protocol — interface for durable conversation state."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from assistant.store.models import CodeChangeRequest, Conversation, Memory, Message


@runtime_checkable
class RecordStore(Protocol):
    """Protocol that every record store backend must satisfy.

    Each method is an independent write or read; no transaction spans
    more than one call.
    """

    # -- Conversations ---------------------------------------------------------

    async def create_conversation(self, user_id: str, platform: str, channel_ref: str) -> str:
        """Create an active conversation. Returns its ID."""
        ...

    async def get_conversation(self, conversation_id: str) -> Conversation | None:
        ...

    async def find_active_conversation(
        self, user_id: str, platform: str, channel_ref: str
    ) -> Conversation | None:
        """Return the user's active conversation on a platform channel, if any."""
        ...

    async def list_conversations(self, user_id: str) -> list[Conversation]:
        ...

    async def touch_conversation_activity(self, conversation_id: str) -> None:
        """Set ``last_activity_at`` to now."""
        ...

    # -- Messages --------------------------------------------------------------

    async def append_message(
        self,
        conversation_id: str,
        role: str,
        content: str,
        metadata: dict[str, Any] | None = None,
    ) -> str:
        ...

    async def list_recent_messages(self, conversation_id: str, limit: int) -> list[Message]:
        """Return the latest *limit* messages, oldest first."""
        ...

    # -- Memories --------------------------------------------------------------

    async def append_memory(
        self,
        user_id: str,
        type: str,  # noqa: A002
        content: str,
        importance: float = 0.5,
        context_ref: str | None = None,
    ) -> str:
        ...

    async def list_recent_memories(self, user_id: str, limit: int) -> list[Memory]:
        """Return the newest *limit* memories and bump their access stats."""
        ...

    async def list_memories_by_type(self, user_id: str, type: str) -> list[Memory]:  # noqa: A002
        ...

    # -- Code change requests --------------------------------------------------

    async def create_code_change_request(
        self,
        user_id: str,
        request: str,
        context: str,
        priority: str,
        category: str,
    ) -> str:
        ...

    async def list_code_change_requests(self, user_id: str) -> list[CodeChangeRequest]:
        """Return the user's requests, newest first."""
        ...

    async def update_code_change_status(
        self,
        request_id: str,
        status: str,
        implementation_notes: str | None = None,
    ) -> bool:
        """Move a request to a new status. Returns True if a row was updated."""
        ...

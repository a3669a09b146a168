"""Record models for conversations, messages, memories and code change requests."""

from __future__ import annotations

import json
import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

CONVERSATION_STATUSES = ("active", "paused", "archived")
MESSAGE_ROLES = ("user", "assistant")
MEMORY_TYPES = ("preference", "fact", "pattern", "goal")
REQUEST_PRIORITIES = ("low", "medium", "high")
REQUEST_CATEGORIES = ("feature", "bugfix", "refactor", "integration")
REQUEST_STATUSES = ("pending", "approved", "implemented", "declined")


def utc_now() -> str:
    """Current UTC time as an ISO 8601 string."""
    return datetime.now(UTC).isoformat()


def make_id() -> str:
    """Generate a new record ID."""
    return uuid.uuid4().hex


@dataclass
class Conversation:
    """A threaded conversation on one platform channel."""

    id: str
    user_id: str
    platform: str
    channel_ref: str
    started_at: str = ""
    last_activity_at: str = ""
    status: str = "active"

    def __post_init__(self) -> None:
        if not self.started_at:
            self.started_at = utc_now()
        if not self.last_activity_at:
            self.last_activity_at = self.started_at

    def to_row(self) -> tuple:
        return (
            self.id,
            self.user_id,
            self.platform,
            self.channel_ref,
            self.started_at,
            self.last_activity_at,
            self.status,
        )

    @classmethod
    def from_row(cls, row: tuple) -> Conversation:
        return cls(
            id=row[0],
            user_id=row[1],
            platform=row[2],
            channel_ref=row[3],
            started_at=row[4],
            last_activity_at=row[5],
            status=row[6],
        )


@dataclass
class Message:
    """A single message within a conversation.

    Attributes:
        metadata: Free-form flags such as ``agent_type``, ``context_used``
            and ``memory_extracted``. Stored as JSON.
    """

    id: str
    conversation_id: str
    role: str
    content: str
    metadata: dict[str, Any] = field(default_factory=dict)
    created_at: str = ""

    def __post_init__(self) -> None:
        if not self.created_at:
            self.created_at = utc_now()

    def to_api_message(self) -> dict[str, str]:
        """Format for a chat-completions message list."""
        return {"role": self.role, "content": self.content}

    def to_row(self) -> tuple:
        return (
            self.id,
            self.conversation_id,
            self.role,
            self.content,
            json.dumps(self.metadata),
            self.created_at,
        )

    @classmethod
    def from_row(cls, row: tuple) -> Message:
        return cls(
            id=row[0],
            conversation_id=row[1],
            role=row[2],
            content=row[3],
            metadata=json.loads(row[4]) if row[4] else {},
            created_at=row[5],
        )


@dataclass
class Memory:
    """A long-term memory used to personalize prompts.

    Attributes:
        type: One of ``MEMORY_TYPES``.
        context_ref: Optional reference to a PARA project or area.
        importance: Score in ``[0, 1]``.
        accessed_count: Number of times the memory has been retrieved.
    """

    id: str
    user_id: str
    type: str
    content: str
    importance: float = 0.5
    context_ref: str | None = None
    accessed_count: int = 0
    last_accessed: str = ""
    created_at: str = ""

    def __post_init__(self) -> None:
        if not self.created_at:
            self.created_at = utc_now()
        if not self.last_accessed:
            self.last_accessed = self.created_at

    def to_row(self) -> tuple:
        return (
            self.id,
            self.user_id,
            self.type,
            self.content,
            self.importance,
            self.context_ref,
            self.accessed_count,
            self.last_accessed,
            self.created_at,
        )

    @classmethod
    def from_row(cls, row: tuple) -> Memory:
        return cls(
            id=row[0],
            user_id=row[1],
            type=row[2],
            content=row[3],
            importance=float(row[4]),
            context_ref=row[5],
            accessed_count=int(row[6]),
            last_accessed=row[7],
            created_at=row[8],
        )


@dataclass
class CodeChangeRequest:
    """A feature or change request captured from conversation.

    Status transitions are driven by an external reviewer; the core only
    creates requests in ``pending``.
    """

    id: str
    user_id: str
    request: str
    context: str
    priority: str = "medium"
    category: str = "feature"
    status: str = "pending"
    created_at: str = ""
    implemented_at: str | None = None
    implementation_notes: str | None = None

    def __post_init__(self) -> None:
        if not self.created_at:
            self.created_at = utc_now()

    def to_row(self) -> tuple:
        return (
            self.id,
            self.user_id,
            self.request,
            self.context,
            self.priority,
            self.category,
            self.status,
            self.created_at,
            self.implemented_at,
            self.implementation_notes,
        )

    @classmethod
    def from_row(cls, row: tuple) -> CodeChangeRequest:
        return cls(
            id=row[0],
            user_id=row[1],
            request=row[2],
            context=row[3],
            priority=row[4],
            category=row[5],
            status=row[6],
            created_at=row[7],
            implemented_at=row[8],
            implementation_notes=row[9],
        )

"""SqliteRecordStore — aiosqlite persistence for conversation state."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

import aiosqlite

from assistant.config import settings
from assistant.errors import StoreError, ValidationError
from assistant.store.models import (
    MEMORY_TYPES,
    MESSAGE_ROLES,
    REQUEST_CATEGORIES,
    REQUEST_PRIORITIES,
    REQUEST_STATUSES,
    CodeChangeRequest,
    Conversation,
    Memory,
    Message,
    make_id,
    utc_now,
)

if TYPE_CHECKING:
    from collections.abc import AsyncIterator
    from pathlib import Path

logger = logging.getLogger(__name__)

_CREATE_TABLES = (
    """
    CREATE TABLE IF NOT EXISTS conversations (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        platform TEXT NOT NULL,
        channel_ref TEXT NOT NULL,
        started_at TEXT NOT NULL,
        last_activity_at TEXT NOT NULL,
        status TEXT NOT NULL DEFAULT 'active'
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS messages (
        id TEXT PRIMARY KEY,
        conversation_id TEXT NOT NULL,
        role TEXT NOT NULL,
        content TEXT NOT NULL,
        metadata TEXT NOT NULL DEFAULT '{}',
        created_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS memories (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        type TEXT NOT NULL,
        content TEXT NOT NULL,
        importance REAL NOT NULL,
        context_ref TEXT,
        accessed_count INTEGER NOT NULL DEFAULT 0,
        last_accessed TEXT NOT NULL,
        created_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS code_change_requests (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        request TEXT NOT NULL,
        context TEXT NOT NULL,
        priority TEXT NOT NULL,
        category TEXT NOT NULL,
        status TEXT NOT NULL DEFAULT 'pending',
        created_at TEXT NOT NULL,
        implemented_at TEXT,
        implementation_notes TEXT
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_conversations_user ON conversations (user_id)",
    "CREATE INDEX IF NOT EXISTS idx_messages_conversation ON messages (conversation_id)",
    "CREATE INDEX IF NOT EXISTS idx_memories_user ON memories (user_id)",
    "CREATE INDEX IF NOT EXISTS idx_requests_user ON code_change_requests (user_id)",
)


def _require(value: str, allowed: tuple[str, ...], label: str) -> None:
    if value not in allowed:
        msg = f"Invalid {label} '{value}'. Expected one of: {', '.join(allowed)}"
        raise ValidationError(msg, {label: value})


class SqliteRecordStore:
    """Persists conversations, messages, memories and code change requests.

    Defaults to ``settings.database_path``. Pass an explicit *db_path* for
    test isolation (e.g. ``tmp_path / "test.db"``).
    """

    def __init__(self, db_path: Path | None = None) -> None:
        self._db_path = db_path or settings.database_path
        self._initialised = False

    # -- Internal helpers ------------------------------------------------------

    async def _connect(self) -> aiosqlite.Connection:
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        db = await aiosqlite.connect(str(self._db_path))
        if not self._initialised:
            for statement in _CREATE_TABLES:
                await db.execute(statement)
            await db.commit()
            self._initialised = True
        return db

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[aiosqlite.Connection]:
        """Open a connection, translating driver errors into ``StoreError``."""
        try:
            db = await self._connect()
        except aiosqlite.Error as exc:
            logger.exception("Failed to open database at %s", self._db_path)
            raise StoreError(f"Failed to open database: {exc}") from exc
        try:
            yield db
        except aiosqlite.Error as exc:
            logger.exception("Store operation failed")
            raise StoreError(f"Store operation failed: {exc}") from exc
        finally:
            await db.close()

    # -- Conversations ---------------------------------------------------------

    async def create_conversation(self, user_id: str, platform: str, channel_ref: str) -> str:
        """Insert a new active conversation. Returns its ID."""
        conversation = Conversation(
            id=make_id(), user_id=user_id, platform=platform, channel_ref=channel_ref
        )
        async with self._session() as db:
            await db.execute(
                """
                INSERT INTO conversations
                    (id, user_id, platform, channel_ref, started_at, last_activity_at, status)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                conversation.to_row(),
            )
            await db.commit()
        logger.info(
            "Created conversation %s (%s/%s) for user %s",
            conversation.id,
            platform,
            channel_ref,
            user_id,
        )
        return conversation.id

    async def get_conversation(self, conversation_id: str) -> Conversation | None:
        """Fetch a conversation by ID, or None if not found."""
        async with self._session() as db:
            cursor = await db.execute(
                "SELECT * FROM conversations WHERE id = ?", (conversation_id,)
            )
            row = await cursor.fetchone()
            return Conversation.from_row(row) if row else None

    async def find_active_conversation(
        self, user_id: str, platform: str, channel_ref: str
    ) -> Conversation | None:
        """Return the most recently active conversation on a channel, if any."""
        async with self._session() as db:
            cursor = await db.execute(
                """
                SELECT * FROM conversations
                WHERE user_id = ? AND platform = ? AND channel_ref = ? AND status = 'active'
                ORDER BY last_activity_at DESC
                LIMIT 1
                """,
                (user_id, platform, channel_ref),
            )
            row = await cursor.fetchone()
            return Conversation.from_row(row) if row else None

    async def list_conversations(self, user_id: str) -> list[Conversation]:
        """Return all of a user's conversations, most recently active first."""
        async with self._session() as db:
            cursor = await db.execute(
                "SELECT * FROM conversations WHERE user_id = ? ORDER BY last_activity_at DESC",
                (user_id,),
            )
            rows = await cursor.fetchall()
            return [Conversation.from_row(row) for row in rows]

    async def touch_conversation_activity(self, conversation_id: str) -> None:
        """Set last_activity_at to now."""
        async with self._session() as db:
            await db.execute(
                "UPDATE conversations SET last_activity_at = ? WHERE id = ?",
                (utc_now(), conversation_id),
            )
            await db.commit()

    # -- Messages --------------------------------------------------------------

    async def append_message(
        self,
        conversation_id: str,
        role: str,
        content: str,
        metadata: dict[str, Any] | None = None,
    ) -> str:
        """Insert a message. Returns its ID."""
        _require(role, MESSAGE_ROLES, "role")
        message = Message(
            id=make_id(),
            conversation_id=conversation_id,
            role=role,
            content=content,
            metadata=metadata or {},
        )
        async with self._session() as db:
            await db.execute(
                """
                INSERT INTO messages (id, conversation_id, role, content, metadata, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                message.to_row(),
            )
            await db.commit()
        logger.debug("Stored %s message %s in %s", role, message.id, conversation_id)
        return message.id

    async def list_recent_messages(self, conversation_id: str, limit: int) -> list[Message]:
        """Return the latest *limit* messages, oldest first."""
        async with self._session() as db:
            cursor = await db.execute(
                """
                SELECT id, conversation_id, role, content, metadata, created_at
                FROM messages
                WHERE conversation_id = ?
                ORDER BY created_at DESC, rowid DESC
                LIMIT ?
                """,
                (conversation_id, limit),
            )
            rows = await cursor.fetchall()
        return [Message.from_row(row) for row in reversed(rows)]

    # -- Memories --------------------------------------------------------------

    async def append_memory(
        self,
        user_id: str,
        type: str,  # noqa: A002
        content: str,
        importance: float = 0.5,
        context_ref: str | None = None,
    ) -> str:
        """Insert a memory. Returns its ID."""
        _require(type, MEMORY_TYPES, "memory type")
        if not 0.0 <= importance <= 1.0:
            msg = f"Memory importance must be within [0, 1], got {importance}"
            raise ValidationError(msg, {"importance": importance})
        memory = Memory(
            id=make_id(),
            user_id=user_id,
            type=type,
            content=content,
            importance=importance,
            context_ref=context_ref,
        )
        async with self._session() as db:
            await db.execute(
                """
                INSERT INTO memories
                    (id, user_id, type, content, importance, context_ref,
                     accessed_count, last_accessed, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                memory.to_row(),
            )
            await db.commit()
        logger.debug("Stored memory [%s/%.1f]: %s", type, importance, content[:80])
        return memory.id

    async def list_recent_memories(self, user_id: str, limit: int) -> list[Memory]:
        """Return the newest *limit* memories, bumping their access stats."""
        now = utc_now()
        async with self._session() as db:
            cursor = await db.execute(
                """
                SELECT id, user_id, type, content, importance, context_ref,
                       accessed_count, last_accessed, created_at
                FROM memories
                WHERE user_id = ?
                ORDER BY created_at DESC, rowid DESC
                LIMIT ?
                """,
                (user_id, limit),
            )
            memories = [Memory.from_row(row) for row in await cursor.fetchall()]
            for memory in memories:
                await db.execute(
                    """
                    UPDATE memories
                    SET accessed_count = accessed_count + 1, last_accessed = ?
                    WHERE id = ?
                    """,
                    (now, memory.id),
                )
                memory.accessed_count += 1
                memory.last_accessed = now
            await db.commit()
        return memories

    async def list_memories_by_type(self, user_id: str, type: str) -> list[Memory]:  # noqa: A002
        """Return all of a user's memories of one type, without touching stats."""
        _require(type, MEMORY_TYPES, "memory type")
        async with self._session() as db:
            cursor = await db.execute(
                """
                SELECT id, user_id, type, content, importance, context_ref,
                       accessed_count, last_accessed, created_at
                FROM memories
                WHERE user_id = ? AND type = ?
                ORDER BY created_at DESC, rowid DESC
                """,
                (user_id, type),
            )
            rows = await cursor.fetchall()
            return [Memory.from_row(row) for row in rows]

    # -- Code change requests --------------------------------------------------

    async def create_code_change_request(
        self,
        user_id: str,
        request: str,
        context: str,
        priority: str,
        category: str,
    ) -> str:
        """Insert a pending code change request. Returns its ID."""
        _require(priority, REQUEST_PRIORITIES, "priority")
        _require(category, REQUEST_CATEGORIES, "category")
        record = CodeChangeRequest(
            id=make_id(),
            user_id=user_id,
            request=request,
            context=context,
            priority=priority,
            category=category,
        )
        async with self._session() as db:
            await db.execute(
                """
                INSERT INTO code_change_requests
                    (id, user_id, request, context, priority, category, status,
                     created_at, implemented_at, implementation_notes)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                record.to_row(),
            )
            await db.commit()
        logger.info(
            "Captured code change request %s [%s/%s]: %s",
            record.id,
            category,
            priority,
            request[:80],
        )
        return record.id

    async def list_code_change_requests(self, user_id: str) -> list[CodeChangeRequest]:
        """Return a user's requests, newest first."""
        async with self._session() as db:
            cursor = await db.execute(
                """
                SELECT * FROM code_change_requests
                WHERE user_id = ?
                ORDER BY created_at DESC, rowid DESC
                """,
                (user_id,),
            )
            rows = await cursor.fetchall()
            return [CodeChangeRequest.from_row(row) for row in rows]

    async def update_code_change_status(
        self,
        request_id: str,
        status: str,
        implementation_notes: str | None = None,
    ) -> bool:
        """Move a request to *status*. Returns True if a row was updated.

        Moving to ``implemented`` stamps ``implemented_at``. Notes are only
        overwritten when given.
        """
        _require(status, REQUEST_STATUSES, "status")
        assignments = ["status = ?"]
        params: list[Any] = [status]
        if status == "implemented":
            assignments.append("implemented_at = ?")
            params.append(utc_now())
        if implementation_notes:
            assignments.append("implementation_notes = ?")
            params.append(implementation_notes)
        params.append(request_id)

        async with self._session() as db:
            cursor = await db.execute(
                f"UPDATE code_change_requests SET {', '.join(assignments)} WHERE id = ?",  # noqa: S608
                tuple(params),
            )
            await db.commit()
            updated = cursor.rowcount > 0
        if updated:
            logger.info("Code change request %s → %s", request_id, status)
        return updated


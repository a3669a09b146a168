"""Record store — models, protocol, and the SQLite backend."""

from assistant.store.base import RecordStore
from assistant.store.models import CodeChangeRequest, Conversation, Memory, Message
from assistant.store.sqlite import SqliteRecordStore

__all__ = [
    "CodeChangeRequest",
    "Conversation",
    "Memory",
    "Message",
    "RecordStore",
    "SqliteRecordStore",
]

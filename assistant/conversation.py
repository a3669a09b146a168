"""Conversation resolution and history loading."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

from assistant.errors import ValidationError

if TYPE_CHECKING:
    from assistant.store.base import RecordStore
    from assistant.store.models import Message

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExistingConversation:
    """Continue a conversation the caller already knows the ID of."""

    conversation_id: str


@dataclass(frozen=True)
class NewConversation:
    """Start (or resume) the conversation on a platform channel.

    If the user already has an active conversation on this channel it is
    reused; otherwise one is created.
    """

    platform: str
    channel_ref: str


ConversationRef = ExistingConversation | NewConversation


def fresh_channel(platform: str) -> NewConversation:
    """A one-off channel such as a CLI session, keyed by the current time."""
    return NewConversation(platform=platform, channel_ref=f"{platform}-{int(time.time() * 1000)}")


async def check_conversation(store: RecordStore, ref: ConversationRef, user_id: str) -> None:
    """Validate *ref* without writing anything.

    Raises:
        ValidationError: For blank fields, an unknown conversation ID, or a
            conversation owned by another user.
    """
    match ref:
        case ExistingConversation(conversation_id=conversation_id):
            if not conversation_id.strip():
                raise ValidationError("conversation_id must not be empty")
            conversation = await store.get_conversation(conversation_id)
            if conversation is None:
                msg = f"Unknown conversation: {conversation_id}"
                raise ValidationError(msg, {"conversation_id": conversation_id})
            if conversation.user_id != user_id:
                msg = f"Conversation {conversation_id} does not belong to user {user_id}"
                raise ValidationError(msg, {"conversation_id": conversation_id})
        case NewConversation(platform=platform, channel_ref=channel_ref):
            if not platform.strip() or not channel_ref.strip():
                raise ValidationError("platform and channel_ref must not be empty")


async def resolve_conversation(store: RecordStore, ref: ConversationRef, user_id: str) -> str:
    """Return the conversation ID for *ref*, creating one if needed.

    Call ``check_conversation`` first; this function assumes *ref* is valid.
    """
    match ref:
        case ExistingConversation(conversation_id=conversation_id):
            return conversation_id
        case NewConversation(platform=platform, channel_ref=channel_ref):
            existing = await store.find_active_conversation(user_id, platform, channel_ref)
            if existing is not None:
                logger.debug("Resuming conversation %s on %s/%s", existing.id, platform, channel_ref)
                return existing.id
            return await store.create_conversation(user_id, platform, channel_ref)
    msg = f"Unsupported conversation reference: {ref!r}"
    raise ValidationError(msg)


async def load_history(store: RecordStore, conversation_id: str, limit: int = 20) -> list[Message]:
    """Return the last *limit* messages of a conversation, oldest first."""
    return await store.list_recent_messages(conversation_id, limit)

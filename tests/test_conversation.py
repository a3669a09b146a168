"""Tests for conversation resolution."""

import pytest

from assistant.conversation import (
    ExistingConversation,
    NewConversation,
    check_conversation,
    fresh_channel,
    load_history,
    resolve_conversation,
)
from assistant.errors import ValidationError
from assistant.store.sqlite import SqliteRecordStore


async def test_new_conversation_is_created(store: SqliteRecordStore) -> None:
    ref = NewConversation(platform="discord", channel_ref="dm-1")
    await check_conversation(store, ref, "u1")
    conv_id = await resolve_conversation(store, ref, "u1")

    conv = await store.get_conversation(conv_id)
    assert conv.platform == "discord"
    assert conv.channel_ref == "dm-1"
    assert conv.user_id == "u1"


async def test_same_channel_reuses_active_conversation(store: SqliteRecordStore) -> None:
    ref = NewConversation(platform="discord", channel_ref="dm-1")
    first = await resolve_conversation(store, ref, "u1")
    second = await resolve_conversation(store, ref, "u1")

    assert first == second
    assert len(await store.list_conversations("u1")) == 1


async def test_same_channel_other_user_gets_own_conversation(store: SqliteRecordStore) -> None:
    ref = NewConversation(platform="discord", channel_ref="shared")
    assert await resolve_conversation(store, ref, "u1") != await resolve_conversation(
        store, ref, "u2"
    )


async def test_existing_conversation(store: SqliteRecordStore) -> None:
    conv_id = await store.create_conversation("u1", "cli", "cli-1")
    ref = ExistingConversation(conversation_id=conv_id)

    await check_conversation(store, ref, "u1")
    assert await resolve_conversation(store, ref, "u1") == conv_id


async def test_unknown_conversation_rejected(store: SqliteRecordStore) -> None:
    with pytest.raises(ValidationError, match="Unknown conversation"):
        await check_conversation(store, ExistingConversation("missing"), "u1")


async def test_foreign_conversation_rejected(store: SqliteRecordStore) -> None:
    conv_id = await store.create_conversation("u1", "cli", "cli-1")
    with pytest.raises(ValidationError, match="does not belong"):
        await check_conversation(store, ExistingConversation(conv_id), "intruder")


@pytest.mark.parametrize(
    "ref",
    [
        ExistingConversation(" "),
        NewConversation(platform="", channel_ref="x"),
        NewConversation(platform="cli", channel_ref="  "),
    ],
)
async def test_blank_refs_rejected(store: SqliteRecordStore, ref) -> None:
    with pytest.raises(ValidationError):
        await check_conversation(store, ref, "u1")
    assert await store.list_conversations("u1") == []


def test_fresh_channel() -> None:
    ref = fresh_channel("cli")
    assert ref.platform == "cli"
    assert ref.channel_ref.startswith("cli-")
    assert ref.channel_ref.removeprefix("cli-").isdigit()


async def test_load_history(store: SqliteRecordStore) -> None:
    conv_id = await store.create_conversation("u1", "cli", "cli-1")
    for i in range(4):
        await store.append_message(conv_id, "user", f"m{i}")

    history = await load_history(store, conv_id, limit=2)
    assert [m.content for m in history] == ["m2", "m3"]

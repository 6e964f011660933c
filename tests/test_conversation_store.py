"""Tests for :mod:`conversation_store`."""

from __future__ import annotations

import logging
import random

import pytest

from conversation_store import ConversationStore
from models import Conversation, Message


class RecordingListener:
    def __init__(self) -> None:
        self.pushed: list[Conversation] = []
        self.removed: list[str] = []

    def push(self, conversation: Conversation) -> None:
        self.pushed.append(conversation)

    def remove(self, conversation_id: str) -> None:
        self.removed.append(conversation_id)


@pytest.fixture()
def listener() -> RecordingListener:
    return RecordingListener()


@pytest.fixture()
def store(listener: RecordingListener) -> ConversationStore:
    return ConversationStore(listener=listener)


def test_starts_with_single_active_default() -> None:
    store = ConversationStore()

    assert len(store) == 1
    assert store.active is not None
    assert store.active.title == "New Chat 1"
    assert store.active.messages == ()
    assert store.active_id == store.active.id


def test_new_conversation_is_numbered_activated_and_pushed(store, listener) -> None:
    created = store.new_conversation()

    assert created.title == "New Chat 2"
    assert store.active_id == created.id
    assert listener.pushed == [created]


def test_mutate_messages_preserves_other_conversations(store, listener) -> None:
    first = store.active
    second = store.new_conversation()
    listener.pushed.clear()

    updated = store.append_message(first.id, Message(role="user", text="hello"))

    assert updated is not None
    assert [m.text for m in store.get(first.id).messages] == ["hello"]
    assert store.get(second.id) is second
    assert listener.pushed == [updated]


def test_mutate_unknown_conversation_is_noop(store, listener) -> None:
    before = store.conversations

    assert store.mutate_messages("missing", lambda messages: (*messages, Message(role="user", text="x"))) is None
    assert store.conversations == before
    assert listener.pushed == []


@pytest.mark.parametrize("title", ["", "   ", "\n\t", None])
def test_rename_rejects_blank_titles(store, listener, title) -> None:
    conversation = store.active

    assert store.rename(conversation.id, title) is False
    assert store.get(conversation.id).title == "New Chat 1"
    assert listener.pushed == []


def test_rename_trims_and_pushes(store, listener) -> None:
    conversation = store.active

    assert store.rename(conversation.id, "  Holiday plans ")
    assert store.get(conversation.id).title == "Holiday plans"
    assert listener.pushed[-1].title == "Holiday plans"


def test_clear_empties_messages(store, listener) -> None:
    conversation = store.active
    store.append_message(conversation.id, Message(role="user", text="a"))
    store.append_message(conversation.id, Message(role="ai", text="b"))

    store.clear(conversation.id)

    assert store.get(conversation.id).messages == ()
    assert listener.pushed[-1].messages == ()


def test_deleting_last_conversation_synthesizes_default(store, listener) -> None:
    only = store.active
    store.rename(only.id, "Keep me")
    listener.pushed.clear()

    assert store.delete(only.id)

    assert len(store) == 1
    replacement = store.active
    assert replacement.id != only.id
    assert replacement.title == "New Chat 1"
    assert replacement.messages == ()
    assert listener.removed == [only.id]
    assert listener.pushed == [replacement]


def test_deleting_active_selects_first_remaining(store, listener) -> None:
    first = store.active
    second = store.new_conversation()
    third = store.new_conversation()

    store.delete(third.id)

    assert store.active_id == first.id
    assert [c.id for c in store.conversations] == [first.id, second.id]


def test_deleting_inactive_keeps_selection(store) -> None:
    first = store.active
    second = store.new_conversation()

    store.delete(first.id)

    assert store.active_id == second.id


def test_set_active_unknown_id_is_logged_noop(store, caplog) -> None:
    active = store.active_id

    with caplog.at_level(logging.WARNING):
        assert store.set_active("nope") is False

    assert store.active_id == active
    assert "nope" in caplog.text


def test_titles_may_repeat_after_deletes(store) -> None:
    first = store.active
    second = store.new_conversation()
    store.delete(first.id)

    again = store.new_conversation()

    assert again.title == second.title == "New Chat 2"
    assert again.id != second.id


def test_replace_all_keeps_active_when_present(store) -> None:
    keep = store.active
    other = Conversation(id="remote-1", title="Remote", created_at=1)

    store.replace_all([other, keep])

    assert store.active_id == keep.id
    assert store.conversations == (other, keep)


def test_replace_all_falls_back_to_first(store) -> None:
    a = Conversation(id="a", title="A", created_at=1)
    b = Conversation(id="b", title="B", created_at=2)

    store.replace_all([a, b])

    assert store.active_id == "a"


def test_reset_discards_everything_without_pushing(store, listener) -> None:
    store.new_conversation()
    old_ids = {c.id for c in store.conversations}
    listener.pushed.clear()

    fresh = store.reset()

    assert store.conversations == (fresh,)
    assert fresh.id not in old_ids
    assert listener.pushed == []


def test_random_create_delete_sequences_never_empty_the_store() -> None:
    rng = random.Random(1234)
    store = ConversationStore()

    for _ in range(500):
        if rng.random() < 0.45:
            store.new_conversation()
        else:
            victim = rng.choice(store.conversations)
            store.delete(victim.id)
        ids = [c.id for c in store.conversations]
        assert ids
        assert len(ids) == len(set(ids))
        assert store.active is not None
        assert store.active_id in ids

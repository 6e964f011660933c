"""Tests for :mod:`models`."""

from __future__ import annotations

import datetime as dt

import models
from models import Conversation, ExchangeReply, Message, create_default


def test_create_default_titles_and_empties() -> None:
    conversation = create_default(3)

    assert conversation.title == "New Chat 3"
    assert conversation.messages == ()
    assert conversation.id
    assert conversation.created_at > 0


def test_default_ids_are_distinct() -> None:
    ids = {create_default().id for _ in range(200)}
    assert len(ids) == 200


def test_id_falls_back_to_timestamp_without_secure_random(monkeypatch) -> None:
    def no_random():
        raise NotImplementedError("no urandom")

    monkeypatch.setattr(models.uuid, "uuid4", no_random)
    monkeypatch.setattr(models, "now_ms", lambda: 1_700_000_000_000)

    assert models.new_conversation_id() == "1700000000000"


def test_conversation_document_round_trip_uses_camel_case() -> None:
    conversation = Conversation(
        id="c1",
        title="Trip",
        created_at=10,
        messages=(
            Message(role="user", text="hello", timestamp=11),
            Message(role="ai", text="hi", timestamp=12, audio_url="blob:abc"),
        ),
    )

    document = conversation.asdict()

    assert document == {
        "id": "c1",
        "title": "Trip",
        "createdAt": 10,
        "messages": [
            {"role": "user", "text": "hello", "timestamp": 11},
            {"role": "ai", "text": "hi", "timestamp": 12, "audioUrl": "blob:abc"},
        ],
    }
    assert Conversation.from_dict(document) == conversation


def test_from_dict_tolerates_bad_fields() -> None:
    conversation = Conversation.from_dict(
        {
            "id": "c2",
            "title": None,
            "createdAt": dt.datetime(2024, 1, 1, tzinfo=dt.timezone.utc),
            "messages": ["junk", {"role": "robot", "text": 5}],
        }
    )

    assert conversation.title == ""
    assert conversation.created_at == 1_704_067_200_000
    assert len(conversation.messages) == 1
    assert conversation.messages[0].role == "user"
    assert conversation.messages[0].text == "5"


def test_with_messages_leaves_original_untouched() -> None:
    original = create_default()
    updated = original.with_messages(lambda messages: (*messages, Message(role="user", text="x")))

    assert original.messages == ()
    assert len(updated.messages) == 1
    assert updated.id == original.id


def test_exchange_reply_requires_both_fields() -> None:
    assert ExchangeReply.from_dict({"replyText": "hi", "audioBase64": "AAAA"}) is not None
    assert ExchangeReply.from_dict({"replyText": "hi"}) is None
    assert ExchangeReply.from_dict({"audioBase64": "AAAA"}) is None
    assert ExchangeReply.from_dict({"replyText": "", "audioBase64": "AAAA"}) is None

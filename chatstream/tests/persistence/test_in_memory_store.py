"""Tests for the process-local chat store."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from chatstream.base.models import ChatModel, Message
from chatstream.persistence import ChatRecord, InMemoryChatStore, NotFound
from chatstream.persistence.interfaces.repos import make_preview

T0 = datetime(2024, 5, 1, tzinfo=timezone.utc)


def _record(text: str, ts: datetime = T0) -> ChatRecord:
    return ChatRecord(None, ts, ChatModel.GPT_5, (Message.user(text), Message(role="assistant", content="ok")))


def test_same_contract_as_sqlite_store():
    store = InMemoryChatStore()
    a = store.append(_record("a"))
    b = store.append(_record("b"))
    c = store.append(_record("c", T0 - timedelta(hours=1)))

    assert (a, b, c) == (1, 2, 3)  # nosec B101 - pytest assert in tests
    assert [s.id for s in store.list()] == [b, a, c]  # nosec B101 - pytest assert in tests
    assert [s.id for s in store.list(1)] == [b]  # nosec B101 - pytest assert in tests
    assert store.get(a) == _record("a").with_id(a)  # nosec B101 - pytest assert in tests
    assert len(store) == 3  # nosec B101 - pytest assert in tests
    with pytest.raises(NotFound):
        store.get(42)


def test_seed_records_get_fresh_ids():
    store = InMemoryChatStore([_record("x").with_id(99)])
    assert store.get(1).messages[0].content == "x"  # nosec B101 - pytest assert in tests


def test_preview_uses_first_user_text_or_image_label():
    store = InMemoryChatStore()
    rid = store.append(
        ChatRecord(None, T0, "gpt-5", (Message(role="system", content="s"), Message.user("", ["https://a"])))
    )
    assert store.list()[0].preview == "Image" and store.list()[0].id == rid  # nosec B101 - pytest assert in tests


def test_make_preview_collapses_whitespace_and_truncates():
    assert make_preview("  a \n b\tc  ") == "a b c"  # nosec B101 - pytest assert in tests
    assert make_preview("x" * 70, limit=10) == "x" * 10 + "…"  # nosec B101 - pytest assert in tests

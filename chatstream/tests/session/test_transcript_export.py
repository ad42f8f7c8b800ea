"""Tests for the transcript invariants and the Markdown/JSON exports."""
from __future__ import annotations

import json
from datetime import datetime

import pytest

from chatstream.base.models import Message, Settings
from chatstream.session import Transcript, TranscriptError, to_json, to_markdown

SYSTEM = Message(role="system", content="rules")
USER = Message(role="user", content="Hi")
REPLY = Message(role="assistant", content="Hello")


def test_system_message_only_at_index_zero():
    with pytest.raises(TranscriptError):
        Transcript([USER, SYSTEM])
    t = Transcript([USER])
    assert t.insert_system("rules") is True  # nosec B101 - pytest assert in tests
    assert t.insert_system("other") is False  # nosec B101 - pytest assert in tests
    assert t.messages[0] == SYSTEM and len(t) == 2  # nosec B101 - pytest assert in tests


def test_placeholder_is_not_part_of_snapshot():
    t = Transcript([SYSTEM])
    t.append_user(USER)
    t.append_assistant_placeholder()
    assert t.has_placeholder and t.messages == (SYSTEM, USER)  # nosec B101 - pytest assert in tests
    with pytest.raises(TranscriptError):
        t.append_user(USER)
    assert t.commit_assistant("Hello") == REPLY  # nosec B101 - pytest assert in tests
    assert t.messages == (SYSTEM, USER, REPLY) and not t.has_placeholder  # nosec B101 - pytest assert in tests


def test_placeholder_requires_user_tail():
    t = Transcript([SYSTEM])
    with pytest.raises(TranscriptError):
        t.append_assistant_placeholder()
    with pytest.raises(TranscriptError):
        t.commit_assistant("x")
    with pytest.raises(TranscriptError):
        t.append_user(REPLY)


def test_pop_assistant_only_removes_trailing_reply():
    t = Transcript([SYSTEM, USER, REPLY])
    assert t.pop_assistant() == REPLY  # nosec B101 - pytest assert in tests
    assert t.pop_assistant() is None  # nosec B101 - pytest assert in tests
    assert t.messages == (SYSTEM, USER)  # nosec B101 - pytest assert in tests


def test_reset_and_load():
    t = Transcript([SYSTEM, USER])
    t.reset()
    assert len(t) == 0 and t.last is None and not t.has_system  # nosec B101 - pytest assert in tests
    t.load([SYSTEM, USER, REPLY])
    assert list(t) == [SYSTEM, USER, REPLY]  # nosec B101 - pytest assert in tests
    with pytest.raises(TranscriptError):
        t.load([USER, SYSTEM])
    assert list(t) == [SYSTEM, USER, REPLY]  # nosec B101 - pytest assert in tests


def test_markdown_export_layout():
    settings = Settings(model="gpt-5", effort="high", system_prompt="unused")
    messages = [SYSTEM, Message.user("look", ["https://a"]), REPLY]
    text = to_markdown(messages, settings, now=datetime(2024, 3, 4, 5, 6, 7))

    lines = text.splitlines()
    assert lines[0] == "# Chat Export"  # nosec B101 - pytest assert in tests
    assert "Date: 2024-03-04 05:06:07" in lines  # nosec B101 - pytest assert in tests
    assert "Model: gpt-5" in lines and "Reasoning Effort: high" in lines  # nosec B101 - pytest assert in tests
    assert "```\nrules\n```" in text  # nosec B101 - pytest assert in tests
    assert "unused" not in text  # nosec B101 - pytest assert in tests
    assert "## User\nlook\n[image]" in text  # nosec B101 - pytest assert in tests
    assert "## Assistant\nHello" in text  # nosec B101 - pytest assert in tests
    assert text.index("---") < text.index("## User")  # nosec B101 - pytest assert in tests


def test_markdown_export_falls_back_to_configured_prompt():
    text = to_markdown([USER], Settings(system_prompt="configured"), now=datetime(2024, 1, 1))
    assert "```\nconfigured\n```" in text  # nosec B101 - pytest assert in tests


def test_json_export_uses_wire_form():
    data = json.loads(to_json([SYSTEM, Message.user("x", ["https://a"])]))
    assert data[0] == {"role": "system", "content": "rules"}  # nosec B101 - pytest assert in tests
    assert data[1]["content"][1] == {"type": "image_url", "image_url": {"url": "https://a"}}  # nosec B101 - pytest assert in tests

"""Tests for message/settings models and the pydantic validation edge."""
from __future__ import annotations

import pytest
from pydantic import ValidationError

from chatstream.base.dto import build_user_message, parse_transcript
from chatstream.base.models import ChatModel, ContentPart, Effort, Message, Settings


def test_user_message_with_images_becomes_parts_text_first():
    msg = Message.user("look", ["https://a", "data:image/png;base64,AAA"])
    assert msg.content == (  # nosec B101 - pytest assert in tests
        ContentPart.text("look"),
        ContentPart.image("https://a"),
        ContentPart.image("data:image/png;base64,AAA"),
    )
    assert msg.text_or_joined() == "look\n[image]\n[image]"  # nosec B101 - pytest assert in tests


def test_image_only_message_has_no_text_part():
    msg = Message.user("", ["https://a"])
    assert msg.content == (ContentPart.image("https://a"),)  # nosec B101 - pytest assert in tests
    assert msg.preview_text() == "Image"  # nosec B101 - pytest assert in tests


def test_message_content_lists_are_frozen():
    msg = Message(role="user", content=[ContentPart.text("a")])
    assert isinstance(msg.content, tuple)  # nosec B101 - pytest assert in tests
    assert hash(msg) == hash(Message(role="user", content=(ContentPart.text("a"),)))  # nosec B101 - pytest assert in tests


def test_storage_and_wire_forms_differ_for_parts():
    msg = Message.user("hi", ["https://a"])
    assert msg.to_dict()["content"][1] == {"kind": "image", "value": "https://a"}  # nosec B101 - pytest assert in tests
    assert msg.to_wire()["content"][1] == {"type": "image_url", "image_url": {"url": "https://a"}}  # nosec B101 - pytest assert in tests


def test_model_and_effort_parsing():
    assert ChatModel.parse(" GPT-5 ") is ChatModel.GPT_5  # nosec B101 - pytest assert in tests
    assert Effort.parse("HIGH") is Effort.HIGH  # nosec B101 - pytest assert in tests
    with pytest.raises(ValueError, match="unknown model"):
        ChatModel.parse("gpt-2")
    with pytest.raises(ValueError, match="unknown effort"):
        Effort.parse("max")


def test_settings_validate_and_hide_key():
    s = Settings(api_key="sk-secret", model="gpt-4", effort="low")
    assert s.model is ChatModel.GPT_4 and s.effort is Effort.LOW  # nosec B101 - pytest assert in tests
    assert "sk-secret" not in repr(s)  # nosec B101 - pytest assert in tests
    assert s.with_changes(effort="high").effort is Effort.HIGH  # nosec B101 - pytest assert in tests
    assert s.effort is Effort.LOW  # nosec B101 - pytest assert in tests
    with pytest.raises(ValueError):
        s.with_changes(model="nope")


def test_effort_params_by_model_family():
    assert Settings(model="gpt-5", effort="low").effort_params() == {"reasoning_effort": "low"}  # nosec B101 - pytest assert in tests
    assert Settings(model="gpt-3.5-turbo", effort="high").effort_params() == {"temperature": 1.0, "top_p": 1.0}  # nosec B101 - pytest assert in tests


def test_settings_from_config_mapping():
    s = Settings.from_config({"api_key": "k", "model": "gpt-5", "effort": "high", "base_url": "https://x/v1", "system_prompt": ""})
    assert s.has_api_key and s.model is ChatModel.GPT_5 and s.system_prompt == ""  # nosec B101 - pytest assert in tests


def test_build_user_message_strips_and_validates():
    assert build_user_message("  hi  ") == Message(role="user", content="hi")  # nosec B101 - pytest assert in tests
    with pytest.raises(ValidationError):
        build_user_message("   ")
    with pytest.raises(ValidationError):
        build_user_message("hi", ["  "])
    assert build_user_message("", ["https://a"]).image_urls() == ("https://a",)  # nosec B101 - pytest assert in tests


def test_parse_transcript_accepts_storage_form():
    messages = parse_transcript(
        '[{"role": "system", "content": "s"},'
        ' {"role": "user", "content": [{"kind": "text", "value": "t"}, {"kind": "image", "value": "u"}]},'
        ' {"role": "assistant", "content": ""}]'
    )
    assert [m.role for m in messages] == ["system", "user", "assistant"]  # nosec B101 - pytest assert in tests
    assert messages[1].image_urls() == ("u",)  # nosec B101 - pytest assert in tests


@pytest.mark.parametrize(
    "data",
    [
        [{"role": "tool", "content": "x"}],
        [{"role": "user", "content": ""}],
        [{"role": "user", "content": []}],
        [{"role": "user", "content": [{"kind": "image", "value": ""}]}],
    ],
)
def test_parse_transcript_rejects_invalid_messages(data):
    with pytest.raises(ValidationError):
        parse_transcript(data)

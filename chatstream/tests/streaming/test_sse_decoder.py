"""Unit tests for the ``data:`` line decoder.

Covers line reassembly across chunk boundaries, multi-byte characters split
between chunks, CRLF terminators, ignored and malformed lines, token usage
reports and the ``[DONE]`` sentinel.
"""
from __future__ import annotations

import json

from chatstream.base.streaming.sse_decoder import (
    LineBuffer,
    LineKind,
    SseStreamDecoder,
    decode_line,
    extract_delta_content,
)
from chatstream.base.streaming import TokenUsage
from chatstream.tests.helpers import sse_body, sse_line


def _fragments(decoder: SseStreamDecoder, chunks) -> list:
    out = []
    for chunk in chunks:
        out.extend(d.fragment for d in decoder.feed(chunk) if d.kind is LineKind.FRAGMENT)
    out.extend(d.fragment for d in decoder.finish() if d.kind is LineKind.FRAGMENT)
    return out


def test_line_split_across_chunks_is_reassembled():
    line = sse_line("Hello")
    decoder = SseStreamDecoder()
    assert _fragments(decoder, [line[:7], line[7:20], line[20:]]) == ["Hello"]  # nosec B101 - pytest assert in tests


def test_every_byte_in_its_own_chunk():
    body = sse_body("ab", "cd")
    decoder = SseStreamDecoder()
    chunks = [body[i:i + 1] for i in range(len(body))]
    assert _fragments(decoder, chunks) == ["ab", "cd"]  # nosec B101 - pytest assert in tests


def test_multibyte_character_split_between_chunks():
    line = sse_line("héllo ✓")
    # json.dumps escapes non-ascii by default; build a raw UTF-8 line instead.
    raw = ('data: ' + json.dumps({"choices": [{"delta": {"content": "héllo ✓"}}]}, ensure_ascii=False) + "\n").encode("utf-8")
    cut = raw.index("✓".encode("utf-8")) + 1
    decoder = SseStreamDecoder()
    assert _fragments(decoder, [raw[:cut], raw[cut:]]) == ["héllo ✓"]  # nosec B101 - pytest assert in tests
    assert _fragments(SseStreamDecoder(), [line]) == ["héllo ✓"]  # nosec B101 - pytest assert in tests


def test_crlf_terminators_are_stripped():
    buf = LineBuffer()
    assert buf.feed(b"data: a\r\ndata: b\r") == ["data: a"]  # nosec B101 - pytest assert in tests
    assert buf.feed(b"\n") == ["data: b"]  # nosec B101 - pytest assert in tests
    assert buf.flush() == []  # nosec B101 - pytest assert in tests


def test_trailing_partial_line_is_flushed_at_end_of_body():
    buf = LineBuffer()
    assert buf.feed(b"data: [DONE]") == []  # nosec B101 - pytest assert in tests
    assert buf.flush() == ["data: [DONE]"]  # nosec B101 - pytest assert in tests


def test_lines_without_data_prefix_are_ignored():
    for line in ("", ": keep-alive", "event: message", "id: 7", "data:", "data:   "):
        assert decode_line(line).kind is LineKind.IGNORED  # nosec B101 - pytest assert in tests


def test_done_sentinel_with_and_without_space():
    assert decode_line("data: [DONE]").kind is LineKind.DONE  # nosec B101 - pytest assert in tests
    assert decode_line("data:[DONE]").kind is LineKind.DONE  # nosec B101 - pytest assert in tests


def test_malformed_json_is_reported_not_raised():
    decoded = decode_line("data: {not json")
    assert decoded.kind is LineKind.MALFORMED  # nosec B101 - pytest assert in tests
    assert decoded.fragment is None and decoded.error  # nosec B101 - pytest assert in tests


def test_payloads_without_text_are_ignored():
    for payload in (
        {"choices": []},
        {"choices": [{"delta": {}}]},
        {"choices": [{"delta": {"role": "assistant"}}]},
        {"choices": [{"delta": {"content": None}}]},
        {"choices": [{"delta": {"content": ""}}]},
        [1, 2, 3],
    ):
        assert decode_line("data: " + json.dumps(payload)).kind is LineKind.IGNORED  # nosec B101 - pytest assert in tests


def test_usage_is_decoded_alone_and_alongside_text():
    alone = decode_line("data: " + json.dumps({"choices": [], "usage": {"prompt_tokens": 9, "completion_tokens": 3, "total_tokens": 12}}))
    assert alone.kind is LineKind.USAGE and alone.fragment is None  # nosec B101 - pytest assert in tests
    assert alone.usage == TokenUsage(12, 9, 3)  # nosec B101 - pytest assert in tests

    both = decode_line("data: " + json.dumps({"choices": [{"delta": {"content": "x"}}], "usage": {"total_tokens": 4}}))
    assert both.kind is LineKind.FRAGMENT and both.fragment == "x"  # nosec B101 - pytest assert in tests
    assert both.usage == TokenUsage(4)  # nosec B101 - pytest assert in tests


def test_usage_without_integer_total_is_ignored():
    for usage in ({"prompt_tokens": 2}, {"total_tokens": "7"}, {"total_tokens": True}, "12"):
        assert decode_line("data: " + json.dumps({"usage": usage})).kind is LineKind.IGNORED  # nosec B101 - pytest assert in tests
    assert TokenUsage(5, completion_tokens=2).to_dict() == {"total_tokens": 5, "completion_tokens": 2}  # nosec B101 - pytest assert in tests


def test_extract_delta_content_rejects_non_string_content():
    assert extract_delta_content({"choices": [{"delta": {"content": 5}}]}) is None  # nosec B101 - pytest assert in tests
    assert extract_delta_content({"choices": [{"delta": {"content": "x"}}]}) == "x"  # nosec B101 - pytest assert in tests


def test_decoder_keeps_going_after_malformed_line():
    body = sse_line("a") + b"data: {oops\n\n" + sse_line("b")
    kinds = [d.kind for d in SseStreamDecoder().feed(body)]
    assert LineKind.MALFORMED in kinds  # nosec B101 - pytest assert in tests
    assert _fragments(SseStreamDecoder(), [body]) == ["a", "b"]  # nosec B101 - pytest assert in tests

"""Unit tests for failure classification and server message extraction."""
from __future__ import annotations

import httpx
import pytest

from chatstream.base.cancellation import CancelledError
from chatstream.base.errors import (
    ChatError,
    FailureKind,
    classify_exception,
    extract_error_message,
)


class _StatusError(Exception):
    def __init__(self, status: int) -> None:
        super().__init__(f"status {status}")
        self.status_code = status


@pytest.mark.parametrize(
    "exc",
    [
        httpx.ConnectError("refused"),
        httpx.ReadTimeout("slow"),
        httpx.ReadError("reset"),
        TimeoutError("t"),
        ConnectionResetError("peer"),
        CancelledError("stop"),
    ],
)
def test_transport_family_maps_to_transport(exc):
    assert classify_exception(exc) is FailureKind.TRANSPORT  # nosec B101 - pytest assert in tests


@pytest.mark.parametrize("status", [400, 401, 403, 404, 429, 500, 503])
def test_any_http_status_maps_to_server(status):
    assert classify_exception(_StatusError(status)) is FailureKind.SERVER  # nosec B101 - pytest assert in tests


def test_http_status_error_maps_to_server():
    request = httpx.Request("POST", "https://api.test/v1/chat/completions")
    response = httpx.Response(401, request=request)
    exc = httpx.HTTPStatusError("unauthorized", request=request, response=response)
    assert classify_exception(exc) is FailureKind.SERVER  # nosec B101 - pytest assert in tests


def test_chat_error_passes_its_kind_through():
    err = ChatError(FailureKind.DECODE, "bad frame")
    assert classify_exception(err) is FailureKind.DECODE  # nosec B101 - pytest assert in tests


def test_unknown_exception_defaults_to_transport():
    assert classify_exception(RuntimeError("?")) is FailureKind.TRANSPORT  # nosec B101 - pytest assert in tests


def test_error_message_prefers_json_error_message():
    body = b'{"error": {"message": "invalid key", "type": "auth"}}'
    assert extract_error_message(body, 401) == "invalid key"  # nosec B101 - pytest assert in tests


def test_error_message_accepts_string_error_field():
    assert extract_error_message('{"error": "quota"}', 429) == "quota"  # nosec B101 - pytest assert in tests


def test_error_message_falls_back_to_body_text_then_status():
    assert extract_error_message(b"  upstream down \n", 502) == "upstream down"  # nosec B101 - pytest assert in tests
    assert extract_error_message(b"", 503, "Service Unavailable") == "HTTP 503 Service Unavailable"  # nosec B101 - pytest assert in tests
    assert extract_error_message(b"", 599) == "HTTP 599"  # nosec B101 - pytest assert in tests


def test_failure_kind_values_are_stable():
    assert [k.value for k in FailureKind] == [  # nosec B101 - pytest assert in tests
        "auth_error",
        "transport_error",
        "server_error",
        "decode_error",
    ]

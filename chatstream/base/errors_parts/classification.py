"""
Error classification helpers mapping exceptions to normalized FailureKind values.

Implements HTTP status extraction and maps ``httpx`` exception families to
the small failure taxonomy used by the streaming client.
"""
from __future__ import annotations

import json
from typing import Any, Optional

import httpx

from ..cancellation_parts.cancelled_error import CancelledError
from .chat_error import ChatError
from .failure_kind import FailureKind


def _extract_status(exc: Exception) -> Optional[int]:
    """Attempt to extract an HTTP status code from an exception.

    Supported attribute shapes (checked in order):
    - ``exc.status`` / ``exc.status_code``
    - ``exc.response.status_code``
    Returns ``None`` if no valid status can be found.
    """
    for attr in ("status", "status_code"):
        val = getattr(exc, attr, None)
        if isinstance(val, int) and 100 <= val < 600:
            return val
    resp = getattr(exc, "response", None)
    if resp is not None:
        sc = getattr(resp, "status_code", None)
        if isinstance(sc, int) and 100 <= sc < 600:
            return sc
    return None


def extract_error_message(body: bytes | str, status: int, reason: str = "") -> str:
    """Return the message to surface for a non-success response body.

    Precedence:
        1. ``error.message`` of a JSON body (or ``error`` when it is a string).
        2. The raw body text, stripped.
        3. ``"HTTP <status> <reason>"``.
    """
    text = body.decode("utf-8", errors="replace") if isinstance(body, bytes) else str(body or "")
    text = text.strip()
    if text:
        try:
            data: Any = json.loads(text)
        except ValueError:
            data = None
        if isinstance(data, dict):
            err = data.get("error")
            if isinstance(err, dict) and isinstance(err.get("message"), str) and err["message"]:
                return err["message"]
            if isinstance(err, str) and err:
                return err
        return text
    return f"HTTP {status} {reason}".strip()


def classify_exception(exc: Exception) -> FailureKind:
    """Classify an exception into a normalized :class:`FailureKind`.

    Precedence:
        1. ChatError passthrough.
        2. Cooperative cancellation and ``httpx`` transport families.
        3. Any HTTP status: the server answered, so ``SERVER``.
        4. ``TRANSPORT`` fallback.
    """
    if isinstance(exc, ChatError):
        return exc.kind
    if isinstance(exc, (CancelledError, httpx.TransportError, httpx.StreamError, TimeoutError, OSError)):
        return FailureKind.TRANSPORT
    status = _extract_status(exc)
    if status is not None:
        return FailureKind.SERVER
    return FailureKind.TRANSPORT


__all__ = [
    "classify_exception",
    "extract_error_message",
    "_extract_status",
]

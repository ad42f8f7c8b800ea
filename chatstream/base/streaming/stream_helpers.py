"""Request building and response helpers for the streaming client.

Purpose:
- Keep ``streaming_client.py`` focused on the request lifecycle by moving
  payload/header construction and non-stream body parsing here.

Notes:
- Pure functions; no I/O.
"""

from __future__ import annotations

import json
from typing import Any, Dict, Optional, Sequence, Tuple

from ..models import Message, Settings
from ...config.defaults import CHAT_COMPLETIONS_PATH
from .streaming import TokenUsage


def completions_url(settings: Settings) -> str:
    """Return the absolute chat-completions URL for ``settings.base_url``."""
    return settings.base_url.rstrip("/") + CHAT_COMPLETIONS_PATH


def build_payload(messages: Sequence[Message], settings: Settings, *, stream: bool) -> Dict[str, Any]:
    """Return the JSON body for a completion request."""
    payload: Dict[str, Any] = {
        "model": settings.model.value,
        "messages": [m.to_wire() for m in messages],
        "stream": stream,
    }
    payload.update(settings.effort_params())
    return payload


def build_headers(api_key: str, *, stream: bool) -> Dict[str, str]:
    """Return request headers carrying the bearer token."""
    return {
        "Authorization": f"Bearer {api_key}",
        "Content-Type": "application/json",
        "Accept": "text/event-stream" if stream else "application/json",
    }


def extract_completion(body: bytes) -> Tuple[str, Optional[TokenUsage]]:
    """Return ``choices[0].message.content`` and ``usage`` from a non-stream body.

    Raises:
        ValueError: When the body is not JSON or lacks the expected shape.
    """
    data = json.loads(body)
    try:
        content = data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as exc:
        raise ValueError("completion response has no choices[0].message.content") from exc
    if content is None:
        content = ""
    if not isinstance(content, str):
        raise ValueError("completion content is not text")
    return content, TokenUsage.from_payload(data)


def describe_exception(exc: BaseException) -> str:
    """Return a non-empty message for ``exc``."""
    text = str(exc).strip()
    return text or exc.__class__.__name__


__all__ = [
    "completions_url",
    "build_payload",
    "build_headers",
    "extract_completion",
    "describe_exception",
]

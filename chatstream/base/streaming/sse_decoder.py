"""Incremental decoder for ``data:``-framed completion streams.

Purpose:
- Turn arbitrary byte chunks into complete lines, holding back the trailing
  partial line until the next chunk (or end of body) completes it.
- Classify each line: ignored, terminal sentinel, text fragment, or malformed.

Notes:
- Pure translation; no I/O. ``decode_line`` never raises so one bad chunk
  cannot break a stream.
- UTF-8 is decoded incrementally, so a multi-byte character split across two
  chunks is reassembled instead of being replaced.
"""

from __future__ import annotations

import codecs
import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterator, List, Optional

from .streaming import TokenUsage

DATA_PREFIX = "data:"
DONE_SENTINEL = "[DONE]"


class LineKind(str, Enum):
    IGNORED = "ignored"
    DONE = "done"
    FRAGMENT = "fragment"
    USAGE = "usage"
    MALFORMED = "malformed"


@dataclass(frozen=True)
class DecodedLine:
    kind: LineKind
    fragment: Optional[str] = None
    error: Optional[str] = None
    usage: Optional[TokenUsage] = None


_IGNORED = DecodedLine(LineKind.IGNORED)
_DONE = DecodedLine(LineKind.DONE)


class LineBuffer:
    """Split a byte stream into text lines.

    ``\\r\\n`` and bare ``\\n`` both terminate a line; the terminator is not
    part of the returned text.
    """

    def __init__(self) -> None:
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._pending = ""

    def feed(self, chunk: bytes) -> List[str]:
        """Append ``chunk`` and return the lines it completed."""
        self._pending += self._decoder.decode(chunk)
        if "\n" not in self._pending:
            return []
        *complete, self._pending = self._pending.split("\n")
        return [line.rstrip("\r") for line in complete]

    def flush(self) -> List[str]:
        """Return the remaining partial line at end of body (if any)."""
        self._pending += self._decoder.decode(b"", final=True)
        rest, self._pending = self._pending, ""
        rest = rest.rstrip("\r")
        return [rest] if rest else []


def extract_delta_content(data: Any) -> Optional[str]:
    """Return ``choices[0].delta.content`` when it is a string, else ``None``."""
    if not isinstance(data, dict):
        return None
    choices = data.get("choices")
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        return None
    delta = choices[0].get("delta")
    if not isinstance(delta, dict):
        return None
    content = delta.get("content")
    return content if isinstance(content, str) else None


def decode_line(line: str) -> DecodedLine:
    """Classify a single stream line.

    Lines without the ``data:`` prefix (comments, ``event:`` fields, blank
    keep-alives) and payloads without text or usage are ignored. A payload
    that is not valid JSON is reported as malformed. A chunk carrying both
    text and a ``usage`` object is a fragment with the usage attached.
    """
    if not line.startswith(DATA_PREFIX):
        return _IGNORED
    payload = line[len(DATA_PREFIX):].strip()
    if not payload:
        return _IGNORED
    if payload == DONE_SENTINEL:
        return _DONE
    try:
        data = json.loads(payload)
    except ValueError as exc:
        return DecodedLine(LineKind.MALFORMED, error=str(exc))
    content = extract_delta_content(data)
    usage = TokenUsage.from_payload(data)
    if content:
        return DecodedLine(LineKind.FRAGMENT, fragment=content, usage=usage)
    if usage is not None:
        return DecodedLine(LineKind.USAGE, usage=usage)
    return _IGNORED


class SseStreamDecoder:
    """Line buffer plus classification in one object."""

    def __init__(self) -> None:
        self._lines = LineBuffer()

    def feed(self, chunk: bytes) -> Iterator[DecodedLine]:
        for line in self._lines.feed(chunk):
            yield decode_line(line)

    def finish(self) -> Iterator[DecodedLine]:
        for line in self._lines.flush():
            yield decode_line(line)


__all__ = [
    "DATA_PREFIX",
    "DONE_SENTINEL",
    "LineKind",
    "DecodedLine",
    "LineBuffer",
    "SseStreamDecoder",
    "decode_line",
    "extract_delta_content",
]

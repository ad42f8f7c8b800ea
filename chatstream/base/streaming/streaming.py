"""Stream event types.

A stream handle yields zero or more ``StreamDelta`` events followed by exactly
one terminal event, ``StreamCompleted`` or ``StreamFailed``. Every delta
carries the full text accumulated so far, so a consumer can always redraw
from the latest event.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

from ..errors import FailureKind

ABORTED_MESSAGE = "aborted"


@dataclass(frozen=True)
class StreamDelta:
    """One decoded fragment.

    Attributes:
        text: Accumulated assistant text including this fragment.
        fragment: The raw fragment that was appended.
        index: Zero-based position of this delta in the stream.
    """

    text: str
    fragment: str
    index: int

    @property
    def finish(self) -> bool:
        return False


@dataclass(frozen=True)
class TokenUsage:
    """Token counts reported by the server (``usage`` object)."""

    total_tokens: int
    prompt_tokens: Optional[int] = None
    completion_tokens: Optional[int] = None

    @classmethod
    def from_payload(cls, data: Any) -> Optional["TokenUsage"]:
        """Read ``data["usage"]``; ``None`` when absent or without a total."""
        if not isinstance(data, dict):
            return None
        usage = data.get("usage")
        if not isinstance(usage, dict):
            return None

        def count(key: str) -> Optional[int]:
            value = usage.get(key)
            if isinstance(value, bool) or not isinstance(value, int):
                return None
            return value

        total = count("total_tokens")
        if total is None:
            return None
        return cls(total, count("prompt_tokens"), count("completion_tokens"))

    def to_dict(self) -> Dict[str, int]:
        out = {"total_tokens": self.total_tokens}
        if self.prompt_tokens is not None:
            out["prompt_tokens"] = self.prompt_tokens
        if self.completion_tokens is not None:
            out["completion_tokens"] = self.completion_tokens
        return out


@dataclass(frozen=True)
class StreamCompleted:
    """Terminal success carrying the full assistant text.

    ``usage`` is set when the server reported token counts.
    """

    text: str
    usage: Optional[TokenUsage] = None

    @property
    def finish(self) -> bool:
        return True


@dataclass(frozen=True)
class StreamFailed:
    """Terminal failure.

    Attributes:
        kind: Failure category.
        message: Human-readable reason (server text is passed through).
        partial_text: Text accumulated before the failure; may be empty.
    """

    kind: FailureKind
    message: str
    partial_text: str = ""

    @property
    def finish(self) -> bool:
        return True

    @property
    def aborted(self) -> bool:
        """Whether this failure is the result of a cancellation."""
        return self.kind is FailureKind.TRANSPORT and self.message == ABORTED_MESSAGE


TerminalEvent = Union[StreamCompleted, StreamFailed]
StreamEvent = Union[StreamDelta, StreamCompleted, StreamFailed]


def aborted(partial_text: str) -> StreamFailed:
    """Return the outcome of a cancelled stream."""
    return StreamFailed(kind=FailureKind.TRANSPORT, message=ABORTED_MESSAGE, partial_text=partial_text)


__all__ = [
    "ABORTED_MESSAGE",
    "StreamDelta",
    "StreamCompleted",
    "TokenUsage",
    "StreamFailed",
    "StreamEvent",
    "TerminalEvent",
    "aborted",
]

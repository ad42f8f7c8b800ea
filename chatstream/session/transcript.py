"""Mutable transcript owned by a session.

The transcript is the ordered conversation. It keeps at most one ``system``
message, always at index 0, and supports the one rollback the session needs
(dropping the trailing assistant message for a retry).

An in-flight assistant reply is tracked as a *placeholder*: it reserves the
slot after the user message while a response streams, and becomes a real
message only on ``commit_assistant``. The placeholder is never part of
``messages`` so a request snapshot never contains it.
"""

from __future__ import annotations

from typing import Iterable, List, Optional, Tuple

from ..base.models import Message


class TranscriptError(ValueError):
    """The requested mutation would break the transcript invariants."""


def validate_messages(messages: Iterable[Message]) -> Tuple[Message, ...]:
    """Return ``messages`` as a tuple after checking the system-message rule."""
    items = tuple(messages)
    for i, m in enumerate(items):
        if m.role == "system" and i != 0:
            raise TranscriptError("a system message may only appear at index 0")
    return items


class Transcript:
    """Ordered list of messages with the single-system-message invariant."""

    def __init__(self, messages: Iterable[Message] = ()) -> None:
        self._messages: List[Message] = list(validate_messages(messages))
        self._placeholder = False

    # Views -----------------------------------------------------------------
    @property
    def messages(self) -> Tuple[Message, ...]:
        """Immutable snapshot of the committed messages."""
        return tuple(self._messages)

    @property
    def has_system(self) -> bool:
        return bool(self._messages) and self._messages[0].role == "system"

    @property
    def has_placeholder(self) -> bool:
        return self._placeholder

    @property
    def last(self) -> Optional[Message]:
        return self._messages[-1] if self._messages else None

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self):
        return iter(tuple(self._messages))

    # Mutations -------------------------------------------------------------
    def insert_system(self, text: str) -> bool:
        """Insert a system message at index 0 unless one exists. Returns True if inserted."""
        if self.has_system:
            return False
        self._messages.insert(0, Message(role="system", content=text))
        return True

    def append_user(self, message: Message) -> None:
        if message.role != "user":
            raise TranscriptError("append_user expects a user message")
        if self._placeholder:
            raise TranscriptError("an assistant reply is still pending")
        self._messages.append(message)

    def append_assistant_placeholder(self) -> None:
        if self.last is None or self.last.role != "user":
            raise TranscriptError("an assistant reply must follow a user message")
        self._placeholder = True

    def commit_assistant(self, text: str) -> Message:
        """Turn the placeholder into a real assistant message."""
        if not self._placeholder:
            raise TranscriptError("no assistant reply is pending")
        self._placeholder = False
        message = Message(role="assistant", content=text)
        self._messages.append(message)
        return message

    def discard_assistant_placeholder(self) -> None:
        self._placeholder = False

    def pop_assistant(self) -> Optional[Message]:
        """Remove and return the trailing assistant message, if the tail is one."""
        if self._placeholder or self.last is None or self.last.role != "assistant":
            return None
        return self._messages.pop()

    def reset(self) -> None:
        self._messages.clear()
        self._placeholder = False

    def load(self, messages: Iterable[Message]) -> None:
        """Replace the whole transcript (validated first)."""
        items = validate_messages(messages)
        self._messages = list(items)
        self._placeholder = False


__all__ = ["Transcript", "TranscriptError", "validate_messages"]

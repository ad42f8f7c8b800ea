"""Record types and store/repository protocols for chat history.

This module declares the contracts the session layer depends on. Concrete
implementations live under ``persistence/sqlite/`` and ``persistence/memory/``.

Design Principles:
- No concrete behavior; pure structural typing via ``Protocol``.
- Frozen dataclasses represent records crossing the store boundary.
- Transaction control for SQLite is delegated to the ``IUnitOfWork``.

Failure / Error Semantics:
- ``IChatStore.append`` raises ``StorageUnavailable`` when the backing store
  cannot accept writes; ``IChatStore.get`` raises ``NotFound`` for unknown ids.
- Repositories raise backend exceptions (``sqlite3.Error``) and leave
  translation to the store facade.

Extensibility Notes:
- Records are append-only. There is deliberately no update or delete method.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Protocol, Sequence, Tuple

from ...base.models import ChatModel, Message
from ...config.defaults import HISTORY_LIST_LIMIT, HISTORY_PREVIEW_CHARS


def _as_utc(ts: datetime) -> datetime:
    return ts.replace(tzinfo=timezone.utc) if ts.tzinfo is None else ts.astimezone(timezone.utc)


@dataclass(frozen=True)
class ChatRecord:
    """Persisted snapshot of a finished conversation.

    Attributes
    ----------
    id:
        Store-assigned ordinal (``None`` until appended).
    timestamp:
        Commit instant, normalized to aware UTC (naive values are taken as UTC).
    model:
        Model that produced the final assistant message.
    messages:
        Transcript snapshot, system message included.
    """

    id: Optional[int]
    timestamp: datetime
    model: ChatModel
    messages: Tuple[Message, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "timestamp", _as_utc(self.timestamp))
        object.__setattr__(self, "model", ChatModel.parse(self.model))
        object.__setattr__(self, "messages", tuple(self.messages))

    def with_id(self, record_id: int) -> "ChatRecord":
        return ChatRecord(id=record_id, timestamp=self.timestamp, model=self.model, messages=self.messages)

    def first_user_message(self) -> Optional[Message]:
        return next((m for m in self.messages if m.role == "user"), None)


def make_preview(text: str, limit: int = HISTORY_PREVIEW_CHARS) -> str:
    """Collapse whitespace and truncate ``text`` to ``limit`` chars plus ``…``."""
    flat = " ".join(text.split())
    return flat if len(flat) <= limit else flat[:limit] + "…"


@dataclass(frozen=True)
class ChatSummary:
    """One row of a history listing."""

    id: int
    timestamp: datetime
    model: ChatModel
    preview: str
    message_count: int

    @classmethod
    def from_record(cls, record: ChatRecord) -> "ChatSummary":
        first = record.first_user_message()
        return cls(
            id=int(record.id or 0),
            timestamp=record.timestamp,
            model=record.model,
            preview=make_preview(first.preview_text()) if first else "",
            message_count=len(record.messages),
        )


# ---------- Repository Protocols ----------


class IChatRecordRepo(Protocol):
    """Chat record storage abstraction."""

    def add(self, record: ChatRecord) -> int:
        """Insert ``record`` and return its new id.

        Notes
        -----
        No implicit commit; caller controls transaction boundaries.
        """
        ...

    def get(self, record_id: int) -> Optional[ChatRecord]:
        """Return the record for ``record_id`` or ``None``."""
        ...

    def list_recent(self, limit: int = HISTORY_LIST_LIMIT) -> Iterable[ChatRecord]:
        """Yield up to ``limit`` records, newest ``(timestamp, id)`` first."""
        ...


class IUnitOfWork(Protocol):
    """Transactional boundary aggregating repository instances.

    All writes MUST be committed by ``commit()`` (or a clean context exit);
    otherwise they are rolled back.
    """

    chats: IChatRecordRepo

    def __enter__(self) -> "IUnitOfWork":  # pragma: no cover
        ...

    def __exit__(self, exc_type, exc, tb) -> None:  # pragma: no cover
        ...

    def commit(self) -> None:
        ...

    def rollback(self) -> None:
        ...


class IChatStore(Protocol):
    """Append-only chat history used by the session."""

    def append(self, record: ChatRecord) -> int:
        """Persist ``record`` and return its strictly increasing id.

        Raises
        ------
        StorageUnavailable
            The backing store cannot accept the write.
        """
        ...

    def list(self, limit: int = HISTORY_LIST_LIMIT) -> List[ChatSummary]:
        """Return at most ``limit`` summaries, descending by ``(timestamp, id)``."""
        ...

    def get(self, record_id: int) -> ChatRecord:
        """Return the record for ``record_id``.

        Raises
        ------
        NotFound
            No record has that id.
        """
        ...


def sort_newest_first(records: Sequence[ChatRecord]) -> List[ChatRecord]:
    """Order records descending by ``(timestamp, id)``."""
    return sorted(records, key=lambda r: (r.timestamp, r.id or 0), reverse=True)


__all__ = [
    "ChatRecord",
    "ChatSummary",
    "IChatRecordRepo",
    "IUnitOfWork",
    "IChatStore",
    "make_preview",
    "sort_newest_first",
]

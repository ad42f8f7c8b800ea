"""SQLite chat store facade.

Purpose
-------
Implement ``IChatStore`` on top of the SQLite Unit of Work: one append per
transaction, newest-first listings and lookup by id.

Failure semantics
-----------------
- A disabled store, or any ``sqlite3.Error`` while opening or writing,
  surfaces as ``StorageUnavailable``. The session treats that as a signal to
  keep history in memory only.
- ``get`` raises ``NotFound`` for unknown ids.

Concurrency
-----------
Calls are serialized with a lock around the single connection; each append
runs in its own transaction so concurrent sessions sharing one database file
still get atomic, isolated writes (SQLite's busy timeout covers contention).
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from typing import List, Optional

from ..base.logging import get_logger, log_event
from ..config.defaults import HISTORY_LIST_LIMIT
from .errors import NotFound, StorageUnavailable
from .interfaces.repos import ChatRecord, ChatSummary, IChatStore
from .sqlite import MEMORY_DB, UnitOfWorkSqlite, get_uow


class SqliteChatStore(IChatStore):
    """Durable append-only chat history backed by one SQLite file.

    Parameters
    ----------
    db_path:
        Database file path or ``":memory:"``. The connection opens lazily on
        first use.
    enabled:
        When False every call raises ``StorageUnavailable`` (history disabled
        by configuration).
    """

    def __init__(self, db_path: str = MEMORY_DB, *, enabled: bool = True, logger: Optional[logging.Logger] = None) -> None:
        self._db_path = db_path
        self._enabled = enabled
        self._lock = threading.Lock()
        self._uow: Optional[UnitOfWorkSqlite] = None
        self._logger = logger or get_logger("chatstream.persistence")

    @property
    def db_path(self) -> str:
        return self._db_path

    @property
    def enabled(self) -> bool:
        return self._enabled

    def _open_locked(self) -> UnitOfWorkSqlite:
        if not self._enabled:
            raise StorageUnavailable("chat history is disabled")
        if self._uow is None:
            try:
                self._uow = get_uow(self._db_path)
            except sqlite3.Error as exc:
                raise StorageUnavailable(f"cannot open chat history at {self._db_path}: {exc}") from exc
            except OSError as exc:
                raise StorageUnavailable(f"cannot create chat history at {self._db_path}: {exc}") from exc
        return self._uow

    def append(self, record: ChatRecord) -> int:
        """Persist ``record`` in its own transaction and return the new id."""
        with self._lock:
            uow = self._open_locked()
            try:
                with uow:
                    record_id = uow.chats.add(record)
            except sqlite3.Error as exc:
                raise StorageUnavailable(f"cannot write chat history: {exc}") from exc
        log_event(
            self._logger,
            "store.append",
            record_id=record_id,
            model=record.model.value,
            messages=len(record.messages),
            level=logging.DEBUG,
        )
        return record_id

    def list(self, limit: int = HISTORY_LIST_LIMIT) -> List[ChatSummary]:
        """Return at most ``limit`` summaries, newest ``(timestamp, id)`` first."""
        with self._lock:
            uow = self._open_locked()
            try:
                records = list(uow.chats.list_recent(limit))
            except sqlite3.Error as exc:
                raise StorageUnavailable(f"cannot read chat history: {exc}") from exc
        return [ChatSummary.from_record(r) for r in records]

    def get(self, record_id: int) -> ChatRecord:
        """Return the record for ``record_id`` or raise ``NotFound``."""
        with self._lock:
            uow = self._open_locked()
            try:
                record = uow.chats.get(record_id)
            except sqlite3.Error as exc:
                raise StorageUnavailable(f"cannot read chat history: {exc}") from exc
        if record is None:
            raise NotFound(record_id)
        return record

    def close(self) -> None:
        """Close the connection (idempotent). The store reopens on next use."""
        with self._lock:
            uow, self._uow = self._uow, None
        if uow is not None:
            uow.close()


__all__ = ["SqliteChatStore"]

"""SQLite-backed implementation of ``IChatRecordRepo``.

Persists and retrieves chat records. All writes defer transaction commit to
the Unit of Work.
"""

from __future__ import annotations

import sqlite3
from typing import Iterable, Optional

from ...config.defaults import HISTORY_LIST_LIMIT
from ..interfaces.repos import ChatRecord, IChatRecordRepo
from .helpers import _messages_to_json, _record_from_row, _to_epoch_us

_COLUMNS = "id, ts_us, model, messages_json"


class ChatRecordRepoSqlite(IChatRecordRepo):
    """SQLite-backed chat record repository.

    Ids come from ``AUTOINCREMENT`` so they are never reused, even after a
    rolled-back insert, and grow strictly.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn

    def add(self, record: ChatRecord) -> int:
        """Insert a record and return its primary key (``record.id`` is ignored)."""
        cur = self.conn.execute(
            "INSERT INTO chat_records(ts_us, model, messages_json) VALUES(?, ?, ?)",
            (
                _to_epoch_us(record.timestamp),
                record.model.value,
                _messages_to_json(record.messages),
            ),
        )
        return int(cur.lastrowid)

    def get(self, record_id: int) -> Optional[ChatRecord]:
        """Return the record by primary key or ``None`` if missing."""
        cur = self.conn.execute(f"SELECT {_COLUMNS} FROM chat_records WHERE id = ?", (record_id,))
        r = cur.fetchone()
        return _record_from_row(r) if r else None

    def list_recent(self, limit: int = HISTORY_LIST_LIMIT) -> Iterable[ChatRecord]:
        """Yield the newest records, ties on timestamp broken by higher id first."""
        cur = self.conn.execute(
            f"SELECT {_COLUMNS} FROM chat_records ORDER BY ts_us DESC, id DESC LIMIT ?",
            (max(0, int(limit)),),
        )
        for r in cur.fetchall():
            yield _record_from_row(r)

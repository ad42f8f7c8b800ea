"""SQLite engine helpers for the chat history store.

Purpose
-------
Open SQLite connections with the standard PRAGMAs and ensure the schema is
present.

External dependencies
---------------------
- Standard library only (``sqlite3``). No side effects at import time.

Timeout and reliability strategy
--------------------------------
- Applies a ``busy_timeout`` (milliseconds) from
  ``chatstream.config.defaults`` to mitigate lock contention when several
  sessions share one database file.
- Enables WAL journaling and NORMAL synchronous mode for durability with good
  interactive performance.

Fallback semantics
------------------
None here. ``SqliteChatStore`` converts failures into ``StorageUnavailable``
and the session switches to in-memory history.
"""

from __future__ import annotations

import sqlite3
from pathlib import Path

from ...config.defaults import (
    SQLITE_BUSY_TIMEOUT_MS,
    SQLITE_JOURNAL_MODE,
    SQLITE_SYNCHRONOUS,
)

MEMORY_DB = ":memory:"


def create_connection(db_path: str, *, check_same_thread: bool = False) -> sqlite3.Connection:
    """Open a SQLite connection and apply PRAGMA settings.

    Parameters
    ----------
    db_path:
        Path to the database file (``~`` is expanded), or ``":memory:"``.
        Missing parent directories are created.
    check_same_thread:
        Passed to ``sqlite3.connect``. The store serializes access with its
        own lock, so the default allows use from a signal-handling thread.

    Returns
    -------
    sqlite3.Connection
        An open connection with ``row_factory`` set to ``sqlite3.Row``.
    """
    if db_path == MEMORY_DB:
        target = MEMORY_DB
    else:
        path = Path(db_path).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        target = str(path)
    conn = sqlite3.connect(target, check_same_thread=check_same_thread)
    conn.row_factory = sqlite3.Row
    conn.execute(f"PRAGMA journal_mode={SQLITE_JOURNAL_MODE};")
    conn.execute(f"PRAGMA synchronous={SQLITE_SYNCHRONOUS};")
    conn.execute(f"PRAGMA busy_timeout={SQLITE_BUSY_TIMEOUT_MS};")  # ms
    return conn


def init_schema(conn: sqlite3.Connection) -> None:
    """Create the history table and its ordering index, then commit.

    Schema overview
    ---------------
    - ``chat_records``: one row per finished conversation. ``ts_us`` holds
      the commit instant as integer microseconds since the epoch (UTC) so
      ordering and equality are exact; ``messages_json`` holds the transcript.
    - ``idx_chat_records_ts_id``: serves the newest-first listing.
    """
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS chat_records (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            ts_us INTEGER NOT NULL,
            model TEXT NOT NULL,
            messages_json TEXT NOT NULL
        );
        """
    )
    conn.execute(
        "CREATE INDEX IF NOT EXISTS idx_chat_records_ts_id ON chat_records(ts_us, id);"
    )
    conn.commit()


__all__ = ["MEMORY_DB", "create_connection", "init_schema"]

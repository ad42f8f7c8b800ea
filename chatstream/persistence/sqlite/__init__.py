from __future__ import annotations

import sqlite3

from .chat_record_repo import ChatRecordRepoSqlite
from .engine import MEMORY_DB, create_connection, init_schema
from .unit_of_work import UnitOfWorkSqlite


def get_uow(db_path: str = MEMORY_DB) -> UnitOfWorkSqlite:
    conn: sqlite3.Connection = create_connection(db_path)
    init_schema(conn)
    return UnitOfWorkSqlite(conn)


__all__ = [
    "ChatRecordRepoSqlite",
    "MEMORY_DB",
    "create_connection",
    "init_schema",
    "UnitOfWorkSqlite",
    "get_uow",
]

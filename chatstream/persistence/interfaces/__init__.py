"""Persistence interfaces package.

Defines the chat record types, the repository and Unit of Work protocols, and
the ``IChatStore`` contract. Concrete implementations live under the SQLite
and in-memory adapters.
"""

from .repos import (  # noqa: F401
    ChatRecord,
    ChatSummary,
    IChatRecordRepo,
    IChatStore,
    IUnitOfWork,
    make_preview,
    sort_newest_first,
)

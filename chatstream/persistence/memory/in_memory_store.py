"""Process-local chat store.

Used when history is disabled or the SQLite store became unavailable. Same
contract as ``SqliteChatStore``; records live for the lifetime of the object.
"""

from __future__ import annotations

import itertools
import threading
from typing import Dict, Iterable, List

from ...config.defaults import HISTORY_LIST_LIMIT
from ..errors import NotFound
from ..interfaces.repos import ChatRecord, ChatSummary, IChatStore, sort_newest_first


class InMemoryChatStore(IChatStore):
    """Append-only history kept in a dict keyed by id."""

    def __init__(self, records: Iterable[ChatRecord] = ()) -> None:
        self._lock = threading.Lock()
        self._records: Dict[int, ChatRecord] = {}
        self._ids = itertools.count(1)
        for record in records:
            self.append(record)

    def append(self, record: ChatRecord) -> int:
        with self._lock:
            record_id = next(self._ids)
            self._records[record_id] = record.with_id(record_id)
        return record_id

    def list(self, limit: int = HISTORY_LIST_LIMIT) -> List[ChatSummary]:
        with self._lock:
            records = sort_newest_first(list(self._records.values()))
        return [ChatSummary.from_record(r) for r in records[: max(0, limit)]]

    def get(self, record_id: int) -> ChatRecord:
        with self._lock:
            record = self._records.get(record_id)
        if record is None:
            raise NotFound(record_id)
        return record

    def __len__(self) -> int:
        return len(self._records)


__all__ = ["InMemoryChatStore"]

"""Chat store exceptions.

``StorageUnavailable`` is non-fatal by contract: the session keeps chatting
with in-memory history when it sees one. ``NotFound`` reports an unknown id.
"""
from __future__ import annotations


class StoreError(Exception):
    """Base class for chat store failures."""


class StorageUnavailable(StoreError):
    """The backing store is disabled or could not be opened or written."""


class NotFound(StoreError, LookupError):
    """No record exists for the requested id."""

    def __init__(self, record_id: int) -> None:
        super().__init__(f"chat record {record_id} not found")
        self.record_id = record_id


__all__ = ["StoreError", "StorageUnavailable", "NotFound"]

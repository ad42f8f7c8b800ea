"""Shared helper functions for the SQLite chat record repository.

Timestamps are stored as integer microseconds since the Unix epoch (UTC) and
returned as timezone-aware UTC ``datetime`` objects, so a record read back is
equal to the record written.
"""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from typing import Any, Sequence

from ...base.dto import parse_transcript
from ...base.models import Message
from ..interfaces.repos import ChatRecord

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_ONE_US = timedelta(microseconds=1)


def _to_epoch_us(ts: datetime) -> int:
    """Convert an aware (or naive, taken as UTC) datetime to epoch microseconds."""
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return (ts - _EPOCH) // _ONE_US


def _from_epoch_us(raw: Any) -> datetime:
    """Convert stored epoch microseconds back to an aware UTC datetime."""
    return _EPOCH + timedelta(microseconds=int(raw))


def _messages_to_json(messages: Sequence[Message]) -> str:
    return json.dumps([m.to_dict() for m in messages], ensure_ascii=False)


def _record_from_row(r: Any) -> ChatRecord:
    """Convert a ``chat_records`` row into a ``ChatRecord``.

    Parameters
    ----------
    r:
        Row matching ``SELECT id, ts_us, model, messages_json``.

    Raises
    ------
    ValueError
        The stored transcript no longer validates (``pydantic.ValidationError``).
    """
    return ChatRecord(
        id=int(r[0]),
        timestamp=_from_epoch_us(r[1]),
        model=r[2],
        messages=parse_transcript(r[3]),
    )

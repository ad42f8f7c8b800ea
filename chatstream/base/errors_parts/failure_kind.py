"""
Normalized stream failure kinds (taxonomy).

Defines the `FailureKind` enumeration carried by terminal ``StreamFailed``
events and by :class:`ChatError`. Values are lowercase snake_case and are
considered a stable public contract for logging and for the shell.
"""
from __future__ import annotations

from enum import Enum


class FailureKind(str, Enum):
    """Enumerated failure categories for a single request/response cycle."""

    AUTH = "auth_error"
    TRANSPORT = "transport_error"
    SERVER = "server_error"
    DECODE = "decode_error"


__all__ = ["FailureKind"]

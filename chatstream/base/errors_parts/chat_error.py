"""
Structured chat error exception type.

Wraps transport and server failures with a normalized `FailureKind` so the
streaming loop can turn them into terminal events without losing the text
accumulated so far.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .failure_kind import FailureKind


@dataclass
class ChatError(Exception):
    """Represents a classified failure of a chat completion request.

    Attributes:
        kind: Normalized :class:`FailureKind` for the failure.
        message: Human-readable message (server text passed through verbatim).
        partial_text: Assistant text accumulated before the failure.
        status: HTTP status code when the failure came from a response.
        raw: Optional original exception for diagnostics.
    """

    kind: FailureKind
    message: str
    partial_text: str = ""
    status: Optional[int] = None
    raw: Optional[Exception] = None

    def __str__(self) -> str:  # pragma: no cover - trivial
        """Return a compact string combining kind, status, and message."""
        status = f" [{self.status}]" if self.status is not None else ""
        return f"{self.kind.value}{status}: {self.message}"


__all__ = ["ChatError"]

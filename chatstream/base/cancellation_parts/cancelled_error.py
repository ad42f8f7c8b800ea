"""Cancellation error type.

Defines the public ``CancelledError`` raised by code that observes a
cancellation request while polling a token.
"""

from __future__ import annotations


class CancelledError(RuntimeError):
    """Raised when an operation is cancelled cooperatively.

    Distinguishes a user abort from genuine transport failures so the stream
    loop can settle to the ``"aborted"`` outcome instead of falling back.
    """

__all__ = ["CancelledError"]

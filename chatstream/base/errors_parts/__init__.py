"""Errors parts package public surface.

Re-exports individual error taxonomy components for optional direct imports.
Prefer importing from `chatstream.base.errors` for the stable surface.
"""

from .failure_kind import FailureKind
from .chat_error import ChatError
from .classification import classify_exception, extract_error_message

__all__ = ["FailureKind", "ChatError", "classify_exception", "extract_error_message"]

"""Unified chat error taxonomy public surface.

This module re-exports the one-class-per-file implementations under
``chatstream.base.errors_parts`` to keep a stable import path.
"""

from .errors_parts.failure_kind import FailureKind
from .errors_parts.chat_error import ChatError
from .errors_parts.classification import classify_exception, extract_error_message

__all__ = ["FailureKind", "ChatError", "classify_exception", "extract_error_message"]

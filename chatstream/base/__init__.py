"""
chatstream base package.

Transport-neutral building blocks shared by the streaming client, the store
and the session: models, error taxonomy, cancellation, logging, timeouts,
HTTP client pool, DTO validation and the streaming client itself.
"""

from .errors import ChatError, FailureKind, classify_exception
from .models import ChatModel, ContentPart, Effort, Message, Settings

__all__ = [
    "ChatError",
    "FailureKind",
    "classify_exception",
    "ChatModel",
    "ContentPart",
    "Effort",
    "Message",
    "Settings",
]

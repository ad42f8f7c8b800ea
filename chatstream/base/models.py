"""
Domain models public surface.

Re-exports the one-class-per-file implementations under
``chatstream.base.models_parts``.
"""

from .models_parts.content_part import ContentPart, ContentPartKind
from .models_parts.message import Message, MessageContent, Role
from .models_parts.settings import ChatModel, Effort, Settings

__all__ = [
    "ContentPart",
    "ContentPartKind",
    "Message",
    "MessageContent",
    "Role",
    "ChatModel",
    "Effort",
    "Settings",
]

"""Validated DTOs (pydantic) for inbound user turns and stored transcripts."""

from .chat import (
    ContentPartDTO,
    MessageDTO,
    UserTurnDTO,
    build_user_message,
    parse_transcript,
)

__all__ = [
    "ContentPartDTO",
    "MessageDTO",
    "UserTurnDTO",
    "build_user_message",
    "parse_transcript",
]

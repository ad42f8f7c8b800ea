"""Conversation orchestration: transcript, session state and exports."""

from .export import to_json, to_markdown
from .session_state import SessionState, SessionTurn
from .transcript import Transcript, TranscriptError

__all__ = [
    "SessionState",
    "SessionTurn",
    "Transcript",
    "TranscriptError",
    "to_json",
    "to_markdown",
]

"""chatstream package

Streaming chat-completion client with durable conversation history.

Purpose:
    Send a growing transcript to a chat-completions endpoint, decode the
    ``data:``-framed streamed reply into incremental text, and record finished
    conversations in an append-only store.

Public API (re-exported):
    - Version: ``__version__``
    - Models: :class:`Message`, :class:`ContentPart`, :class:`Settings`,
      :class:`ChatModel`, :class:`Effort`
    - Streaming: :class:`StreamingClient`, :class:`StreamHandle` and the
      events :class:`StreamDelta`, :class:`StreamCompleted`, :class:`StreamFailed`
    - Errors: :class:`FailureKind`, :class:`ChatError`
    - History: :class:`SqliteChatStore`, :class:`InMemoryChatStore`,
      :class:`ChatRecord`, :class:`StorageUnavailable`, :class:`NotFound`
    - Session: :class:`SessionState`, :class:`SessionTurn`
"""

from .base.errors import ChatError, FailureKind
from .base.models import ChatModel, ContentPart, Effort, Message, Settings
from .base.streaming import (
    StreamCompleted,
    StreamDelta,
    StreamFailed,
    StreamHandle,
    StreamingClient,
)
from .persistence import (
    ChatRecord,
    ChatSummary,
    InMemoryChatStore,
    NotFound,
    SqliteChatStore,
    StorageUnavailable,
)
from .session import SessionState, SessionTurn

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "ChatError",
    "FailureKind",
    "ChatModel",
    "ContentPart",
    "Effort",
    "Message",
    "Settings",
    "StreamCompleted",
    "StreamDelta",
    "StreamFailed",
    "StreamHandle",
    "StreamingClient",
    "ChatRecord",
    "ChatSummary",
    "InMemoryChatStore",
    "NotFound",
    "SqliteChatStore",
    "StorageUnavailable",
    "SessionState",
    "SessionTurn",
]

"""Chat history persistence.

``SqliteChatStore`` is the durable store; ``InMemoryChatStore`` is the
process-local stand-in used when history is disabled or unavailable.
"""

from .chat_store import SqliteChatStore
from .errors import NotFound, StorageUnavailable, StoreError
from .interfaces import ChatRecord, ChatSummary, IChatStore
from .memory import InMemoryChatStore

__all__ = [
    "SqliteChatStore",
    "InMemoryChatStore",
    "ChatRecord",
    "ChatSummary",
    "IChatStore",
    "StoreError",
    "StorageUnavailable",
    "NotFound",
]

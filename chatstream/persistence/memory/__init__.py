from .in_memory_store import InMemoryChatStore

__all__ = ["InMemoryChatStore"]

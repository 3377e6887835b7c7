"""Factory for creating conversation stores."""

from typing import Any

from .base import ConversationStore


def create_conversation_store(
    backend: str = "memory",
    **kwargs: Any
) -> ConversationStore:
    """Create a conversation store.

    Args:
        backend: Backend type ("memory", "json" or "sqlite")
        **kwargs: Backend-specific configuration
            For json / sqlite:
                - path: str | Path

    Returns:
        ConversationStore instance

    Raises:
        ValueError: If backend type is not supported
    """
    if backend == "memory":
        from .in_memory import InMemoryConversationStore
        return InMemoryConversationStore(**kwargs)

    elif backend == "json":
        from .json_file import JSONConversationStore
        return JSONConversationStore(**kwargs)

    elif backend == "sqlite":
        from .sqlite import SQLiteConversationStore
        return SQLiteConversationStore(**kwargs)

    raise ValueError(
        f"Unsupported conversation store backend: {backend}. "
        f"Supported backends: memory, json, sqlite"
    )

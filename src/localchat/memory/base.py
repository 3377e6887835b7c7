"""Abstract base class for conversation stores.

This module defines the interface for persisting conversations.
The abstraction hides:
- Storage format (JSON, SQLite, etc.)
- Persistence mechanism (file, database, in-memory)
- Connection management
"""

from abc import ABC, abstractmethod

from .models import Conversation


class ConversationStore(ABC):
    """Abstract conversation store.

    Stores the whole conversation list at once: ``save`` replaces whatever
    was stored before, ``load`` returns it in the saved order.
    """

    @abstractmethod
    async def connect(self) -> None:
        """Initialize the store."""

    @abstractmethod
    async def disconnect(self) -> None:
        """Close the store gracefully."""

    @abstractmethod
    async def load(self) -> list[Conversation]:
        """Return all stored conversations."""

    @abstractmethod
    async def save(self, conversations: list[Conversation]) -> None:
        """Persist the full conversation list."""

    @property
    @abstractmethod
    def backend_type(self) -> str:
        """Get the backend type identifier."""

    async def __aenter__(self) -> "ConversationStore":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.disconnect()

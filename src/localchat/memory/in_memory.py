"""In-memory conversation store.

Data is lost when the application exits.
"""

from .base import ConversationStore
from .models import Conversation


class InMemoryConversationStore(ConversationStore):
    """In-memory conversation store (session-only).

    Keeps deep copies so callers mutating their conversations do not
    change what was saved. Suitable for single-session use or testing.
    """

    def __init__(self, conversations: list[Conversation] | None = None):
        self._conversations: list[Conversation] = [
            c.model_copy(deep=True) for c in conversations or []
        ]
        self.save_count = 0

    async def connect(self) -> None:
        """Initialize memory (no-op for in-memory)."""
        pass

    async def disconnect(self) -> None:
        """Close memory (no-op for in-memory)."""
        pass

    async def load(self) -> list[Conversation]:
        return [c.model_copy(deep=True) for c in self._conversations]

    async def save(self, conversations: list[Conversation]) -> None:
        self._conversations = [c.model_copy(deep=True) for c in conversations]
        self.save_count += 1

    @property
    def backend_type(self) -> str:
        return "memory"

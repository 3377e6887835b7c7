"""Data models for conversations.

These models define the structure of messages and conversations,
independent of the storage backend used.
"""

from datetime import datetime
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_serializer

DEFAULT_TITLE = "New Chat"
TITLE_MAX_LENGTH = 30


def _now() -> datetime:
    return datetime.now().astimezone()


def derive_title(text: str) -> str:
    """Title from a first message: first 30 characters, ellipsis when cut."""
    if len(text) > TITLE_MAX_LENGTH:
        return text[:TITLE_MAX_LENGTH] + "..."
    return text


class Message(BaseModel):
    """A single chat message. Immutable once created."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid4()))
    content: str = Field(description="Message text")
    is_user: bool = Field(description="True for user messages, False for assistant")
    timestamp: datetime = Field(default_factory=_now)

    @field_serializer("timestamp")
    def serialize_datetime(self, value: datetime) -> str:
        """Serialize datetime to ISO format."""
        return value.isoformat()


class Conversation(BaseModel):
    """An ordered, append-only sequence of messages with a title.

    Mutate only through ``append`` and ``rename`` so ``last_updated`` stays
    current.
    """

    id: str = Field(default_factory=lambda: str(uuid4()))
    title: str = Field(default=DEFAULT_TITLE)
    messages: list[Message] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=_now)
    last_updated: datetime = Field(default_factory=_now)

    def append(self, message: Message) -> None:
        """Add a message and bump ``last_updated``.

        Args:
            message: The message to add
        """
        self.messages.append(message)
        self.touch()

    def rename(self, title: str) -> None:
        """Change the title and bump ``last_updated``."""
        self.title = title
        self.touch()

    def touch(self) -> None:
        """Bump ``last_updated``, never earlier than ``created_at``."""
        self.last_updated = max(_now(), self.created_at)

    def history_before_last(self) -> list[Message]:
        """All messages except the most recent one."""
        return list(self.messages[:-1])

    @property
    def is_empty(self) -> bool:
        return not self.messages

    @field_serializer("created_at", "last_updated")
    def serialize_datetime(self, value: datetime) -> str:
        """Serialize datetime to ISO format."""
        return value.isoformat()

"""JSON file conversation store.

Serializes the conversation list to a single JSON document. Writes go to a
temporary file that is then renamed over the target.
"""

import json
import logging
import os
from pathlib import Path

from pydantic import TypeAdapter, ValidationError

from .base import ConversationStore
from .models import Conversation

logger = logging.getLogger(__name__)

_CONVERSATION_LIST = TypeAdapter(list[Conversation])


class JSONConversationStore(ConversationStore):
    """Conversation store backed by one JSON file."""

    def __init__(self, path: str | Path = "./conversations.json"):
        self._path = Path(path)

    async def connect(self) -> None:
        """Ensure the parent directory exists."""
        self._path.parent.mkdir(parents=True, exist_ok=True)

    async def disconnect(self) -> None:
        pass

    async def load(self) -> list[Conversation]:
        """Read conversations; a missing or unreadable file yields an empty list."""
        if not self._path.exists():
            return []

        try:
            return _CONVERSATION_LIST.validate_json(self._path.read_bytes())
        except (ValidationError, ValueError) as e:
            logger.warning("Ignoring unreadable conversation file %s: %s", self._path, e)
            return []

    async def save(self, conversations: list[Conversation]) -> None:
        payload = [c.model_dump(mode="json") for c in conversations]
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        os.replace(tmp_path, self._path)

    @property
    def backend_type(self) -> str:
        return "json"

    @property
    def path(self) -> Path:
        return self._path

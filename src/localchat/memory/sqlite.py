"""SQLite conversation store.

Provides persistent conversation storage using a SQLite database.
Uses aiosqlite for async access.
"""

from datetime import datetime
from pathlib import Path

import aiosqlite

from .base import ConversationStore
from .models import Conversation, Message


class SQLiteConversationStore(ConversationStore):
    """SQLite-backed conversation store.

    Conversations keep their list position in a ``position`` column so
    ``load`` returns them in the order they were saved.
    """

    def __init__(self, path: str | Path = "./conversations.db"):
        self._db_path = Path(path)
        self._connection: aiosqlite.Connection | None = None

    async def connect(self) -> None:
        """Initialize database connection and schema."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._connection = await aiosqlite.connect(self._db_path)
        await self._connection.execute("PRAGMA foreign_keys = ON")
        await self._create_schema()

    async def _create_schema(self) -> None:
        """Create database tables."""
        await self._connection.execute("""
            CREATE TABLE IF NOT EXISTS conversations (
                id TEXT PRIMARY KEY,
                title TEXT NOT NULL,
                position INTEGER NOT NULL,
                created_at TEXT NOT NULL,
                last_updated TEXT NOT NULL
            )
        """)

        await self._connection.execute("""
            CREATE TABLE IF NOT EXISTS messages (
                id TEXT PRIMARY KEY,
                conversation_id TEXT NOT NULL,
                seq INTEGER NOT NULL,
                content TEXT NOT NULL,
                is_user INTEGER NOT NULL,
                timestamp TEXT NOT NULL,
                FOREIGN KEY (conversation_id) REFERENCES conversations(id) ON DELETE CASCADE
            )
        """)

        await self._connection.execute("""
            CREATE INDEX IF NOT EXISTS idx_messages_conversation
            ON messages(conversation_id, seq)
        """)

        await self._connection.commit()

    async def disconnect(self) -> None:
        """Close database connection."""
        if self._connection:
            await self._connection.close()
            self._connection = None

    async def load(self) -> list[Conversation]:
        async with self._connection.execute(
            "SELECT id, title, created_at, last_updated FROM conversations ORDER BY position ASC"
        ) as cursor:
            rows = await cursor.fetchall()

        conversations = []
        for conversation_id, title, created_at, last_updated in rows:
            async with self._connection.execute(
                """
                SELECT id, content, is_user, timestamp
                FROM messages
                WHERE conversation_id = ?
                ORDER BY seq ASC
                """,
                (conversation_id,)
            ) as cursor:
                message_rows = await cursor.fetchall()

            messages = [
                Message(
                    id=message_id,
                    content=content,
                    is_user=bool(is_user),
                    timestamp=datetime.fromisoformat(ts)
                )
                for message_id, content, is_user, ts in message_rows
            ]

            conversations.append(Conversation(
                id=conversation_id,
                title=title,
                messages=messages,
                created_at=datetime.fromisoformat(created_at),
                last_updated=datetime.fromisoformat(last_updated),
            ))

        return conversations

    async def save(self, conversations: list[Conversation]) -> None:
        """Replace stored conversations with ``conversations``."""
        await self._connection.execute("DELETE FROM messages")
        await self._connection.execute("DELETE FROM conversations")

        for position, conversation in enumerate(conversations):
            await self._connection.execute("""
                INSERT INTO conversations (id, title, position, created_at, last_updated)
                VALUES (?, ?, ?, ?, ?)
            """, (
                conversation.id,
                conversation.title,
                position,
                conversation.created_at.isoformat(),
                conversation.last_updated.isoformat()
            ))

            for seq, message in enumerate(conversation.messages):
                await self._connection.execute("""
                    INSERT INTO messages (id, conversation_id, seq, content, is_user, timestamp)
                    VALUES (?, ?, ?, ?, ?, ?)
                """, (
                    message.id,
                    conversation.id,
                    seq,
                    message.content,
                    int(message.is_user),
                    message.timestamp.isoformat()
                ))

        await self._connection.commit()

    @property
    def backend_type(self) -> str:
        return "sqlite"

    @property
    def db_path(self) -> Path:
        return self._db_path

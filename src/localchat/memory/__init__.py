"""Conversation memory module for localchat.

Provides the conversation data model and persistent conversation storage.
"""

from .base import ConversationStore
from .factory import create_conversation_store
from .models import Conversation, Message, derive_title

__all__ = [
    "Conversation",
    "ConversationStore",
    "Message",
    "create_conversation_store",
    "derive_title",
]

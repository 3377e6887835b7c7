"""
localchat: Local LLM chat with web search augmentation.

Each sub-package hides one design decision: prompt formats and budgeting,
search triggering, response sanitization, inference, model acquisition,
conversation storage and turn orchestration.
"""

__version__ = "0.1.0"

from .chat import ConversationOrchestrator, TurnState
from .downloads import ModelAcquisitionManager
from .llm import MODEL_CATALOG, ModelDescriptor, get_model
from .memory import Conversation, Message, create_conversation_store
from .prompts import PromptAssembler, PromptFormat, assemble
from .sanitizer import ResponseSanitizer, clean
from .search import SearchTrigger, create_search_provider

__all__ = [
    "MODEL_CATALOG",
    "Conversation",
    "ConversationOrchestrator",
    "Message",
    "ModelAcquisitionManager",
    "ModelDescriptor",
    "PromptAssembler",
    "PromptFormat",
    "ResponseSanitizer",
    "SearchTrigger",
    "TurnState",
    "assemble",
    "clean",
    "create_conversation_store",
    "create_search_provider",
    "get_model",
]

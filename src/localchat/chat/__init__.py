"""Chat orchestration module.

Runs conversation turns and exposes state to observers.
"""

from .export import export_filename, format_conversation, write_export
from .orchestrator import INFERENCE_FAILURE_MESSAGE, ConversationOrchestrator, context_warning
from .state import ListenerRegistry, StateEvent, StateEventKind, TurnState

__all__ = [
    "INFERENCE_FAILURE_MESSAGE",
    "ConversationOrchestrator",
    "ListenerRegistry",
    "StateEvent",
    "StateEventKind",
    "TurnState",
    "context_warning",
    "export_filename",
    "format_conversation",
    "write_export",
]

"""Turn state and the notification channel for observers."""

from collections.abc import Callable
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from ..memory.models import Message


class TurnState(str, Enum):
    """What the orchestrator is doing right now."""

    IDLE = "idle"
    SEARCHING = "searching"
    GENERATING = "generating"

    @property
    def is_busy(self) -> bool:
        return self is not TurnState.IDLE


class StateEventKind(str, Enum):
    STATE_CHANGED = "state_changed"
    MESSAGE_APPENDED = "message_appended"
    CONVERSATIONS_CHANGED = "conversations_changed"
    CONTEXT_WARNING = "context_warning"


class StateEvent(BaseModel):
    """Notification sent to orchestrator listeners."""

    model_config = ConfigDict(frozen=True)

    kind: StateEventKind
    state: TurnState
    conversation_id: str | None = Field(default=None)
    message: Message | None = Field(default=None, description="Set for message_appended")
    warning: str | None = Field(default=None, description="Set for context_warning; None clears it")


StateListener = Callable[[StateEvent], None]


class ListenerRegistry:
    """Holds listeners and fans events out to them in registration order."""

    def __init__(self) -> None:
        self._listeners: list[StateListener] = []

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def publish(self, event: StateEvent) -> None:
        for listener in list(self._listeners):
            listener(event)

    def __len__(self) -> int:
        return len(self._listeners)

"""Conversation orchestration.

Runs one user turn end to end: search augmentation, budgeted prompt
assembly, inference, sanitization and persistence. All conversation state is
owned here and mutated only on the event loop that awaits ``send_message``.
"""

import asyncio
import logging
from collections.abc import Callable
from pathlib import Path

from ..config import CONTEXT_WARNING_THRESHOLD
from ..llm.base import InferenceEngine, InferenceError, ModelNotFoundError
from ..llm.catalog import DEFAULT_MODEL, ModelDescriptor
from ..memory.base import ConversationStore
from ..memory.models import Conversation, Message, derive_title
from ..prompts.assembler import PromptAssembler
from ..prompts.budget import estimate_tokens
from ..sanitizer.sanitizer import ResponseSanitizer
from ..search.base import SearchProvider
from ..search.trigger import SearchTrigger
from .export import format_conversation
from .state import ListenerRegistry, StateEvent, StateEventKind, StateListener, TurnState

logger = logging.getLogger(__name__)

INFERENCE_FAILURE_MESSAGE = "Error: Failed to run inference"

ModelResolver = Callable[[ModelDescriptor], Path | None]


def context_warning(prompt: str, context_size: int) -> str | None:
    """Warning text when the prompt fills more than 70% of the context."""
    usage = estimate_tokens(prompt) / context_size
    if usage > CONTEXT_WARNING_THRESHOLD:
        return (
            f"Context is {int(usage * 100)}% full. "
            "Consider starting a new conversation soon."
        )
    return None


class ConversationOrchestrator:
    """Owns the conversation list and drives chat turns.

    Hidden design decisions:
    - Turn sequencing (search, budget, assemble, infer, sanitize)
    - Where a reply lands when the selection changes mid-turn
    - When state is persisted
    - How observers are notified

    A turn's reply is appended to the conversation the turn started in, even
    if another conversation is selected before the reply arrives.
    """

    def __init__(
        self,
        engine: InferenceEngine,
        store: ConversationStore,
        model_resolver: ModelResolver,
        search_provider: SearchProvider | None = None,
        model: ModelDescriptor = DEFAULT_MODEL,
        trigger: SearchTrigger | None = None,
        assembler: PromptAssembler | None = None,
        sanitizer: ResponseSanitizer | None = None
    ):
        """Initialize the orchestrator.

        Args:
            engine: Inference engine used for completions
            store: Conversation store, already connected
            model_resolver: Returns the local path of a model, or None
            search_provider: Web search provider (None disables search)
            model: Initially selected model
            trigger: Search trigger heuristic
            assembler: Prompt assembler (owns the context budgeter)
            sanitizer: Response sanitizer
        """
        self._engine = engine
        self._store = store
        self._resolve_model = model_resolver
        self._search = search_provider
        self._model = model
        self._trigger = trigger or SearchTrigger(enabled=search_provider is not None)
        self._assembler = assembler or PromptAssembler()
        self._sanitizer = sanitizer or ResponseSanitizer()

        self._conversations: list[Conversation] = []
        self._current_id: str | None = None
        self._state = TurnState.IDLE
        self._context_warning: str | None = None
        self._listeners = ListenerRegistry()
        self.input_text = ""

    # Read-only views

    @property
    def state(self) -> TurnState:
        return self._state

    @property
    def conversations(self) -> list[Conversation]:
        """Conversations, most recently created first."""
        return list(self._conversations)

    @property
    def current_conversation(self) -> Conversation | None:
        return self._find(self._current_id) if self._current_id else None

    @property
    def context_warning(self) -> str | None:
        return self._context_warning

    @property
    def selected_model(self) -> ModelDescriptor:
        return self._model

    @property
    def web_search_enabled(self) -> bool:
        return self._trigger.enabled

    @web_search_enabled.setter
    def web_search_enabled(self, enabled: bool) -> None:
        self._trigger.enabled = enabled and self._search is not None

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register a listener for state events.

        Returns:
            A callable that removes the listener
        """
        return self._listeners.subscribe(listener)

    # Conversation management

    async def load(self) -> None:
        """Load conversations from the store, creating one if there are none."""
        self._conversations = await self._store.load()
        if self._conversations:
            self._current_id = self._conversations[0].id
            self._publish(StateEventKind.CONVERSATIONS_CHANGED)
        else:
            await self.new_conversation()

    async def new_conversation(self) -> Conversation:
        """Create an empty conversation, select it and clear the context warning.

        An in-flight turn is not cancelled; its reply still goes to the
        conversation it started in.
        """
        conversation = Conversation()
        self._conversations.insert(0, conversation)
        self._current_id = conversation.id
        self._set_context_warning(None)
        await self._persist()
        self._publish(StateEventKind.CONVERSATIONS_CHANGED)
        return conversation

    async def delete_conversation(self, conversation_id: str) -> None:
        """Delete a conversation. The list is never left empty."""
        self._conversations = [c for c in self._conversations if c.id != conversation_id]

        if self._current_id == conversation_id:
            if not self._conversations:
                self._conversations.append(Conversation())
            self._current_id = self._conversations[0].id

        await self._persist()
        self._publish(StateEventKind.CONVERSATIONS_CHANGED)

    def select_conversation(self, conversation_id: str) -> Conversation:
        """Make a conversation current.

        Raises:
            KeyError: If no conversation has this id
        """
        conversation = self._find(conversation_id)
        if conversation is None:
            raise KeyError(f"Unknown conversation: {conversation_id}")
        self._current_id = conversation.id
        self._publish(StateEventKind.CONVERSATIONS_CHANGED)
        return conversation

    def select_model(self, model: ModelDescriptor) -> None:
        self._model = model

    def export_conversation(self, conversation_id: str | None = None) -> str:
        """Plain-text export of a conversation (current one by default).

        Raises:
            KeyError: If no conversation has this id
        """
        conversation = self._find(conversation_id) if conversation_id else self.current_conversation
        if conversation is None:
            raise KeyError(f"Unknown conversation: {conversation_id}")
        return format_conversation(conversation, self._model.display_name)

    # Turns

    async def send_message(self, text: str | None = None) -> Message | None:
        """Run one chat turn.

        Args:
            text: Message text; defaults to ``input_text``

        Returns:
            The assistant message, or None when the call was ignored (blank
            input or a turn already in flight)
        """
        if text is None:
            text = self.input_text
        if not text.strip() or self._state.is_busy:
            return None

        conversation = self.current_conversation
        if conversation is None:
            conversation = await self.new_conversation()

        is_first = conversation.is_empty
        user_message = Message(content=text, is_user=True)
        conversation.append(user_message)
        if is_first:
            conversation.rename(derive_title(text))
        self.input_text = ""

        # Claim the turn before the first await so a concurrent call is ignored
        will_search = self._search is not None and self._trigger.needs_search(text)
        self._set_state(TurnState.SEARCHING if will_search else TurnState.GENERATING)
        origin_id = conversation.id
        self._publish(StateEventKind.MESSAGE_APPENDED, conversation_id=origin_id, message=user_message)

        try:
            await self._persist()
            content = await self._run_turn(text, conversation, will_search)
            reply = Message(content=content, is_user=False)
            await self._deliver(origin_id, reply)
        finally:
            self._set_state(TurnState.IDLE)

        return reply

    async def _run_turn(self, text: str, conversation: Conversation, will_search: bool) -> str:
        search_results = ""
        if will_search and self._search is not None:
            query = self._trigger.extract_query(text)
            logger.info("Searching the web for %r", query)
            search_results = await self._search.search(query)

        self._set_state(TurnState.GENERATING)

        model = self._model
        model_path = self._resolve_model(model)
        if model_path is None:
            error = ModelNotFoundError(model.display_name)
            logger.warning("%s", error)
            self._set_context_warning(None)
            return str(error)

        prompt = self._assembler.build(
            model.prompt_format,
            model.context_size,
            text,
            conversation.history_before_last(),
            search_results,
        )
        self._set_context_warning(context_warning(prompt, model.context_size))

        try:
            raw = await asyncio.to_thread(self._engine.run, prompt, model_path)
        except InferenceError as e:
            logger.error("%s", e)
            return INFERENCE_FAILURE_MESSAGE
        except Exception as e:
            # Engines wrap native runtimes that raise arbitrary errors
            logger.exception("Inference engine raised %s", type(e).__name__)
            return INFERENCE_FAILURE_MESSAGE

        return self._sanitizer.clean(raw, model.prompt_format)

    async def _deliver(self, conversation_id: str, reply: Message) -> None:
        conversation = self._find(conversation_id)
        if conversation is None:
            logger.info("Conversation %s was deleted before its reply arrived", conversation_id)
            return

        conversation.append(reply)
        await self._persist()
        self._publish(StateEventKind.MESSAGE_APPENDED, conversation_id=conversation_id, message=reply)

    # Internals

    def _find(self, conversation_id: str | None) -> Conversation | None:
        for conversation in self._conversations:
            if conversation.id == conversation_id:
                return conversation
        return None

    async def _persist(self) -> None:
        await self._store.save(self._conversations)

    def _set_state(self, state: TurnState) -> None:
        if state != self._state:
            self._state = state
            self._publish(StateEventKind.STATE_CHANGED)

    def _set_context_warning(self, warning: str | None) -> None:
        if warning != self._context_warning:
            self._context_warning = warning
            self._publish(StateEventKind.CONTEXT_WARNING, warning=warning)

    def _publish(
        self,
        kind: StateEventKind,
        conversation_id: str | None = None,
        message: Message | None = None,
        warning: str | None = None
    ) -> None:
        self._listeners.publish(StateEvent(
            kind=kind,
            state=self._state,
            conversation_id=conversation_id or self._current_id,
            message=message,
            warning=warning,
        ))

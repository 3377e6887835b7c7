"""Context budgeting.

Hides how much conversation history fits into a model's context window.
Token counts are estimated from character lengths; no tokenizer is involved.
"""

from collections.abc import Sequence

from ..memory.models import Message

# Tokens kept free for the current message and the model's reply
RESERVED_TOKENS = 150

# Conservative characters-per-token ratio used to turn tokens into characters
CHARS_PER_TOKEN = 3

# Characters charged per message for role markers and separators
MESSAGE_OVERHEAD_CHARS = 20

# Hard cap on retained history, regardless of remaining budget
MAX_HISTORY_MESSAGES = 6

# Budget floor handed to the budgeter
MIN_BUDGET_TOKENS = 100

# Tokens set aside for the reply when computing the available budget
RESPONSE_RESERVE_TOKENS = 100


def estimate_tokens(text: str) -> int:
    """Rough token estimate (four characters per token)."""
    return len(text) // 4


def available_budget(context_size: int, search_text: str = "") -> int:
    """Token budget left for history once search results are accounted for.

    Args:
        context_size: Model context window in tokens
        search_text: Search results that will be injected into the prompt

    Returns:
        Budget in tokens, never below ``MIN_BUDGET_TOKENS``
    """
    budget = context_size - estimate_tokens(search_text) - RESPONSE_RESERVE_TOKENS
    return max(MIN_BUDGET_TOKENS, budget)


def character_budget(budget_tokens: int) -> int:
    """Character allowance for history derived from a token budget."""
    budget_tokens = max(MIN_BUDGET_TOKENS, budget_tokens)
    return (budget_tokens - RESERVED_TOKENS) * CHARS_PER_TOKEN


def message_cost(message: Message) -> int:
    """Characters charged for one history message."""
    return len(message.content) + MESSAGE_OVERHEAD_CHARS


class ContextBudgeter:
    """Selects the most recent history that fits a token budget.

    Hidden design decisions:
    - Token to character conversion ratio
    - Per-message formatting overhead
    - Maximum number of retained turns
    """

    def __init__(
        self,
        reserved_tokens: int = RESERVED_TOKENS,
        chars_per_token: int = CHARS_PER_TOKEN,
        overhead_chars: int = MESSAGE_OVERHEAD_CHARS,
        max_messages: int = MAX_HISTORY_MESSAGES
    ):
        self._reserved_tokens = reserved_tokens
        self._chars_per_token = chars_per_token
        self._overhead_chars = overhead_chars
        self._max_messages = max_messages

    def truncate(self, history: Sequence[Message], budget_tokens: int) -> list[Message]:
        """Keep the newest messages that fit within the budget.

        Args:
            history: Chronological history, excluding the pending user message
            budget_tokens: Token budget; values below the floor are clamped

        Returns:
            A contiguous suffix of ``history`` in chronological order, at most
            ``max_messages`` long
        """
        budget_tokens = max(MIN_BUDGET_TOKENS, budget_tokens)
        max_chars = (budget_tokens - self._reserved_tokens) * self._chars_per_token

        kept: list[Message] = []
        total = 0
        for message in reversed(history):
            cost = len(message.content) + self._overhead_chars
            if total + cost > max_chars:
                break
            kept.insert(0, message)
            total += cost

        if len(kept) > self._max_messages:
            kept = kept[-self._max_messages:]

        return kept

"""Search trigger heuristic.

Decides whether a user message needs web augmentation and turns it into a
search query. Pure functions, no I/O.
"""

import re

# Keywords that indicate current or recent information is needed
RECENCY_KEYWORDS = (
    "today", "now", "current", "latest", "recent", "this year", "2024", "2025",
    "what's happening", "news", "update", "currently", "at the moment",
    "stock price", "weather", "temperature",
)

# Question patterns that often need web search
QUESTION_PATTERNS = (
    "what is the", "what are the", "who is", "when did", "when will",
    "how much", "what happened", "tell me about", "information about",
    "facts about", "details about", "explain", "define",
)

# Lead-in phrases that carry no search value
FILLER_PHRASES = (
    "please", "can you", "could you", "tell me", "what is", "what are",
    "who is", "when did", "when will", "how much", "explain", "define",
)

MIN_QUESTION_LENGTH = 10
MIN_QUERY_LENGTH = 3

_FILLER_RE = [re.compile(re.escape(phrase), re.IGNORECASE) for phrase in FILLER_PHRASES]
_SPACES_RE = re.compile(r" {2,}")


def needs_search(message: str) -> bool:
    """Whether a message should be augmented with web search results.

    True when the lower-cased message contains a recency keyword or a
    question pattern, or contains a question mark and is longer than ten
    characters.
    """
    lowered = message.lower()

    if any(keyword in lowered for keyword in RECENCY_KEYWORDS):
        return True

    if any(pattern in lowered for pattern in QUESTION_PATTERNS):
        return True

    return "?" in message and len(message) > MIN_QUESTION_LENGTH


def extract_query(message: str) -> str:
    """Strip filler from a message to form a search query.

    Never returns an empty string for a non-empty message: if stripping
    leaves fewer than three characters the original message is used with
    question marks removed, and if that is blank too the message itself.
    """
    query = message
    for pattern in _FILLER_RE:
        query = pattern.sub("", query)

    query = query.replace("?", "").replace("!", "")
    query = _SPACES_RE.sub(" ", query.strip())

    if len(query) < MIN_QUERY_LENGTH:
        query = message.replace("?", "")

    query = query.strip()
    if not query:
        return message.strip() or message
    return query


class SearchTrigger:
    """Object wrapper over the trigger heuristic.

    Holds the enabled flag so callers can switch augmentation off without
    changing the heuristic itself.
    """

    def __init__(self, enabled: bool = True):
        self.enabled = enabled

    def needs_search(self, message: str) -> bool:
        return self.enabled and needs_search(message)

    def extract_query(self, message: str) -> str:
        return extract_query(message)

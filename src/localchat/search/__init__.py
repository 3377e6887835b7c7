from .base import SearchProvider
from .duckduckgo import DuckDuckGoSearchProvider, summarize_instant_answer, truncate_text
from .factory import create_search_provider
from .trigger import SearchTrigger, extract_query, needs_search

__all__ = [
    "DuckDuckGoSearchProvider",
    "SearchProvider",
    "SearchTrigger",
    "create_search_provider",
    "extract_query",
    "needs_search",
    "summarize_instant_answer",
    "truncate_text",
]

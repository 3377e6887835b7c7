"""DuckDuckGo Instant Answer search provider."""

import logging
from typing import Any

import httpx

from .base import SearchProvider

logger = logging.getLogger(__name__)

DUCKDUCKGO_API_URL = "https://api.duckduckgo.com/"

ABSTRACT_MAX_LENGTH = 300
DEFINITION_MAX_LENGTH = 200
TOPIC_MAX_LENGTH = 150
ANSWER_MAX_LENGTH = 200
MAX_TOPICS = 2


def truncate_text(text: str, max_length: int) -> str:
    """Cut text to ``max_length`` characters at the last word boundary.

    An ellipsis is appended whenever text is cut.
    """
    if len(text) <= max_length:
        return text

    truncated = text[:max_length]
    last_space = truncated.rfind(" ")
    if last_space != -1:
        return truncated[:last_space] + "..."
    return truncated + "..."


def summarize_instant_answer(data: dict[str, Any]) -> str | None:
    """Render the most useful field of an Instant Answer payload.

    Preference order: abstract, definition, related topics, answer.

    Returns:
        Summary text, or None when the payload carries nothing usable
    """
    abstract = data.get("Abstract")
    if isinstance(abstract, str) and abstract:
        source = data.get("AbstractSource") or "DuckDuckGo"
        return f"Search: {truncate_text(abstract, ABSTRACT_MAX_LENGTH)} (Source: {source})"

    definition = data.get("Definition")
    if isinstance(definition, str) and definition:
        source = data.get("DefinitionSource") or "Dictionary"
        return f"Definition: {truncate_text(definition, DEFINITION_MAX_LENGTH)} (Source: {source})"

    topics = data.get("RelatedTopics")
    if isinstance(topics, list) and topics:
        results = "Search results: "
        for index, topic in enumerate(topics[:MAX_TOPICS], 1):
            text = topic.get("Text") if isinstance(topic, dict) else None
            if isinstance(text, str) and text:
                results += f"{index}. {truncate_text(text, TOPIC_MAX_LENGTH)} "
        return results

    answer = data.get("Answer")
    if isinstance(answer, str) and answer:
        return f"Answer: {truncate_text(answer, ANSWER_MAX_LENGTH)}"

    return None


class DuckDuckGoSearchProvider(SearchProvider):
    """Search provider backed by the DuckDuckGo Instant Answer API.

    No API key required. Transport and decoding errors are folded into an
    apologetic result string.
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        base_url: str = DUCKDUCKGO_API_URL,
        timeout: float = 10.0
    ):
        """Initialize the provider.

        Args:
            client: Optional preconfigured httpx client (owned by the caller)
            base_url: Instant Answer endpoint
            timeout: Request timeout in seconds when creating our own client
        """
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout, follow_redirects=True)
        self._base_url = base_url

    async def search(self, query: str) -> str:
        params = {
            "q": query,
            "format": "json",
            "no_html": "1",
            "skip_disambig": "1",
        }

        try:
            response = await self._client.get(self._base_url, params=params)
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Search failed for %r: %s", query, e)
            return (
                f"Search error: Unable to fetch results for '{query}'. "
                f"Please try rephrasing your query."
            )

        summary = summarize_instant_answer(data) if isinstance(data, dict) else None
        if summary is None:
            return (
                f"Search attempted for '{query}' but no detailed results available. "
                f"Please try a more specific query."
            )
        return summary

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

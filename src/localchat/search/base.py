from abc import ABC, abstractmethod


class SearchProvider(ABC):
    """Abstract base class for web search providers.

    This module hides the design decision of which search service to use.

    Hidden design decisions:
    - Endpoint and request format
    - Result summarization and truncation
    - Error handling (failures are reported as text, never raised)
    """

    @abstractmethod
    async def search(self, query: str) -> str:
        """Search the web and summarize the results.

        Args:
            query: Search query text

        Returns:
            A short human-readable summary, a "no results" message, or an
            apologetic message when the search failed. Never raises.
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        """Close any open connections or resources."""
        pass

    async def __aenter__(self) -> "SearchProvider":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit with automatic cleanup."""
        await self.close()

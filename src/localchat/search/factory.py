from typing import Any

from .base import SearchProvider
from .duckduckgo import DuckDuckGoSearchProvider


def create_search_provider(provider: str = "duckduckgo", **config: Any) -> SearchProvider:
    """Create a search provider instance.

    This factory function hides the instantiation logic for search providers.

    Args:
        provider: Provider type (currently only 'duckduckgo')
        **config: Provider-specific configuration
            For DuckDuckGo:
                - client: httpx.AsyncClient | None
                - base_url: str (default: Instant Answer API)
                - timeout: float (default: 10.0)

    Returns:
        Initialized search provider instance

    Raises:
        ValueError: If provider type is not supported
    """
    provider_lower = provider.lower()

    if provider_lower in ("duckduckgo", "ddg"):
        return DuckDuckGoSearchProvider(**config)

    raise ValueError(
        f"Unsupported search provider: {provider}. "
        f"Supported providers: 'duckduckgo'"
    )

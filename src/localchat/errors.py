"""Base exception for localchat.

Each sub-package defines its own error subclasses next to the code that
raises them; they all derive from LocalChatError so callers can catch the
whole family at a boundary.
"""


class LocalChatError(Exception):
    """Base class for localchat errors."""

    def is_retryable(self) -> bool:
        """Override in subclasses to control retry behavior."""
        return False

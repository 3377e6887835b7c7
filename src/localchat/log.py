"""Logging setup.

Modules log through ``logging.getLogger(__name__)``; the CLI calls
``setup_logging`` once to route records through a Rich handler.
"""

import logging

from rich.console import Console
from rich.logging import RichHandler

LOG_FORMAT = "%(message)s"
LOG_DATE_FORMAT = "%H:%M:%S"

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def level_from_string(level_str: str) -> int:
    """Convert a level name to a logging level. Returns WARNING if invalid."""
    return _LEVELS.get(level_str.lower(), logging.WARNING)


def setup_logging(level: str | int = "warning", console: Console | None = None) -> None:
    """Install a RichHandler on the ``localchat`` logger.

    Args:
        level: Level name ("debug", "info", ...) or numeric logging level
        console: Optional Rich console (defaults to stderr)
    """
    numeric = level if isinstance(level, int) else level_from_string(level)

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
        log_time_format=LOG_DATE_FORMAT,
    )
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    root = logging.getLogger("localchat")
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(numeric)
    root.propagate = False

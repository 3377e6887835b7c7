"""Plain-text conversation export."""

import re
from datetime import datetime
from pathlib import Path

from ..memory.models import Conversation

RULE = "=" * 50

_UNSAFE_FILENAME_RE = re.compile(r'[\\/:*?"<>|\x00-\x1f]')


def _format_datetime(value: datetime) -> str:
    return value.astimezone().strftime("%b %d, %Y %H:%M")


def _format_time(value: datetime) -> str:
    return value.astimezone().strftime("%H:%M")


def format_conversation(conversation: Conversation, model_name: str) -> str:
    """Render a conversation as plain text.

    Args:
        conversation: Conversation to render
        model_name: Display name of the selected model

    Returns:
        Header (title, timestamps, model), a rule, then one block per message
    """
    lines = [
        f"Conversation: {conversation.title}",
        f"Created: {_format_datetime(conversation.created_at)}",
        f"Last Updated: {_format_datetime(conversation.last_updated)}",
        f"Model: {model_name}",
        "",
        RULE,
        "",
    ]
    content = "\n".join(lines) + "\n"

    for message in conversation.messages:
        sender = "You" if message.is_user else "Assistant"
        content += f"[{_format_time(message.timestamp)}] {sender}:\n{message.content}\n\n"

    return content


def export_filename(conversation: Conversation) -> str:
    """Filesystem-safe ``<title>.txt`` name."""
    stem = _UNSAFE_FILENAME_RE.sub("_", conversation.title).strip(" .") or "conversation"
    return f"{stem}.txt"


def write_export(conversation: Conversation, model_name: str, path: Path) -> Path:
    """Write the export; a directory path receives ``<title>.txt``.

    Returns:
        The file written
    """
    target = path / export_filename(conversation) if path.is_dir() else path
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(format_conversation(conversation, model_name), encoding="utf-8")
    return target

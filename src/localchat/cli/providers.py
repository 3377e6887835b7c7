"""Provider factory functions for CLI.

Centralizes creation of the conversation store, inference engine, search
provider and download manager from environment-driven settings.
Hides configuration details from command implementations.
"""

import typer
from rich.console import Console

from ..config import STORE_BACKEND_JSON, STORE_BACKEND_SQLITE, Settings, get_settings
from ..downloads import ModelAcquisitionManager
from ..llm import InferenceEngine, ModelDescriptor, create_inference_engine, get_model
from ..memory import ConversationStore, create_conversation_store
from ..search import SearchProvider, create_search_provider

# Default console for output
_console = Console()

JSON_STORE_FILENAME = "conversations.json"
SQLITE_STORE_FILENAME = "conversations.db"


def get_store(settings: Settings | None = None) -> ConversationStore:
    """Create the conversation store.

    Environment variables:
        LOCALCHAT_STORE_BACKEND: memory, json or sqlite (default: json)
        LOCALCHAT_DATA_DIR: Directory holding the store file (default: ~/.localchat)
    """
    settings = settings or get_settings()
    backend = settings.store_backend

    if backend == STORE_BACKEND_JSON:
        return create_conversation_store(backend, path=settings.data_dir / JSON_STORE_FILENAME)
    elif backend == STORE_BACKEND_SQLITE:
        return create_conversation_store(backend, path=settings.data_dir / SQLITE_STORE_FILENAME)
    return create_conversation_store(backend)


def get_model_descriptor(
    filename: str | None = None,
    settings: Settings | None = None,
    console: Console | None = None
) -> ModelDescriptor:
    """Look up a catalog model, defaulting to LOCALCHAT_DEFAULT_MODEL.

    Raises:
        typer.Exit: If the filename is not in the catalog
    """
    con = console or _console
    settings = settings or get_settings()
    try:
        return get_model(filename or settings.default_model)
    except KeyError as e:
        con.print(f"[red]Error: {e.args[0]}[/red]")
        raise typer.Exit(code=1)


def get_engine(
    model: ModelDescriptor,
    settings: Settings | None = None,
    console: Console | None = None
) -> InferenceEngine:
    """Create the llama.cpp inference engine sized for a model.

    Raises:
        typer.Exit: If llama-cpp-python is not installed

    Environment variables:
        LOCALCHAT_MAX_TOKENS: Maximum tokens per reply (default: 256)
    """
    con = console or _console
    settings = settings or get_settings()
    try:
        return create_inference_engine(
            "llama_cpp",
            context_size=model.context_size,
            max_tokens=settings.max_tokens,
        )
    except ImportError:
        con.print(
            "[red]Error: llama-cpp-python is not installed. "
            "Install it with: pip install 'localchat[llama]'[/red]"
        )
        raise typer.Exit(code=1)


def get_search_provider(settings: Settings | None = None) -> SearchProvider | None:
    """Create the web search provider, or None when search is disabled.

    Environment variables:
        LOCALCHAT_WEB_SEARCH: true/false (default: true)
    """
    settings = settings or get_settings()
    if not settings.web_search:
        return None
    return create_search_provider("duckduckgo")


def get_download_manager(settings: Settings | None = None) -> ModelAcquisitionManager:
    """Create the model download manager.

    Environment variables:
        LOCALCHAT_MODELS_DIR: Download destination (default: ~/.localchat/models)
        LOCALCHAT_BUNDLED_DIR: Read-only directory of shipped models
        LOCALCHAT_MIRROR_DIR: Directory receiving a copy of each download
    """
    settings = settings or get_settings()
    return ModelAcquisitionManager(
        models_dir=settings.models_dir,
        bundled_dir=settings.bundled_dir,
        mirror_dir=settings.mirror_dir,
    )

"""Runtime configuration.

Centralizes directories, defaults and tunables. Values come from
environment variables prefixed with ``LOCALCHAT_`` (the CLI loads a ``.env``
file first), falling back to the defaults below.
"""

import os
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

ENV_PREFIX = "LOCALCHAT_"

DEFAULT_HOME = Path.home() / ".localchat"

# Generation defaults handed to the inference engine
DEFAULT_MAX_TOKENS = 256
DEFAULT_TEMPERATURE = 0.7

# Context usage ratio above which the user is warned
CONTEXT_WARNING_THRESHOLD = 0.7

# Store backends
STORE_BACKEND_MEMORY = "memory"
STORE_BACKEND_JSON = "json"
STORE_BACKEND_SQLITE = "sqlite"


def _env(name: str, default: str | None = None) -> str | None:
    return os.getenv(f"{ENV_PREFIX}{name}", default)


def _env_bool(name: str, default: bool) -> bool:
    value = _env(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Settings(BaseModel):
    """Application settings."""

    model_config = ConfigDict(frozen=True)

    models_dir: Path = Field(
        default=DEFAULT_HOME / "models",
        description="Directory downloaded models are moved into"
    )
    bundled_dir: Path | None = Field(
        default=None,
        description="Read-only directory of models shipped with the app"
    )
    mirror_dir: Path | None = Field(
        default=None,
        description="Optional secondary read path completed downloads are copied to"
    )
    data_dir: Path = Field(
        default=DEFAULT_HOME,
        description="Directory for conversation storage"
    )
    store_backend: str = Field(default=STORE_BACKEND_JSON)
    default_model: str = Field(default="tinyllama-1.1b-chat-v1.0.Q4_K_M.gguf")
    web_search: bool = Field(default=True)
    max_tokens: int = Field(default=DEFAULT_MAX_TOKENS, ge=1)
    log_level: str = Field(default="warning")

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from ``LOCALCHAT_*`` environment variables."""
        bundled = _env("BUNDLED_DIR")
        mirror = _env("MIRROR_DIR")
        return cls(
            models_dir=Path(_env("MODELS_DIR", str(DEFAULT_HOME / "models"))).expanduser(),
            bundled_dir=Path(bundled).expanduser() if bundled else None,
            mirror_dir=Path(mirror).expanduser() if mirror else None,
            data_dir=Path(_env("DATA_DIR", str(DEFAULT_HOME))).expanduser(),
            store_backend=_env("STORE_BACKEND", STORE_BACKEND_JSON).lower(),
            default_model=_env("DEFAULT_MODEL", "tinyllama-1.1b-chat-v1.0.Q4_K_M.gguf"),
            web_search=_env_bool("WEB_SEARCH", True),
            max_tokens=int(_env("MAX_TOKENS", str(DEFAULT_MAX_TOKENS))),
            log_level=_env("LOG_LEVEL", "warning"),
        )


def get_settings() -> Settings:
    """Return settings resolved from the current environment."""
    return Settings.from_env()

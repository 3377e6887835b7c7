"""Storage accounting.

Volume figures come from ``shutil.disk_usage``; app and model usage come
from walking the application directory (every non-hidden file counts toward
app usage, ``.gguf`` files also toward model usage) and, for bundled models,
only the ``.gguf`` files.
"""

import logging
import os
import shutil
from collections.abc import Iterable, Iterator
from pathlib import Path

from .models import StorageSnapshot

logger = logging.getLogger(__name__)

MODEL_SUFFIX = ".gguf"


def _walk_files(root: Path) -> Iterator[Path]:
    """Yield non-hidden regular files below ``root``."""
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = [d for d in dirnames if not d.startswith(".")]
        for name in filenames:
            if not name.startswith("."):
                yield Path(dirpath) / name


def _file_size(path: Path) -> int:
    try:
        return path.stat().st_size
    except OSError:
        return 0


def _existing_ancestor(path: Path) -> Path:
    for candidate in (path, *path.parents):
        if candidate.exists():
            return candidate
    return Path(path.anchor or ".")


def directory_usage(root: Path) -> tuple[int, int]:
    """Return ``(all_bytes, model_bytes)`` for the files below ``root``."""
    total = 0
    models = 0
    if not root.is_dir():
        return total, models

    for path in _walk_files(root):
        size = _file_size(path)
        total += size
        if path.suffix == MODEL_SUFFIX:
            models += size
    return total, models


def compute_storage_snapshot(
    app_dir: Path,
    bundled_dirs: Iterable[Path] = ()
) -> StorageSnapshot:
    """Measure the volume holding ``app_dir`` and the app's own footprint.

    Args:
        app_dir: Directory owned by the application (models are stored below it)
        bundled_dirs: Read-only directories of shipped models

    Returns:
        A snapshot; volume figures are 0 when the volume cannot be queried
    """
    total_space = used_space = available_space = 0
    try:
        usage = shutil.disk_usage(_existing_ancestor(app_dir))
        total_space = usage.total
        available_space = usage.free
        used_space = max(0, usage.total - usage.free)
    except OSError as e:
        logger.warning("Could not query disk usage for %s: %s", app_dir, e)

    app_usage, model_usage = directory_usage(app_dir)

    for bundled in bundled_dirs:
        if bundled.resolve() == app_dir.resolve():
            continue
        _, bundled_models = directory_usage(bundled)
        app_usage += bundled_models
        model_usage += bundled_models

    return StorageSnapshot(
        total_space=total_space,
        used_space=used_space,
        available_space=available_space,
        app_usage=app_usage,
        model_usage=model_usage,
    )


def format_bytes(count: int) -> str:
    """Human-readable byte count (``1.5 GB``)."""
    value = float(count)
    for unit in ("B", "KB", "MB", "GB"):
        if value < 1024 or unit == "GB":
            return f"{value:.0f} {unit}" if unit == "B" else f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} GB"

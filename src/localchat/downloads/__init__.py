from .errors import (
    FAILURE_MESSAGES,
    ArtifactTooSmallError,
    BadMagicError,
    BadResponseError,
    DownloadError,
    TransportFailureError,
    UnresolvableURLError,
    failure_message,
)
from .manager import GGUF_MAGIC, MIN_ARTIFACT_BYTES, ModelAcquisitionManager, validate_artifact
from .models import (
    DownloadEvent,
    DownloadFailureReason,
    DownloadState,
    DownloadStatus,
    StorageSnapshot,
)
from .storage import compute_storage_snapshot, format_bytes
from .urls import DOWNLOAD_URLS, resolve_url

__all__ = [
    "DOWNLOAD_URLS",
    "FAILURE_MESSAGES",
    "GGUF_MAGIC",
    "MIN_ARTIFACT_BYTES",
    "ArtifactTooSmallError",
    "BadMagicError",
    "BadResponseError",
    "DownloadError",
    "DownloadEvent",
    "DownloadFailureReason",
    "DownloadState",
    "DownloadStatus",
    "ModelAcquisitionManager",
    "StorageSnapshot",
    "TransportFailureError",
    "UnresolvableURLError",
    "compute_storage_snapshot",
    "failure_message",
    "format_bytes",
    "resolve_url",
]

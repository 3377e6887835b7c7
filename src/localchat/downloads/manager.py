"""Model acquisition.

Downloads GGUF artifacts with progress reporting, validates them and moves
them into the models directory. All state lives on the event loop that runs
the downloads; each filename has at most one in-flight task, which is the
only writer of its progress entry.
"""

import logging
import os
import shutil
from collections.abc import AsyncIterator, Callable
from pathlib import Path

import httpx

from ..llm.catalog import ModelDescriptor
from .errors import (
    ArtifactTooSmallError,
    BadMagicError,
    BadResponseError,
    DownloadError,
    TransportFailureError,
    UnresolvableURLError,
)
from .models import DownloadEvent, DownloadState, DownloadStatus, StorageSnapshot
from .storage import compute_storage_snapshot
from .urls import resolve_url

logger = logging.getLogger(__name__)

GGUF_MAGIC = b"GGUF"
MIN_ARTIFACT_BYTES = 1_000_000
CHUNK_SIZE = 1024 * 1024
PARTIAL_SUFFIX = ".part"

DownloadListener = Callable[[DownloadEvent], None]


def validate_artifact(path: Path, filename: str, min_size: int = MIN_ARTIFACT_BYTES) -> None:
    """Check magic bytes and size of a downloaded file.

    The header is checked first so a non-GGUF payload is always reported as
    such, whatever its length.

    Raises:
        BadMagicError: If the first four bytes are not ``GGUF``
        ArtifactTooSmallError: If the file is smaller than ``min_size``
    """
    with open(path, "rb") as f:
        header = f.read(len(GGUF_MAGIC))
    if header != GGUF_MAGIC:
        raise BadMagicError(filename, f"header {header!r}")

    size = path.stat().st_size
    if size < min_size:
        raise ArtifactTooSmallError(filename, f"{size} bytes")


class ModelAcquisitionManager:
    """Drives model downloads and answers "is this model ready".

    Hidden design decisions:
    - Download URL registry
    - Temp file naming and the atomic move into place
    - Artifact validation (status, magic bytes, size)
    - Mirroring to a secondary read path
    - Storage accounting refresh after completion
    """

    def __init__(
        self,
        models_dir: Path,
        bundled_dir: Path | None = None,
        mirror_dir: Path | None = None,
        client: httpx.AsyncClient | None = None,
        urls: dict[str, str] | None = None,
        min_size: int = MIN_ARTIFACT_BYTES,
        chunk_size: int = CHUNK_SIZE
    ):
        """Initialize the manager.

        Args:
            models_dir: Directory completed downloads are moved into
            bundled_dir: Read-only directory of shipped models
            mirror_dir: Optional directory that receives a copy of each download
            client: HTTP client (created on demand if None)
            urls: URL registry override (defaults to the built-in registry)
            min_size: Minimum accepted artifact size in bytes
            chunk_size: Streaming chunk size in bytes
        """
        self._models_dir = Path(models_dir)
        self._bundled_dir = Path(bundled_dir) if bundled_dir else None
        self._mirror_dir = Path(mirror_dir) if mirror_dir else None
        self._client = client
        self._owns_client = client is None
        self._urls = urls
        self._min_size = min_size
        self._chunk_size = chunk_size

        self._states: dict[str, DownloadState] = {}
        self._progress: dict[str, float] = {}
        self._active: set[str] = set()
        self._listeners: list[DownloadListener] = []
        self._storage = StorageSnapshot()

    @property
    def models_dir(self) -> Path:
        return self._models_dir

    @property
    def progress(self) -> dict[str, float]:
        """Progress of in-flight downloads keyed by filename."""
        return dict(self._progress)

    @property
    def active(self) -> frozenset[str]:
        """Filenames with a download in flight."""
        return frozenset(self._active)

    @property
    def storage(self) -> StorageSnapshot:
        """Most recent storage snapshot."""
        return self._storage

    def state(self, filename: str) -> DownloadState | None:
        """Last known state for a filename."""
        return self._states.get(filename)

    def subscribe(self, listener: DownloadListener) -> Callable[[], None]:
        """Register a listener for download events.

        Returns:
            A callable that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def destination(self, descriptor: ModelDescriptor) -> Path:
        return self._models_dir / descriptor.filename

    def resolve_model_path(self, descriptor: ModelDescriptor) -> Path | None:
        """Local path of a model, preferring downloads over bundled copies."""
        downloaded = self.destination(descriptor)
        if downloaded.is_file():
            return downloaded
        if self._bundled_dir is not None:
            bundled = self._bundled_dir / descriptor.filename
            if bundled.is_file():
                return bundled
        return None

    def is_model_available(self, descriptor: ModelDescriptor) -> bool:
        return self.resolve_model_path(descriptor) is not None

    def refresh_storage(self) -> StorageSnapshot:
        """Recompute the storage snapshot."""
        bundled = [self._bundled_dir] if self._bundled_dir else []
        self._storage = compute_storage_snapshot(self._models_dir, bundled)
        return self._storage

    def _emit(
        self,
        state: DownloadState,
        bytes_written: int = 0,
        bytes_expected: int | None = None
    ) -> DownloadEvent:
        self._states[state.filename] = state
        if state.is_terminal:
            self._progress.pop(state.filename, None)
            self._active.discard(state.filename)
        else:
            self._progress[state.filename] = state.progress

        event = DownloadEvent(
            state=state,
            bytes_written=bytes_written,
            bytes_expected=bytes_expected,
        )
        for listener in list(self._listeners):
            listener(event)
        return event

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(follow_redirects=True, timeout=None)
        return self._client

    async def start(self, descriptor: ModelDescriptor) -> AsyncIterator[DownloadEvent]:
        """Download a model, yielding an event for every transition and tick.

        Idempotent: yields nothing when the filename is already in flight or
        already completed in this session. Failures end in a ``failed`` event;
        nothing is raised.

        Args:
            descriptor: Catalog entry of the model to fetch

        Yields:
            Download events, the last one terminal
        """
        filename = descriptor.filename
        previous = self._states.get(filename)
        if filename in self._active or (
            previous is not None and previous.status == DownloadStatus.COMPLETED
        ):
            logger.debug("Download of %s already in flight or completed", filename)
            return

        # Claimed before the first await so a concurrent start sees it
        self._active.add(filename)
        self._progress[filename] = 0.0

        url = resolve_url(filename, self._urls)
        if url is None:
            error = UnresolvableURLError(filename)
            logger.warning("%s", error)
            yield self._failed(filename, error)
            return

        destination = self.destination(descriptor)
        if destination.exists():
            logger.info("%s already present at %s", filename, destination)
            yield self._emit(DownloadState(
                filename=filename, progress=1.0, status=DownloadStatus.COMPLETED
            ))
            return

        partial = destination.with_name(destination.name + PARTIAL_SUFFIX)
        try:
            logger.info("Downloading %s from %s", filename, url)
            yield self._emit(DownloadState(filename=filename, status=DownloadStatus.DOWNLOADING))

            progress = 0.0
            try:
                self._models_dir.mkdir(parents=True, exist_ok=True)
                async with self._get_client().stream("GET", url) as response:
                    if not response.is_success:
                        raise BadResponseError(filename, f"HTTP {response.status_code}")

                    expected = int(response.headers.get("content-length", 0)) or None
                    written = 0
                    with open(partial, "wb") as f:
                        async for chunk in response.aiter_bytes(self._chunk_size):
                            f.write(chunk)
                            written += len(chunk)
                            if expected:
                                progress = max(progress, min(1.0, written / expected))
                            yield self._emit(
                                DownloadState(
                                    filename=filename,
                                    progress=progress,
                                    status=DownloadStatus.DOWNLOADING,
                                ),
                                bytes_written=written,
                                bytes_expected=expected,
                            )

                yield self._emit(DownloadState(
                    filename=filename, progress=progress, status=DownloadStatus.VALIDATING
                ))
                validate_artifact(partial, filename, self._min_size)
                os.replace(partial, destination)
            except DownloadError as e:
                partial.unlink(missing_ok=True)
                logger.warning("%s", e)
                yield self._failed(filename, e, progress)
                return
            except (httpx.HTTPError, OSError, ValueError) as e:
                # Covers transport, decoding and redirect failures and a malformed content-length
                partial.unlink(missing_ok=True)
                error = TransportFailureError(filename, str(e))
                logger.warning("%s", error)
                yield self._failed(filename, error, progress)
                return

            self._mirror(destination)
            self.refresh_storage()
            logger.info("Downloaded %s", filename)
            yield self._emit(DownloadState(
                filename=filename, progress=1.0, status=DownloadStatus.COMPLETED
            ))
        finally:
            if filename in self._active:
                # Iteration abandoned before a terminal event
                self._active.discard(filename)
                self._progress.pop(filename, None)
                partial.unlink(missing_ok=True)

    def _failed(self, filename: str, error: DownloadError, progress: float = 0.0) -> DownloadEvent:
        return self._emit(DownloadState(
            filename=filename,
            progress=progress,
            status=DownloadStatus.FAILED,
            reason=error.reason,
            detail=error.detail or None,
        ))

    def _mirror(self, artifact: Path) -> None:
        if self._mirror_dir is None:
            return
        try:
            self._mirror_dir.mkdir(parents=True, exist_ok=True)
            shutil.copy2(artifact, self._mirror_dir / artifact.name)
        except OSError as e:
            logger.warning("Could not mirror %s to %s: %s", artifact.name, self._mirror_dir, e)

    async def download(self, descriptor: ModelDescriptor) -> DownloadState | None:
        """Run ``start`` to the end.

        Returns:
            The terminal state, or None when the call was a no-op
        """
        last: DownloadEvent | None = None
        async for event in self.start(descriptor):
            last = event
        return last.state if last else None

    async def close(self) -> None:
        """Close the HTTP client if this manager created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "ModelAcquisitionManager":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

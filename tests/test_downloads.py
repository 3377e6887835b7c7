"""Unit tests for the downloads module."""
import asyncio

import httpx
import pytest

from localchat.downloads import (
    FAILURE_MESSAGES,
    BadMagicError,
    DownloadEvent,
    DownloadFailureReason,
    DownloadStatus,
    ModelAcquisitionManager,
    StorageSnapshot,
    compute_storage_snapshot,
    format_bytes,
    resolve_url,
    validate_artifact,
)
from localchat.downloads.errors import ArtifactTooSmallError
from localchat.llm import ModelDescriptor, get_model
from localchat.prompts import PromptFormat

MODEL_URL = "https://models.test/tiny-test.gguf"


@pytest.fixture
def descriptor():
    """Catalog-like descriptor with a test URL."""
    return ModelDescriptor(
        filename="tiny-test.gguf",
        display_name="Tiny Test",
        description="Model used in tests",
        context_size=2048,
        prompt_format=PromptFormat.CHATML,
        size_gb=0.001,
    )


def _manager(tmp_path, handler, **kwargs) -> ModelAcquisitionManager:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return ModelAcquisitionManager(
        models_dir=tmp_path / "models",
        client=client,
        urls={"tiny-test.gguf": MODEL_URL},
        chunk_size=256 * 1024,
        **kwargs
    )


async def _collect(manager: ModelAcquisitionManager, descriptor: ModelDescriptor) -> list[DownloadEvent]:
    return [event async for event in manager.start(descriptor)]


class TestSuccessfulDownload:
    """Tests for the happy path."""

    @pytest.mark.asyncio
    async def test_completes_and_moves_artifact(self, tmp_path, descriptor, gguf_payload):
        """Test that a valid artifact ends up at its destination."""
        manager = _manager(tmp_path, lambda request: httpx.Response(200, content=gguf_payload))
        events = await _collect(manager, descriptor)

        final = events[-1].state
        assert final.status == DownloadStatus.COMPLETED
        assert final.progress == 1.0

        destination = manager.destination(descriptor)
        assert destination.read_bytes() == gguf_payload
        assert not destination.with_name("tiny-test.gguf.part").exists()
        assert manager.is_model_available(descriptor)

    @pytest.mark.asyncio
    async def test_progress_is_monotonic(self, tmp_path, descriptor, gguf_payload):
        """Test that progress never decreases and reaches 1.0."""
        manager = _manager(tmp_path, lambda request: httpx.Response(200, content=gguf_payload))
        events = await _collect(manager, descriptor)

        progress = [event.state.progress for event in events]
        assert progress == sorted(progress)
        assert progress[-1] == 1.0
        assert len(progress) > 3

    @pytest.mark.asyncio
    async def test_status_sequence(self, tmp_path, descriptor, gguf_payload):
        """Test the downloading, validating, completed sequence."""
        manager = _manager(tmp_path, lambda request: httpx.Response(200, content=gguf_payload))
        statuses = [event.state.status for event in await _collect(manager, descriptor)]

        assert statuses[0] == DownloadStatus.DOWNLOADING
        assert statuses[-2] == DownloadStatus.VALIDATING
        assert statuses[-1] == DownloadStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_active_and_progress_cleared(self, tmp_path, descriptor, gguf_payload):
        """Test that the filename leaves the active set on completion."""
        manager = _manager(tmp_path, lambda request: httpx.Response(200, content=gguf_payload))
        seen_active = []
        manager.subscribe(lambda event: seen_active.append(descriptor.filename in manager.active))

        await manager.download(descriptor)

        assert seen_active[0] is True
        assert descriptor.filename not in manager.active
        assert descriptor.filename not in manager.progress

    @pytest.mark.asyncio
    async def test_storage_refreshed(self, tmp_path, descriptor, gguf_payload):
        """Test that completion refreshes storage accounting."""
        manager = _manager(tmp_path, lambda request: httpx.Response(200, content=gguf_payload))
        assert manager.storage.model_usage == 0

        await manager.download(descriptor)

        assert manager.storage.model_usage == len(gguf_payload)

    @pytest.mark.asyncio
    async def test_mirror_receives_copy(self, tmp_path, descriptor, gguf_payload):
        """Test that a mirror directory gets a copy of the artifact."""
        mirror = tmp_path / "mirror"
        manager = _manager(
            tmp_path,
            lambda request: httpx.Response(200, content=gguf_payload),
            mirror_dir=mirror,
        )
        await manager.download(descriptor)

        assert (mirror / "tiny-test.gguf").read_bytes() == gguf_payload


class TestFailedDownload:
    """Tests for each failure reason."""

    @pytest.mark.asyncio
    async def test_bad_magic(self, tmp_path, descriptor):
        """Test that a zero header fails regardless of size and leaves nothing behind."""
        payload = b"\x00\x00\x00\x00" + b"\x01" * 2_000_000
        manager = _manager(tmp_path, lambda request: httpx.Response(200, content=payload))

        state = await manager.download(descriptor)

        assert state.status == DownloadStatus.FAILED
        assert state.reason == DownloadFailureReason.BAD_MAGIC
        destination = manager.destination(descriptor)
        assert not destination.exists()
        assert not destination.with_name("tiny-test.gguf.part").exists()

    @pytest.mark.asyncio
    async def test_bad_magic_never_completes(self, tmp_path, descriptor):
        """Test that no completed event is emitted for a bad artifact."""
        payload = b"\x00" * 1_500_000
        manager = _manager(tmp_path, lambda request: httpx.Response(200, content=payload))
        events = await _collect(manager, descriptor)

        assert all(event.state.status != DownloadStatus.COMPLETED for event in events)

    @pytest.mark.asyncio
    async def test_small_zero_header_is_bad_magic(self, tmp_path, descriptor):
        """Test that a short zero-header payload is bad magic, not too small."""
        manager = _manager(tmp_path, lambda request: httpx.Response(200, content=b"\x00" * 64))
        state = await manager.download(descriptor)

        assert state.reason == DownloadFailureReason.BAD_MAGIC

    @pytest.mark.asyncio
    async def test_too_small(self, tmp_path, descriptor):
        """Test that a tiny artifact is rejected."""
        manager = _manager(tmp_path, lambda request: httpx.Response(200, content=b"GGUF" + b"\x00" * 100))
        state = await manager.download(descriptor)

        assert state.reason == DownloadFailureReason.TOO_SMALL
        assert not manager.destination(descriptor).exists()

    @pytest.mark.asyncio
    async def test_bad_response(self, tmp_path, descriptor):
        """Test that a non-2xx status is a bad response."""
        manager = _manager(tmp_path, lambda request: httpx.Response(404, text="not found"))
        state = await manager.download(descriptor)

        assert state.reason == DownloadFailureReason.BAD_RESPONSE
        assert state.detail == "HTTP 404"

    @pytest.mark.asyncio
    async def test_transport_error(self, tmp_path, descriptor):
        """Test that a connection failure is a transport error."""
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        manager = _manager(tmp_path, handler)
        state = await manager.download(descriptor)

        assert state.reason == DownloadFailureReason.TRANSPORT_ERROR
        assert descriptor.filename not in manager.active

    @pytest.mark.asyncio
    async def test_undecodable_body(self, tmp_path, descriptor):
        """Test that a body that fails content decoding ends in a failed state."""
        manager = _manager(
            tmp_path,
            lambda request: httpx.Response(
                200, headers={"content-encoding": "gzip"}, content=b"not gzip at all" * 100
            ),
        )

        state = await manager.download(descriptor)

        assert state.status == DownloadStatus.FAILED
        assert state.reason == DownloadFailureReason.TRANSPORT_ERROR
        assert manager.state(descriptor.filename) == state
        assert descriptor.filename not in manager.active
        assert not (tmp_path / "models" / "tiny-test.gguf.part").exists()

    @pytest.mark.asyncio
    async def test_redirect_loop(self, tmp_path, descriptor):
        """Test that too many redirects end in a failed state."""
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(302, headers={"location": MODEL_URL})

        client = httpx.AsyncClient(
            transport=httpx.MockTransport(handler), follow_redirects=True, max_redirects=3
        )
        manager = ModelAcquisitionManager(
            models_dir=tmp_path / "models",
            client=client,
            urls={"tiny-test.gguf": MODEL_URL},
        )

        state = await manager.download(descriptor)

        assert state.status == DownloadStatus.FAILED
        assert state.reason == DownloadFailureReason.TRANSPORT_ERROR
        assert descriptor.filename not in manager.active

    @pytest.mark.asyncio
    async def test_malformed_content_length(self, tmp_path, descriptor, gguf_payload):
        """Test that an unparsable content-length ends in a failed state."""
        manager = _manager(
            tmp_path,
            lambda request: httpx.Response(
                200, headers={"content-length": "lots"}, content=gguf_payload
            ),
        )

        state = await manager.download(descriptor)

        assert state.status == DownloadStatus.FAILED
        assert state.reason == DownloadFailureReason.TRANSPORT_ERROR
        assert not manager.destination(descriptor).exists()

    @pytest.mark.asyncio
    async def test_unresolvable_url(self, tmp_path):
        """Test that a model without a URL fails without any request."""
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200)

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        manager = ModelAcquisitionManager(models_dir=tmp_path, client=client)
        state = await manager.download(get_model("tinyllama-1.1b-chat-v1.0.Q4_K_M.gguf"))

        assert state.reason == DownloadFailureReason.UNRESOLVABLE_URL
        assert requests == []

    @pytest.mark.asyncio
    async def test_retry_after_failure(self, tmp_path, descriptor, gguf_payload):
        """Test that a failed attempt can be retried explicitly."""
        responses = [httpx.Response(500), httpx.Response(200, content=gguf_payload)]
        manager = _manager(tmp_path, lambda request: responses.pop(0))

        first = await manager.download(descriptor)
        second = await manager.download(descriptor)

        assert first.status == DownloadStatus.FAILED
        assert second.status == DownloadStatus.COMPLETED

    def test_failure_messages_are_distinct(self):
        """Test that every reason has its own sentence."""
        messages = [FAILURE_MESSAGES[reason] for reason in DownloadFailureReason]
        assert len(set(messages)) == len(DownloadFailureReason)


class TestIdempotency:
    """Tests for repeated start calls."""

    @pytest.mark.asyncio
    async def test_concurrent_start_has_one_terminal_transition(self, tmp_path, descriptor, gguf_payload):
        """Test that two immediate starts produce exactly one terminal event."""
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, content=gguf_payload)

        manager = _manager(tmp_path, handler)
        terminal = []
        manager.subscribe(lambda event: terminal.append(event) if event.state.is_terminal else None)

        first, second = await asyncio.gather(
            manager.download(descriptor),
            manager.download(descriptor),
        )

        assert len(terminal) == 1
        assert len(requests) == 1
        assert {first is None, second is None} == {True, False}

    @pytest.mark.asyncio
    async def test_start_after_completion_is_noop(self, tmp_path, descriptor, gguf_payload):
        """Test that a completed filename is not downloaded again."""
        manager = _manager(tmp_path, lambda request: httpx.Response(200, content=gguf_payload))
        await manager.download(descriptor)

        assert await _collect(manager, descriptor) == []

    @pytest.mark.asyncio
    async def test_existing_file_skips_network(self, tmp_path, descriptor):
        """Test that an artifact already on disk completes without a request."""
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(500)

        manager = _manager(tmp_path, handler)
        manager.models_dir.mkdir(parents=True)
        manager.destination(descriptor).write_bytes(b"GGUF")

        state = await manager.download(descriptor)

        assert state.status == DownloadStatus.COMPLETED
        assert requests == []


class TestAvailability:
    """Tests for the model-ready predicate."""

    def test_prefers_downloaded_over_bundled(self, tmp_path, descriptor):
        """Test that a downloaded artifact wins over a bundled one."""
        models, bundled = tmp_path / "models", tmp_path / "bundled"
        models.mkdir()
        bundled.mkdir()
        (models / descriptor.filename).write_bytes(b"GGUF")
        (bundled / descriptor.filename).write_bytes(b"GGUF")

        manager = ModelAcquisitionManager(models_dir=models, bundled_dir=bundled)
        assert manager.resolve_model_path(descriptor) == models / descriptor.filename

    def test_falls_back_to_bundled(self, tmp_path, descriptor):
        """Test that a bundled artifact is used when nothing was downloaded."""
        bundled = tmp_path / "bundled"
        bundled.mkdir()
        (bundled / descriptor.filename).write_bytes(b"GGUF")

        manager = ModelAcquisitionManager(models_dir=tmp_path / "models", bundled_dir=bundled)
        assert manager.resolve_model_path(descriptor) == bundled / descriptor.filename

    def test_missing_model(self, tmp_path, descriptor):
        """Test that a missing model is reported unavailable."""
        manager = ModelAcquisitionManager(models_dir=tmp_path)
        assert not manager.is_model_available(descriptor)
        assert manager.resolve_model_path(descriptor) is None


class TestValidation:
    """Tests for artifact validation."""

    def test_accepts_valid_artifact(self, tmp_path, gguf_payload):
        """Test that a large GGUF file passes."""
        path = tmp_path / "ok.gguf"
        path.write_bytes(gguf_payload)
        validate_artifact(path, "ok.gguf")

    def test_magic_checked_before_size(self, tmp_path):
        """Test that a small file with a zero header is reported as bad magic."""
        path = tmp_path / "small.gguf"
        path.write_bytes(b"\x00" * 10)
        with pytest.raises(BadMagicError):
            validate_artifact(path, "small.gguf")

    def test_small_gguf_is_too_small(self, tmp_path):
        """Test that a short file with a valid header is too small."""
        path = tmp_path / "small.gguf"
        path.write_bytes(b"GGUF" + b"\x00" * 10)
        with pytest.raises(ArtifactTooSmallError):
            validate_artifact(path, "small.gguf")

    def test_rejects_bad_magic(self, tmp_path):
        """Test that a wrong header is rejected."""
        path = tmp_path / "bad.gguf"
        path.write_bytes(b"GGML" + b"\x00" * 1_000_000)
        with pytest.raises(BadMagicError) as exc_info:
            validate_artifact(path, "bad.gguf")
        assert not exc_info.value.is_retryable()


class TestUrlRegistry:
    """Tests for the static URL registry."""

    def test_known_model(self):
        """Test that catalog models with a source resolve to Hugging Face."""
        url = resolve_url("qwen2.5-7b-instruct-q4_k_m.gguf")
        assert url.startswith("https://huggingface.co/bartowski/")

    def test_models_without_source(self):
        """Test that TinyLlama and Phi-3 have no download source."""
        assert resolve_url("tinyllama-1.1b-chat-v1.0.Q4_K_M.gguf") is None
        assert resolve_url("phi-3-mini-4k-instruct.Q4_K_M.gguf") is None


class TestStorage:
    """Tests for storage accounting."""

    def test_snapshot_counts_app_and_models(self, tmp_path):
        """Test that all files count as app usage and gguf files as models."""
        (tmp_path / "a.gguf").write_bytes(b"x" * 100)
        (tmp_path / "notes.txt").write_bytes(b"x" * 50)
        (tmp_path / ".hidden").write_bytes(b"x" * 1000)

        snapshot = compute_storage_snapshot(tmp_path)

        assert snapshot.app_usage == 150
        assert snapshot.model_usage == 100
        assert snapshot.total_space > 0
        assert snapshot.used_space + snapshot.available_space <= snapshot.total_space

    def test_bundled_models_counted(self, tmp_path):
        """Test that bundled gguf files count toward both totals."""
        app, bundled = tmp_path / "app", tmp_path / "bundled"
        app.mkdir()
        bundled.mkdir()
        (bundled / "b.gguf").write_bytes(b"x" * 40)
        (bundled / "readme.txt").write_bytes(b"x" * 40)

        snapshot = compute_storage_snapshot(app, [bundled])

        assert snapshot.app_usage == 40
        assert snapshot.model_usage == 40

    def test_missing_directory(self, tmp_path):
        """Test that a missing app directory counts as empty."""
        snapshot = compute_storage_snapshot(tmp_path / "missing")
        assert snapshot.app_usage == 0

    def test_percentages_zero_without_total(self):
        """Test that percentages are 0 when the volume size is unknown."""
        snapshot = StorageSnapshot(used_space=10, app_usage=5)
        assert snapshot.used_percentage == 0
        assert snapshot.app_usage_percentage == 0

    def test_percentages(self):
        """Test the derived percentages."""
        snapshot = StorageSnapshot(total_space=200, used_space=50, app_usage=20)
        assert snapshot.used_percentage == 25.0
        assert snapshot.app_usage_percentage == 10.0

    def test_format_bytes(self):
        """Test human-readable byte counts."""
        assert format_bytes(512) == "512 B"
        assert format_bytes(1536) == "1.5 KB"
        assert format_bytes(3 * 1024 ** 3) == "3.0 GB"

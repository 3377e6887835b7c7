"""Pytest configuration and shared fixtures."""
import threading
from pathlib import Path

import pytest

from localchat.llm import InferenceEngine, InferenceError
from localchat.memory.in_memory import InMemoryConversationStore
from localchat.search import SearchProvider


class FakeEngine(InferenceEngine):
    """Inference engine returning canned replies and recording prompts."""

    def __init__(self, replies: list[str] | None = None, error: Exception | None = None):
        self.replies = list(replies or ["Hello there, how can I help you today?"])
        self.error = error
        self.calls: list[tuple[str, Path]] = []
        self.closed = False

    def run(self, prompt: str, model_path: str | Path) -> str:
        self.calls.append((prompt, Path(model_path)))
        if self.error is not None:
            raise self.error
        if len(self.replies) > 1:
            return self.replies.pop(0)
        return self.replies[0]

    @property
    def prompts(self) -> list[str]:
        return [prompt for prompt, _ in self.calls]

    def close(self) -> None:
        self.closed = True


class BlockingEngine(FakeEngine):
    """Engine that holds each call until the test releases it."""

    def __init__(self):
        super().__init__(["Released reply after waiting."])
        self.release = threading.Event()

    def run(self, prompt: str, model_path: str | Path) -> str:
        self.release.wait(timeout=5)
        return super().run(prompt, model_path)


class FakeSearchProvider(SearchProvider):
    """Search provider returning a fixed summary and recording queries."""

    def __init__(self, result: str = "Search: 72F and sunny (Source: Test)"):
        self.result = result
        self.queries: list[str] = []

    async def search(self, query: str) -> str:
        self.queries.append(query)
        return self.result

    async def close(self) -> None:
        pass


@pytest.fixture
def fake_engine():
    """Engine that answers with a single harmless sentence."""
    return FakeEngine()


@pytest.fixture
def make_engine():
    """Factory for engines with custom replies."""
    return FakeEngine


@pytest.fixture
def blocking_engine():
    """Engine that waits until ``release`` is set."""
    return BlockingEngine()


@pytest.fixture
def failing_engine():
    """Engine whose every call fails."""
    return FakeEngine(error=InferenceError("out of memory"))


@pytest.fixture
def fake_search():
    """Search provider with the weather summary used in end-to-end tests."""
    return FakeSearchProvider()


@pytest.fixture
def memory_store():
    """Empty in-memory conversation store."""
    return InMemoryConversationStore()


@pytest.fixture
def model_file(tmp_path):
    """A file standing in for a downloaded model artifact."""
    path = tmp_path / "model.gguf"
    path.write_bytes(b"GGUF" + b"\x00" * 16)
    return path


@pytest.fixture
def gguf_payload():
    """Bytes that pass size and magic validation."""
    return b"GGUF" + b"\x01" * 1_200_000

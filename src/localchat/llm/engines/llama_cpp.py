"""llama.cpp inference engine via llama-cpp-python."""

import logging
import threading
from pathlib import Path
from typing import Any

from llama_cpp import Llama

from ...config import DEFAULT_MAX_TOKENS, DEFAULT_TEMPERATURE
from ..base import InferenceEngine, InferenceError

logger = logging.getLogger(__name__)


class LlamaCppEngine(InferenceEngine):
    """Runs GGUF models in-process with llama.cpp.

    Hidden design decisions:
    - Model loading and per-path caching
    - Sampling parameters
    - Serializing calls on a loaded model (llama.cpp contexts are not reentrant)
    """

    def __init__(
        self,
        context_size: int = 2048,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        temperature: float = DEFAULT_TEMPERATURE,
        top_k: int = 40,
        top_p: float = 0.9,
        n_threads: int | None = None,
        n_gpu_layers: int = 0,
        stop: list[str] | None = None,
        **llama_kwargs: Any
    ):
        """Initialize the engine.

        Args:
            context_size: Context window passed to llama.cpp as ``n_ctx``
            max_tokens: Maximum tokens generated per call
            temperature: Sampling temperature
            top_k: Top-k sampling pool
            top_p: Nucleus sampling threshold
            n_threads: CPU threads (None lets llama.cpp decide)
            n_gpu_layers: Layers offloaded to the GPU
            stop: Optional stop strings handed to the sampler
            **llama_kwargs: Additional kwargs for ``llama_cpp.Llama``
        """
        self._context_size = context_size
        self._max_tokens = max_tokens
        self._temperature = temperature
        self._top_k = top_k
        self._top_p = top_p
        self._n_threads = n_threads
        self._n_gpu_layers = n_gpu_layers
        self._stop = stop or []
        self._llama_kwargs = llama_kwargs
        self._models: dict[str, Llama] = {}
        self._lock = threading.Lock()

    def _load(self, model_path: str) -> Llama:
        if model_path not in self._models:
            logger.info("Loading model %s", model_path)
            self._models[model_path] = Llama(
                model_path=model_path,
                n_ctx=self._context_size,
                n_threads=self._n_threads,
                n_gpu_layers=self._n_gpu_layers,
                verbose=False,
                **self._llama_kwargs
            )
        return self._models[model_path]

    def run(self, prompt: str, model_path: str | Path) -> str:
        path = str(model_path)
        if not Path(path).exists():
            raise InferenceError(f"model file not found: {path}")

        with self._lock:
            try:
                model = self._load(path)
                output = model(
                    prompt,
                    max_tokens=self._max_tokens,
                    temperature=self._temperature,
                    top_k=self._top_k,
                    top_p=self._top_p,
                    stop=self._stop,
                    echo=False,
                )
            except (ValueError, RuntimeError, OSError) as e:
                raise InferenceError(str(e)) from e

        try:
            return output["choices"][0]["text"]
        except (KeyError, IndexError, TypeError) as e:
            raise InferenceError(f"unexpected llama.cpp output: {e}") from e

    def close(self) -> None:
        with self._lock:
            for model in self._models.values():
                model.close()
            self._models.clear()

from typing import Any

from .base import InferenceEngine


def create_inference_engine(backend: str = "llama_cpp", **config: Any) -> InferenceEngine:
    """Create an inference engine instance.

    This factory function hides the instantiation logic for different runtimes.

    Args:
        backend: Engine type (currently 'llama_cpp')
        **config: Engine-specific configuration
            For llama_cpp:
                - context_size: int (default: 2048)
                - max_tokens: int (default: 256)
                - temperature: float (default: 0.7)
                - top_k: int (default: 40)
                - top_p: float (default: 0.9)
                - n_threads: int | None
                - n_gpu_layers: int (default: 0)

    Returns:
        Initialized inference engine

    Raises:
        ValueError: If backend type is not supported

    Examples:
        >>> engine = create_inference_engine("llama_cpp", max_tokens=128)
    """
    backend_lower = backend.lower().replace("-", "_")

    if backend_lower in ("llama_cpp", "llamacpp", "llama.cpp"):
        from .engines.llama_cpp import LlamaCppEngine
        return LlamaCppEngine(**config)

    raise ValueError(
        f"Unsupported inference backend: {backend}. "
        f"Supported backends: 'llama_cpp'"
    )

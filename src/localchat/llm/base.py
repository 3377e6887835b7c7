from abc import ABC, abstractmethod
from pathlib import Path

from ..errors import LocalChatError


class InferenceError(LocalChatError):
    """The inference engine failed to produce a completion."""

    def __init__(self, message: str):
        super().__init__(f"Inference failed: {message}")


class InferenceEngine(ABC):
    """Abstract base class for local inference engines.

    This module hides the design decision of which runtime executes the model.
    Implementations must handle runtime-specific details like:
    - Loading and caching model weights
    - Sampling parameters
    - Translating runtime failures into InferenceError

    The call is synchronous; async callers should run it in a worker thread.
    """

    @abstractmethod
    def run(self, prompt: str, model_path: str | Path) -> str:
        """Generate a completion for a fully assembled prompt.

        Args:
            prompt: Prompt text, already rendered in the model's format
            model_path: Filesystem path of the model artifact

        Returns:
            Raw generated text (not sanitized)

        Raises:
            InferenceError: If the model cannot be loaded or generation fails
        """
        pass

    def close(self) -> None:
        """Release loaded models. Default is a no-op."""
        pass


class ModelNotFoundError(LocalChatError):
    """No local artifact exists for the selected model."""

    def __init__(self, display_name: str):
        self.display_name = display_name
        super().__init__(
            f"Model file '{display_name}' not found. Please download the model first."
        )

"""Static catalog of supported models."""

from pydantic import BaseModel, ConfigDict, Field

from ..prompts.formats import PromptFormat


class ModelDescriptor(BaseModel):
    """Read-only description of a downloadable model."""

    model_config = ConfigDict(frozen=True)

    filename: str = Field(description="Artifact filename, unique key")
    display_name: str
    description: str
    context_size: int = Field(gt=0, description="Context window in tokens")
    prompt_format: PromptFormat
    size_gb: float = Field(ge=0.0)

    @property
    def stem(self) -> str:
        """Filename without the ``.gguf`` extension."""
        return self.filename[:-5] if self.filename.endswith(".gguf") else self.filename


MODEL_CATALOG: tuple[ModelDescriptor, ...] = (
    ModelDescriptor(
        filename="tinyllama-1.1b-chat-v1.0.Q4_K_M.gguf",
        display_name="TinyLlama 1.1B (Fast)",
        description="Smallest model, very fast but limited capabilities",
        context_size=2048,
        prompt_format=PromptFormat.CHATML,
        size_gb=0.7,
    ),
    ModelDescriptor(
        filename="phi-3-mini-4k-instruct.Q4_K_M.gguf",
        display_name="Phi-3 Mini 3.8B (Balanced)",
        description="Microsoft's efficient model, good balance of speed and quality",
        context_size=4096,
        prompt_format=PromptFormat.PHI3,
        size_gb=2.3,
    ),
    ModelDescriptor(
        filename="llama-3.2-3b-instruct-q4_k_m.gguf",
        display_name="Llama 3.2 3B (Good)",
        description="Meta's latest 3B model with excellent reasoning",
        context_size=8192,
        prompt_format=PromptFormat.LLAMA3,
        size_gb=1.9,
    ),
    ModelDescriptor(
        filename="qwen2.5-7b-instruct-q4_k_m.gguf",
        display_name="Qwen 2.5 7B (Great)",
        description="Alibaba's powerful 7B model with huge context window",
        context_size=32768,
        prompt_format=PromptFormat.CHATML,
        size_gb=4.1,
    ),
    ModelDescriptor(
        filename="llama-3.1-8b-instruct-q4_k_m.gguf",
        display_name="Llama 3.1 8B (Superior)",
        description="Meta's 8B model with massive 32K context window",
        context_size=32768,
        prompt_format=PromptFormat.LLAMA3,
        size_gb=4.6,
    ),
    ModelDescriptor(
        filename="mistral-nemo-12b-instruct-2407-q4_k_m.gguf",
        display_name="Mistral Nemo 12B (Premium)",
        description="Mistral's advanced 12B model with excellent reasoning",
        context_size=32768,
        prompt_format=PromptFormat.MISTRAL,
        size_gb=7.2,
    ),
    ModelDescriptor(
        filename="qwen2.5-14b-instruct-q4_k_m.gguf",
        display_name="Qwen 2.5 14B (Outstanding)",
        description="Alibaba's flagship 14B model, exceptional performance",
        context_size=32768,
        prompt_format=PromptFormat.CHATML,
        size_gb=8.2,
    ),
    ModelDescriptor(
        filename="qwen2.5-32b-instruct-q4_k_m.gguf",
        display_name="Qwen 2.5 32B (Ultimate)",
        description="Massive 32B model, near GPT-4 level performance",
        context_size=32768,
        prompt_format=PromptFormat.CHATML,
        size_gb=18.0,
    ),
)

DEFAULT_MODEL = MODEL_CATALOG[0]

_BY_FILENAME = {model.filename: model for model in MODEL_CATALOG}


def get_model(filename: str) -> ModelDescriptor:
    """Look up a catalog entry by filename.

    Raises:
        KeyError: If the filename is not in the catalog
    """
    try:
        return _BY_FILENAME[filename]
    except KeyError:
        raise KeyError(
            f"Unknown model: {filename}. "
            f"Known models: {', '.join(_BY_FILENAME)}"
        ) from None


def list_models() -> list[ModelDescriptor]:
    """All catalog entries in display order."""
    return list(MODEL_CATALOG)

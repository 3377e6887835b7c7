"""Static download URL registry keyed by model filename."""

HF_BASE = "https://huggingface.co/bartowski"

DOWNLOAD_URLS: dict[str, str] = {
    "llama-3.2-3b-instruct-q4_k_m.gguf":
        f"{HF_BASE}/Llama-3.2-3B-Instruct-GGUF/resolve/main/Llama-3.2-3B-Instruct-Q4_K_M.gguf",
    "qwen2.5-7b-instruct-q4_k_m.gguf":
        f"{HF_BASE}/Qwen2.5-7B-Instruct-GGUF/resolve/main/Qwen2.5-7B-Instruct-Q4_K_M.gguf",
    "llama-3.1-8b-instruct-q4_k_m.gguf":
        f"{HF_BASE}/Meta-Llama-3.1-8B-Instruct-GGUF/resolve/main/Meta-Llama-3.1-8B-Instruct-Q4_K_M.gguf",
    "mistral-nemo-12b-instruct-2407-q4_k_m.gguf":
        f"{HF_BASE}/Mistral-Nemo-Instruct-2407-GGUF/resolve/main/Mistral-Nemo-Instruct-2407-Q4_K_M.gguf",
    "qwen2.5-14b-instruct-q4_k_m.gguf":
        f"{HF_BASE}/Qwen2.5-14B-Instruct-GGUF/resolve/main/Qwen2.5-14B-Instruct-Q4_K_M.gguf",
    "qwen2.5-32b-instruct-q4_k_m.gguf":
        f"{HF_BASE}/Qwen2.5-32B-Instruct-GGUF/resolve/main/Qwen2.5-32B-Instruct-Q4_K_M.gguf",
}


def resolve_url(filename: str, registry: dict[str, str] | None = None) -> str | None:
    """Download URL for a filename, or None when it has no source."""
    return (DOWNLOAD_URLS if registry is None else registry).get(filename)

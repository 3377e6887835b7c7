"""Prompt format registry.

This module hides the literal delimiter conventions of each model family.
Every format is described by one ``FormatDescriptor`` row: its preambles,
turn templates, closing cue and the stop markers the sanitizer truncates at.
The table is validated once at import time so a delimiter can never be
emitted without a matching stop marker.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from ..errors import LocalChatError


class PromptFormatError(LocalChatError):
    """A format descriptor is inconsistent or missing."""


class PromptFormat(str, Enum):
    """Delimiter convention a model family expects."""

    CHATML = "chatml"
    ALPACA = "alpaca"
    PHI3 = "phi3"
    LLAMA2 = "llama2"
    LLAMA3 = "llama3"
    MISTRAL = "mistral"


class TemplateStyle(str, Enum):
    """How a format lays out the conversation."""

    TURNS = "turns"              # One delimited block per message, system turns allowed
    INLINE = "inline"            # [INST] pairs, system text folded into the first instruction
    INSTRUCTION = "instruction"  # Single instruction/response block, history folded into prose


GROUNDING_CUE = (
    "Answer using the search results above. "
    "If they do not answer the question, say that you are not sure."
)


class FormatDescriptor(BaseModel):
    """Template strings and stop markers for one prompt format.

    Templates use ``{content}`` as the only placeholder.
    """

    model_config = ConfigDict(frozen=True)

    format: PromptFormat
    style: TemplateStyle
    preamble: str = Field(description="System preamble used without search results")
    search_preamble: str = Field(description="System preamble used with search results")
    search_label: str = Field(default="SEARCH INFO: ", description="Label prefixed to search text")
    prefix: str = Field(default="", description="Emitted once at the very start")
    system_template: str
    user_template: str
    assistant_template: str
    reply_cue: str = Field(description="Closing cue inviting the model to answer")
    search_template: str | None = Field(
        default=None,
        description="Section carrying search results for INSTRUCTION style"
    )
    narrative_user_template: str | None = Field(
        default=None,
        description="User line inside folded history for INSTRUCTION style"
    )
    delimiters: tuple[str, ...] = Field(description="Literal delimiters the assembler emits")
    stop_markers: tuple[str, ...] = Field(description="Substrings that end the model's turn")

    def templates(self) -> tuple[str, ...]:
        """All literal template strings of this descriptor."""
        parts = (
            self.prefix,
            self.system_template,
            self.user_template,
            self.assistant_template,
            self.narrative_user_template or "",
            self.reply_cue,
            self.search_template or "",
        )
        return tuple(part for part in parts if part)


_REGISTRY: dict[PromptFormat, FormatDescriptor] = {
    PromptFormat.CHATML: FormatDescriptor(
        format=PromptFormat.CHATML,
        style=TemplateStyle.TURNS,
        preamble=(
            "You are a helpful assistant. "
            "Be honest if you don't know something."
        ),
        search_preamble=(
            "You are a helpful assistant with web search access. "
            "Use search results when provided to give accurate, current information. "
            "Be honest if you don't know something."
        ),
        search_label="SEARCH: ",
        system_template="<|im_start|>system\n{content}<|im_end|>\n",
        user_template="<|im_start|>user\n{content}<|im_end|>\n",
        assistant_template="<|im_start|>assistant\n{content}<|im_end|>\n",
        reply_cue="<|im_start|>assistant\n",
        delimiters=("<|im_start|>", "<|im_end|>"),
        stop_markers=("<|im_end|>", "<|im_start|>", "user\n", "assistant\n", "system\n"),
    ),
    PromptFormat.PHI3: FormatDescriptor(
        format=PromptFormat.PHI3,
        style=TemplateStyle.TURNS,
        preamble="You are a factual assistant. You must be completely accurate.",
        search_preamble=(
            "You are a factual assistant with access to web search. "
            "You must be completely accurate. "
            "Use the search results when available to provide current and accurate information."
        ),
        system_template="<|system|>\n{content}<|end|>\n",
        user_template="<|user|>\n{content}<|end|>\n",
        assistant_template="<|assistant|>\n{content}<|end|>\n",
        reply_cue="<|assistant|>\n",
        delimiters=("<|system|>", "<|user|>", "<|assistant|>", "<|end|>"),
        stop_markers=(
            "<|end|>", "<|user|>", "<|assistant|>", "<|system|>", "<|endoftext|>",
            "User:", "Assistant:", "Human:",
        ),
    ),
    PromptFormat.ALPACA: FormatDescriptor(
        format=PromptFormat.ALPACA,
        style=TemplateStyle.INSTRUCTION,
        preamble=(
            "Below is an instruction that describes a task. "
            "Write a response that appropriately completes the request."
        ),
        search_preamble=(
            "Below is an instruction that describes a task, paired with web search results "
            "that provide further context. Write a response that appropriately completes the request."
        ),
        system_template="{content}\n\n",
        user_template="### Instruction:\n{content}\n\n",
        narrative_user_template="Human: {content}",
        assistant_template="Assistant: {content}",
        reply_cue="### Response:\n",
        search_template="### Input:\n{content}\n\n",
        delimiters=("### Instruction:", "### Input:", "### Response:", "Human:", "Assistant:"),
        stop_markers=("### Instruction:", "### Input:", "### Response:", "Human:", "Assistant:"),
    ),
    PromptFormat.LLAMA2: FormatDescriptor(
        format=PromptFormat.LLAMA2,
        style=TemplateStyle.INLINE,
        preamble="You are a helpful AI assistant.",
        search_preamble=(
            "You are a helpful AI assistant with web search access. "
            "Use search results when provided to give accurate, current information."
        ),
        system_template="<s>[INST] <<SYS>>\n{content}\n<</SYS>>\n\n",
        user_template="{content} [/INST] ",
        assistant_template="{content} </s><s>[INST] ",
        reply_cue="",
        delimiters=("<s>", "[INST]", "<<SYS>>", "<</SYS>>", "[/INST]", "</s>"),
        stop_markers=("[/INST]", "</s>", "<s>", "[INST]", "<<SYS>>", "<</SYS>>"),
    ),
    PromptFormat.LLAMA3: FormatDescriptor(
        format=PromptFormat.LLAMA3,
        style=TemplateStyle.TURNS,
        preamble="You are a helpful AI assistant.",
        search_preamble=(
            "You are a helpful AI assistant with web search capabilities. "
            "Use search results when provided to give accurate, current information."
        ),
        prefix="<|begin_of_text|>",
        system_template="<|start_header_id|>system<|end_header_id|>\n\n{content}<|eot_id|>",
        user_template="<|start_header_id|>user<|end_header_id|>\n\n{content}<|eot_id|>",
        assistant_template="<|start_header_id|>assistant<|end_header_id|>\n\n{content}<|eot_id|>",
        reply_cue="<|start_header_id|>assistant<|end_header_id|>\n\n",
        delimiters=("<|begin_of_text|>", "<|start_header_id|>", "<|end_header_id|>", "<|eot_id|>"),
        stop_markers=("<|eot_id|>", "<|start_header_id|>", "<|end_header_id|>", "<|begin_of_text|>"),
    ),
    PromptFormat.MISTRAL: FormatDescriptor(
        format=PromptFormat.MISTRAL,
        style=TemplateStyle.INLINE,
        preamble="You are a helpful assistant.",
        search_preamble="You are a helpful assistant with web search access.",
        system_template="<s>[INST] {content}\n\n",
        user_template="{content} [/INST] ",
        assistant_template="{content} </s><s>[INST] ",
        reply_cue="",
        delimiters=("<s>", "[INST]", "[/INST]", "</s>"),
        stop_markers=("[/INST]", "</s>", "<s>", "[INST]"),
    ),
}


def validate_registry(registry: dict[PromptFormat, FormatDescriptor]) -> None:
    """Check that the registry is complete and self-consistent.

    Raises:
        PromptFormatError: If a format is missing, a descriptor is filed under
            the wrong key, or a delimiter has no matching stop marker or never
            appears in the descriptor's templates
    """
    missing = [fmt.value for fmt in PromptFormat if fmt not in registry]
    if missing:
        raise PromptFormatError(f"No descriptor for formats: {', '.join(missing)}")

    for fmt, descriptor in registry.items():
        if descriptor.format != fmt:
            raise PromptFormatError(
                f"Descriptor for {descriptor.format.value} registered under {fmt.value}"
            )

        unstoppable = [d for d in descriptor.delimiters if d not in descriptor.stop_markers]
        if unstoppable:
            raise PromptFormatError(
                f"{fmt.value}: delimiters without stop marker: {unstoppable}"
            )

        rendered = "".join(descriptor.templates())
        unused = [d for d in descriptor.delimiters if d not in rendered]
        if unused:
            raise PromptFormatError(f"{fmt.value}: delimiters never emitted: {unused}")


validate_registry(_REGISTRY)


def get_descriptor(fmt: PromptFormat | str) -> FormatDescriptor:
    """Look up the descriptor for a format tag.

    Args:
        fmt: PromptFormat member or its string value

    Returns:
        The format's descriptor

    Raises:
        ValueError: If the tag is not a known format
    """
    return _REGISTRY[PromptFormat(fmt)]


def get_stop_markers(fmt: PromptFormat | str) -> tuple[str, ...]:
    """Stop markers registered for a format."""
    return get_descriptor(fmt).stop_markers


def all_descriptors() -> list[FormatDescriptor]:
    """All registered descriptors in enum order."""
    return [_REGISTRY[fmt] for fmt in PromptFormat]

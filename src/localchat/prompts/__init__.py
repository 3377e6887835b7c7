"""Prompt construction module.

Maps prompt formats to their templates and stop markers, budgets
conversation history to a model's context window and assembles the
final prompt text.
"""

from .assembler import PromptAssembler, assemble
from .budget import (
    ContextBudgeter,
    available_budget,
    character_budget,
    estimate_tokens,
)
from .formats import (
    GROUNDING_CUE,
    FormatDescriptor,
    PromptFormat,
    PromptFormatError,
    TemplateStyle,
    all_descriptors,
    get_descriptor,
    get_stop_markers,
)

__all__ = [
    "GROUNDING_CUE",
    "ContextBudgeter",
    "FormatDescriptor",
    "PromptAssembler",
    "PromptFormat",
    "PromptFormatError",
    "TemplateStyle",
    "all_descriptors",
    "assemble",
    "available_budget",
    "character_budget",
    "estimate_tokens",
    "get_descriptor",
    "get_stop_markers",
]

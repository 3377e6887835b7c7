"""Prompt assembly.

Composes the system preamble, optional search results, truncated history and
the current message into one prompt string using a format descriptor.
"""

from collections.abc import Sequence

from ..memory.models import Message
from .budget import ContextBudgeter, available_budget
from .formats import GROUNDING_CUE, FormatDescriptor, PromptFormat, TemplateStyle, get_descriptor

HISTORY_HEADER = "Previous conversation:"
CURRENT_QUESTION_LABEL = "Current question:"


def _fill(template: str, content: str) -> str:
    # str.replace rather than str.format: message text may contain braces
    return template.replace("{content}", content)


def _search_annotation(descriptor: FormatDescriptor, search_results: str) -> str:
    return f"{descriptor.search_label}{search_results}\n{GROUNDING_CUE}"


def _render_turns(
    descriptor: FormatDescriptor,
    current_message: str,
    history: Sequence[Message],
    search_results: str
) -> str:
    parts = [descriptor.prefix]

    if search_results:
        parts.append(_fill(descriptor.system_template, descriptor.search_preamble))
        parts.append(_fill(descriptor.system_template, _search_annotation(descriptor, search_results)))
    else:
        parts.append(_fill(descriptor.system_template, descriptor.preamble))

    for message in history:
        template = descriptor.user_template if message.is_user else descriptor.assistant_template
        parts.append(_fill(template, message.content))

    parts.append(_fill(descriptor.user_template, current_message))
    parts.append(descriptor.reply_cue)
    return "".join(parts)


def _render_inline(
    descriptor: FormatDescriptor,
    current_message: str,
    history: Sequence[Message],
    search_results: str
) -> str:
    if search_results:
        system = f"{descriptor.search_preamble}\n\n{_search_annotation(descriptor, search_results)}"
    else:
        system = descriptor.preamble

    parts = [descriptor.prefix, _fill(descriptor.system_template, system)]

    for message in history:
        template = descriptor.user_template if message.is_user else descriptor.assistant_template
        parts.append(_fill(template, message.content))

    parts.append(_fill(descriptor.user_template, current_message))
    parts.append(descriptor.reply_cue)
    return "".join(parts)


def _render_instruction(
    descriptor: FormatDescriptor,
    current_message: str,
    history: Sequence[Message],
    search_results: str
) -> str:
    if history:
        user_line = descriptor.narrative_user_template or "{content}"
        lines = [
            _fill(user_line if message.is_user else descriptor.assistant_template, message.content)
            for message in history
        ]
        instruction = (
            f"{HISTORY_HEADER}\n" + "\n".join(lines)
            + f"\n\n{CURRENT_QUESTION_LABEL} {current_message}"
        )
    else:
        instruction = current_message

    preamble = descriptor.search_preamble if search_results else descriptor.preamble
    parts = [
        descriptor.prefix,
        _fill(descriptor.system_template, preamble),
        _fill(descriptor.user_template, instruction),
    ]

    if search_results and descriptor.search_template:
        parts.append(_fill(descriptor.search_template, _search_annotation(descriptor, search_results)))

    parts.append(descriptor.reply_cue)
    return "".join(parts)


_RENDERERS = {
    TemplateStyle.TURNS: _render_turns,
    TemplateStyle.INLINE: _render_inline,
    TemplateStyle.INSTRUCTION: _render_instruction,
}


def assemble(
    fmt: PromptFormat | str,
    current_message: str,
    history: Sequence[Message] = (),
    search_results: str = ""
) -> str:
    """Render the final prompt for a format.

    Args:
        fmt: Prompt format of the target model
        current_message: The pending user message
        history: Already-truncated chronological history
        search_results: Search summary to inject, empty for none

    Returns:
        Prompt text ending with the format's closing cue
    """
    descriptor = get_descriptor(fmt)
    return _RENDERERS[descriptor.style](descriptor, current_message, history, search_results)


class PromptAssembler:
    """Builds budgeted prompts for a model.

    Combines the ContextBudgeter with the format registry: callers hand over
    the full history and the assembler decides what fits.
    """

    def __init__(self, budgeter: ContextBudgeter | None = None):
        self._budgeter = budgeter or ContextBudgeter()

    @property
    def budgeter(self) -> ContextBudgeter:
        return self._budgeter

    def build(
        self,
        fmt: PromptFormat | str,
        context_size: int,
        current_message: str,
        history: Sequence[Message],
        search_results: str = ""
    ) -> str:
        """Truncate history to the model's budget and render the prompt.

        Args:
            fmt: Prompt format of the target model
            context_size: Model context window in tokens
            current_message: The pending user message
            history: Full history, excluding the pending user message
            search_results: Search summary to inject, empty for none

        Returns:
            Prompt text
        """
        budget = available_budget(context_size, search_results)
        kept = self._budgeter.truncate(history, budget)
        return assemble(fmt, current_message, kept, search_results)

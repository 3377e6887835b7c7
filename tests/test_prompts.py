"""Unit tests for the prompts module."""
import pytest
from hypothesis import given
from hypothesis import strategies as st

from localchat.memory import Message
from localchat.prompts import (
    GROUNDING_CUE,
    ContextBudgeter,
    PromptAssembler,
    PromptFormat,
    PromptFormatError,
    all_descriptors,
    assemble,
    available_budget,
    character_budget,
    estimate_tokens,
    get_descriptor,
    get_stop_markers,
)
from localchat.prompts.budget import MAX_HISTORY_MESSAGES, message_cost
from localchat.prompts.formats import _REGISTRY, validate_registry

SEARCH_TEXT = "Search: 72F and sunny (Source: Test)"


def _history() -> list[Message]:
    return [
        Message(content="Hi there", is_user=True),
        Message(content="Hello! How can I help?", is_user=False),
    ]


def _messages(contents: list[str]) -> list[Message]:
    return [Message(content=c, is_user=i % 2 == 0) for i, c in enumerate(contents)]


class TestFormatRegistry:
    """Tests for the format descriptor table."""

    def test_every_format_registered(self):
        """Test that each PromptFormat has a descriptor."""
        assert [d.format for d in all_descriptors()] == list(PromptFormat)

    def test_lookup_by_string(self):
        """Test that descriptors can be looked up by tag value."""
        assert get_descriptor("chatml").format == PromptFormat.CHATML

    def test_unknown_format_raises(self):
        """Test that an unknown tag raises ValueError."""
        with pytest.raises(ValueError):
            get_descriptor("vicuna")

    @pytest.mark.parametrize("fmt", list(PromptFormat))
    def test_delimiters_are_stop_markers(self, fmt: PromptFormat):
        """Test that every delimiter is registered as a stop marker."""
        descriptor = get_descriptor(fmt)
        for delimiter in descriptor.delimiters:
            assert delimiter in get_stop_markers(fmt)

    def test_validation_rejects_missing_format(self):
        """Test that an incomplete table fails validation."""
        registry = dict(_REGISTRY)
        del registry[PromptFormat.MISTRAL]
        with pytest.raises(PromptFormatError, match="mistral"):
            validate_registry(registry)

    def test_validation_rejects_unstoppable_delimiter(self):
        """Test that a delimiter without a stop marker fails validation."""
        registry = dict(_REGISTRY)
        chatml = registry[PromptFormat.CHATML]
        registry[PromptFormat.CHATML] = chatml.model_copy(
            update={"stop_markers": ("<|im_start|>",)}
        )
        with pytest.raises(PromptFormatError, match="without stop marker"):
            validate_registry(registry)

    def test_validation_covers_folded_history_labels(self):
        """Test that alpaca history labels must be stop markers."""
        registry = dict(_REGISTRY)
        alpaca = registry[PromptFormat.ALPACA]
        registry[PromptFormat.ALPACA] = alpaca.model_copy(
            update={"stop_markers": tuple(m for m in alpaca.stop_markers if m != "Assistant:")}
        )
        with pytest.raises(PromptFormatError, match="without stop marker"):
            validate_registry(registry)

    def test_validation_rejects_misfiled_descriptor(self):
        """Test that a descriptor under the wrong key fails validation."""
        registry = dict(_REGISTRY)
        registry[PromptFormat.LLAMA2] = registry[PromptFormat.MISTRAL]
        with pytest.raises(PromptFormatError, match="registered under"):
            validate_registry(registry)


class TestAssemble:
    """Tests for prompt assembly."""

    @pytest.mark.parametrize("fmt", list(PromptFormat))
    def test_contains_all_own_delimiters(self, fmt: PromptFormat):
        """Test that a full prompt emits every delimiter of its format."""
        prompt = assemble(fmt, "What is new?", _history(), SEARCH_TEXT)
        for delimiter in get_descriptor(fmt).delimiters:
            assert delimiter in prompt

    @pytest.mark.parametrize("fmt", list(PromptFormat))
    def test_excludes_other_formats_delimiters(self, fmt: PromptFormat):
        """Test that no foreign delimiter leaks into a prompt."""
        own = set(get_descriptor(fmt).delimiters)
        prompt = assemble(fmt, "What is new?", _history(), SEARCH_TEXT)
        for other in all_descriptors():
            if other.format == fmt:
                continue
            for delimiter in set(other.delimiters) - own:
                assert delimiter not in prompt, f"{other.format.value} delimiter {delimiter!r}"

    @pytest.mark.parametrize("fmt", list(PromptFormat))
    def test_search_results_annotated_with_cue(self, fmt: PromptFormat):
        """Test that search text is labeled and followed by the grounding cue."""
        descriptor = get_descriptor(fmt)
        prompt = assemble(fmt, "What is new?", [], SEARCH_TEXT)
        assert f"{descriptor.search_label}{SEARCH_TEXT}" in prompt
        assert GROUNDING_CUE in prompt
        assert descriptor.search_preamble in prompt

    @pytest.mark.parametrize("fmt", list(PromptFormat))
    def test_without_search_uses_plain_preamble(self, fmt: PromptFormat):
        """Test that no search annotation appears without results."""
        descriptor = get_descriptor(fmt)
        prompt = assemble(fmt, "Hello", [])
        assert descriptor.preamble in prompt
        assert GROUNDING_CUE not in prompt

    @pytest.mark.parametrize("fmt", list(PromptFormat))
    def test_ends_with_reply_cue(self, fmt: PromptFormat):
        """Test that the prompt ends by inviting the model to answer."""
        descriptor = get_descriptor(fmt)
        prompt = assemble(fmt, "Hello", _history())
        assert prompt.endswith(descriptor.reply_cue)
        assert "Hello" in prompt

    def test_chatml_weather_prompt(self):
        """Test the weather example end to end through the chatml format."""
        prompt = assemble(PromptFormat.CHATML, "What's the weather today?", [], SEARCH_TEXT)
        assert "SEARCH: Search: 72F and sunny (Source: Test)" in prompt
        assert prompt.endswith("<|im_start|>assistant\n")

    def test_chatml_turns(self):
        """Test that chatml renders one block per message."""
        prompt = assemble(PromptFormat.CHATML, "Next", _history())
        assert "<|im_start|>user\nHi there<|im_end|>\n" in prompt
        assert "<|im_start|>assistant\nHello! How can I help?<|im_end|>\n" in prompt
        assert "<|im_start|>user\nNext<|im_end|>\n" in prompt

    def test_llama3_begins_with_prefix(self):
        """Test that llama3 prompts start with the begin-of-text token."""
        prompt = assemble(PromptFormat.LLAMA3, "Hi", [])
        assert prompt.startswith("<|begin_of_text|>")
        assert prompt.count("<|begin_of_text|>") == 1

    def test_alpaca_folds_history(self):
        """Test that alpaca folds history into a single instruction block."""
        prompt = assemble(PromptFormat.ALPACA, "And tomorrow?", _history())
        assert prompt.count("### Instruction:") == 1
        assert "Previous conversation:\nHuman: Hi there\nAssistant: Hello! How can I help?" in prompt
        assert "Current question: And tomorrow?" in prompt
        assert prompt.endswith("### Response:\n")

    def test_alpaca_search_in_input_section(self):
        """Test that alpaca carries search results in the input section."""
        prompt = assemble(PromptFormat.ALPACA, "Weather?", [], SEARCH_TEXT)
        assert f"### Input:\nSEARCH INFO: {SEARCH_TEXT}" in prompt

    def test_braces_in_messages_survive(self):
        """Test that message text with braces is not treated as a template."""
        prompt = assemble(PromptFormat.CHATML, "format {content} and {0}", [])
        assert "format {content} and {0}" in prompt


class TestContextBudgeter:
    """Tests for history truncation."""

    def test_keeps_everything_that_fits(self):
        """Test that a short history is kept in order."""
        history = _history()
        assert ContextBudgeter().truncate(history, 2048) == history

    def test_caps_at_six_messages(self):
        """Test that at most six messages are retained."""
        history = _messages([f"message {i}" for i in range(12)])
        kept = ContextBudgeter().truncate(history, 32768)
        assert kept == history[-MAX_HISTORY_MESSAGES:]

    def test_drops_oldest_when_over_budget(self):
        """Test that the walk stops at the first message that does not fit."""
        history = _messages(["x" * 200, "y" * 100, "z" * 100])
        # Budget 250 tokens -> (250 - 150) * 3 = 300 characters
        kept = ContextBudgeter().truncate(history, 250)
        assert kept == history[1:]

    def test_budget_below_floor_is_clamped(self):
        """Test that a tiny budget is clamped rather than rejected."""
        assert ContextBudgeter().truncate(_history(), -50) == []

    @given(
        st.lists(st.text(max_size=300), max_size=20),
        st.integers(min_value=-100, max_value=5000),
    )
    def test_output_is_bounded_suffix(self, contents: list[str], budget: int):
        """Property test: output is a suffix, at most six long, within budget."""
        history = _messages(contents)
        kept = ContextBudgeter().truncate(history, budget)

        assert len(kept) <= MAX_HISTORY_MESSAGES
        assert kept == history[len(history) - len(kept):]
        assert sum(message_cost(m) for m in kept) <= max(0, character_budget(budget))


class TestBudgetHelpers:
    """Tests for token estimation and the available budget."""

    def test_estimate_tokens(self):
        """Test the four-characters-per-token estimate."""
        assert estimate_tokens("a" * 401) == 100

    def test_available_budget_subtracts_search(self):
        """Test that search text and the reply reserve are subtracted."""
        assert available_budget(2048, "x" * 400) == 2048 - 100 - 100

    def test_available_budget_floor(self):
        """Test that the available budget never drops below 100."""
        assert available_budget(150, "x" * 4000) == 100


class TestPromptAssembler:
    """Tests for budgeted prompt building."""

    def test_build_truncates_history(self):
        """Test that old history is dropped to fit a small context."""
        history = _messages(["old " * 200, "recent question", "recent answer"])
        prompt = PromptAssembler().build(PromptFormat.CHATML, 400, "Now?", history)
        assert "recent answer" in prompt
        assert "old old" not in prompt

    def test_build_passes_search_results(self):
        """Test that search results reach the prompt."""
        prompt = PromptAssembler().build(PromptFormat.CHATML, 2048, "Weather?", [], SEARCH_TEXT)
        assert f"SEARCH: {SEARCH_TEXT}" in prompt

"""Response sanitization.

Cleans raw model output: cuts it at the first stop marker, rejects text that
looks hallucinated or degenerate, and removes consecutive duplicate lines.
``clean`` is total: it always returns either the cleaned text or one of
three fixed fallback messages.
"""

import logging
from collections import Counter

from pydantic import BaseModel, ConfigDict

from ..prompts.formats import PromptFormat, get_stop_markers
from .patterns import (
    HALLUCINATION_PATTERNS,
    LONG_NUMBER_RE,
    MAX_DISTINCT_YEARS,
    MAX_LONG_NUMBERS,
    REPEATED_SENTENCE_LIMIT,
    REPETITION_MIN_UNIQUE_RATIO,
    REPETITION_MIN_WORDS,
    RESIDUAL_DISCLOSURE_PATTERNS,
    SENTENCE_SPLIT_RE,
    YEAR_RE,
)

logger = logging.getLogger(__name__)

UNCERTAIN_FALLBACK = (
    "I want to be accurate, so I should clarify that I'm not certain about the specific "
    "details you're asking about. Could you help me understand what specific information you need?"
)
UNSURE_FALLBACK = (
    "I'm not sure how to respond to that. "
    "Could you provide more context or rephrase your question?"
)
HELPFUL_FALLBACK = (
    "I'm here to help with your question. "
    "What specific information are you looking for?"
)

FALLBACK_MESSAGES = (UNCERTAIN_FALLBACK, UNSURE_FALLBACK, HELPFUL_FALLBACK)

MIN_RESPONSE_LENGTH = 10


class SanitizeResult(BaseModel):
    """Outcome of sanitizing one response."""

    model_config = ConfigDict(frozen=True)

    text: str
    hallucination: bool = False
    reason: str | None = None

    @property
    def is_fallback(self) -> bool:
        return self.text in FALLBACK_MESSAGES


def truncate_at_stop_marker(text: str, stop_markers: tuple[str, ...]) -> str:
    """Cut text at the earliest occurrence of any stop marker."""
    cut = len(text)
    for marker in stop_markers:
        index = text.find(marker)
        if index != -1 and index < cut:
            cut = index
    return text[:cut]


def find_signature(text: str, patterns: tuple[str, ...] = HALLUCINATION_PATTERNS) -> str | None:
    """First hallucination pattern contained in text (case-insensitive)."""
    lowered = text.lower()
    for pattern in patterns:
        if pattern.lower() in lowered:
            return pattern
    return None


def numeric_suspicion(text: str) -> str | None:
    """Reason string when text cites too many years or long numbers."""
    years = {match.group(0) for match in YEAR_RE.finditer(text)}
    if len(years) > MAX_DISTINCT_YEARS:
        return "multiple specific dates"

    if len(LONG_NUMBER_RE.findall(text)) > MAX_LONG_NUMBERS:
        return "multiple specific numbers"

    return None


def repetition_suspicion(text: str) -> str | None:
    """Reason string when text is dominated by repeated words or sentences."""
    words = text.split()
    if len(words) <= REPETITION_MIN_WORDS:
        return None

    if len(set(words)) / len(words) < REPETITION_MIN_UNIQUE_RATIO:
        return "repetitive content"

    sentences = Counter(
        sentence.strip().lower()
        for sentence in SENTENCE_SPLIT_RE.split(text)
        if sentence.strip()
    )
    if sentences and max(sentences.values()) >= REPEATED_SENTENCE_LIMIT:
        return "repeated sentences"

    return None


def dedupe_lines(text: str) -> str:
    """Drop blank lines and lines equal to the previous kept line."""
    kept: list[str] = []
    last = ""
    for line in text.splitlines():
        trimmed = line.strip()
        if trimmed and trimmed != last:
            kept.append(line)
            last = trimmed
    return "\n".join(kept).strip()


class ResponseSanitizer:
    """Turns raw model output into text safe to show the user.

    Hidden design decisions:
    - Stop marker sets per prompt format
    - Hallucination heuristics and their thresholds
    - Fallback wording
    """

    def __init__(
        self,
        hallucination_patterns: tuple[str, ...] = HALLUCINATION_PATTERNS,
        disclosure_patterns: tuple[str, ...] = RESIDUAL_DISCLOSURE_PATTERNS
    ):
        """Initialize the sanitizer.

        Args:
            hallucination_patterns: Signatures that force the uncertainty fallback
            disclosure_patterns: Case-sensitive phrases that force the help fallback
        """
        self._hallucination_patterns = hallucination_patterns
        self._disclosure_patterns = disclosure_patterns

    def inspect(self, raw: str, fmt: PromptFormat | str) -> SanitizeResult:
        """Run the full pipeline and report why text was replaced.

        Args:
            raw: Raw model output
            fmt: Prompt format the model was prompted with

        Returns:
            SanitizeResult with the final text and the hallucination verdict
        """
        cleaned = truncate_at_stop_marker(raw, get_stop_markers(fmt)).strip()

        reason = (
            find_signature(cleaned, self._hallucination_patterns)
            or numeric_suspicion(cleaned)
            or repetition_suspicion(cleaned)
        )
        if reason is not None:
            logger.info("Hallucination detected: %s", reason)
            return SanitizeResult(text=UNCERTAIN_FALLBACK, hallucination=True, reason=reason)

        result = dedupe_lines(cleaned)

        if len(result) < MIN_RESPONSE_LENGTH:
            return SanitizeResult(text=UNSURE_FALLBACK, reason="too short")

        if any(pattern in result for pattern in self._disclosure_patterns):
            return SanitizeResult(text=HELPFUL_FALLBACK, reason="ai disclosure")

        return SanitizeResult(text=result)

    def clean(self, raw: str, fmt: PromptFormat | str) -> str:
        """Sanitized text for raw model output. Never raises for string input."""
        return self.inspect(raw, fmt).text


_default_sanitizer = ResponseSanitizer()


def clean(raw: str, fmt: PromptFormat | str) -> str:
    """Module-level shortcut for ``ResponseSanitizer().clean``."""
    return _default_sanitizer.clean(raw, fmt)

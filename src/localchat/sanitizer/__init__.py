"""Response sanitization module.

Detects stop-marker leakage, hallucination signatures and degenerate output
in raw model text, substituting fixed fallback messages where needed.
"""

from .sanitizer import (
    FALLBACK_MESSAGES,
    HELPFUL_FALLBACK,
    UNCERTAIN_FALLBACK,
    UNSURE_FALLBACK,
    ResponseSanitizer,
    SanitizeResult,
    clean,
    dedupe_lines,
    truncate_at_stop_marker,
)

__all__ = [
    "FALLBACK_MESSAGES",
    "HELPFUL_FALLBACK",
    "UNCERTAIN_FALLBACK",
    "UNSURE_FALLBACK",
    "ResponseSanitizer",
    "SanitizeResult",
    "clean",
    "dedupe_lines",
    "truncate_at_stop_marker",
]

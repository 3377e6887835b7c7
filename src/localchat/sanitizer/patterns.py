"""Heuristic pattern tables for response sanitization.

Matching is case-insensitive substring search unless noted otherwise.
"""

import re

PLACEHOLDER_PATTERNS = (
    "[Your ", "[Insert ", "[Provide ", "[Add ", "[Include ",
    "{{", "}}", "[placeholder", "[PLACEHOLDER",
    "lorem ipsum", "Lorem Ipsum", "example.com",
    "[content]", "[Content]", "[text]", "[Text]",
)

UNSUPPORTED_SPECIFICITY_PATTERNS = (
    "According to my database", "Based on my training data",
    "In my experience", "I remember", "I recall",
    "Studies show that exactly", "Research indicates that precisely",
)

FABRICATED_CITATION_PATTERNS = (
    "According to Dr. ", "Professor ", " University study",
    "published in 20", "research from 20", "study conducted in 20",
)

OVERCONFIDENCE_PATTERNS = (
    "I can confirm that", "It is definitely", "I guarantee",
    "Without a doubt", "Absolutely certain", "100% sure",
)

AI_DISCLOSURE_PATTERNS = (
    "As an AI", "I am an AI", "my instructions", "my training",
    "I cannot", "I'm not able", "I don't have access",
)

GEOGRAPHIC_FALSEHOODS = (
    "seattle is in texas", "seattle is located in texas", "seattle texas",
    "paris is in germany", "london is in france", "tokyo is in china",
    "new york is in california", "los angeles is in florida",
)

HALLUCINATION_PATTERNS = (
    PLACEHOLDER_PATTERNS
    + UNSUPPORTED_SPECIFICITY_PATTERNS
    + FABRICATED_CITATION_PATTERNS
    + OVERCONFIDENCE_PATTERNS
    + AI_DISCLOSURE_PATTERNS
    + GEOGRAPHIC_FALSEHOODS
)

# Checked case-sensitively on the final text
RESIDUAL_DISCLOSURE_PATTERNS = ("I am an AI", "my instructions", "my training")

YEAR_RE = re.compile(r"\b(?:19|20)\d{2}\b")
LONG_NUMBER_RE = re.compile(r"\b\d{4,}\b")
SENTENCE_SPLIT_RE = re.compile(r"(?<=[.!?])\s+")

MAX_DISTINCT_YEARS = 2
MAX_LONG_NUMBERS = 3

REPETITION_MIN_WORDS = 10
REPETITION_MIN_UNIQUE_RATIO = 0.3
REPEATED_SENTENCE_LIMIT = 3

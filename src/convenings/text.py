"""Lexical helpers shared by the bidding and motivation heuristics.

All detectors here are deliberately shallow: case-insensitive substring and
token matching over message text.
"""

from __future__ import annotations

import re
from typing import Iterable, List, Optional, Set

_NON_WORD = re.compile(r"\W+")
_SENTENCE_BREAK = re.compile(r"(?<=[.!?])\s+")

KEY_TERM_STOPWORDS: Set[str] = {
    "this", "that", "these", "those", "with", "from", "about",
    "have", "which", "would", "could", "should", "what", "when",
    "where", "their", "there", "here", "they", "them", "then",
    "than", "your", "will", "been", "were", "because", "some",
}

EXTENDED_STOPWORDS: Set[str] = KEY_TERM_STOPWORDS | {
    "very", "just", "make", "like", "even", "also", "into",
    "only", "much", "such", "more", "most", "other", "well",
}

TOPIC_STOPWORDS: Set[str] = {"about", "these", "those", "their", "there", "where", "which"}


def tokenize(text: str) -> List[str]:
    """Lowercase ``text`` and split it on non-word runs."""

    return [token for token in _NON_WORD.split(text.lower()) if token]


def contains_any(text: str, phrases: Iterable[str]) -> bool:
    lowered = text.lower()
    return any(phrase in lowered for phrase in phrases)


def count_phrase_hits(text: str, phrases: Iterable[str]) -> int:
    """Number of distinct ``phrases`` that occur in ``text``."""

    lowered = text.lower()
    return sum(1 for phrase in phrases if phrase in lowered)


def extract_key_terms(
    text: str,
    *,
    limit: Optional[int] = None,
    stopwords: Set[str] = KEY_TERM_STOPWORDS,
    min_length: int = 4,
) -> List[str]:
    terms = [word for word in tokenize(text) if len(word) >= min_length and word not in stopwords]
    if limit is not None:
        return terms[:limit]
    return terms


def extract_topics(message: str) -> List[str]:
    """Coarse topics: whitespace-separated words of five or more characters."""

    return [
        word
        for word in message.split()
        if len(word) >= 5 and word.lower() not in TOPIC_STOPWORDS
    ]


def split_sentences(text: str) -> List[str]:
    return [sentence.strip() for sentence in _SENTENCE_BREAK.split(text) if sentence.strip()]

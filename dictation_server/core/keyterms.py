"""Merge a user's phrase dictionary into recognizer keyterms.

WHY: Personal vocabulary (names, product terms, jargon) is the main
lever a user has over recognition accuracy. Dictionary entries carry a
weight so the most important phrases survive the recognizer's cap on
prompt terms.

HOW: Entries are ordered by weight (highest first, stable for ties),
stripped, and filtered to the recognizer's per-term length limit. They
are appended after any keyterms the user configured explicitly, then
deduplicated (first occurrence wins) and capped.

RULES:
- Explicit settings keyterms always come before dictionary phrases
- Phrases that are blank after stripping, or longer than 64 chars, are skipped
- Deduplication is exact-match (case-sensitive)
- At most 100 terms are returned
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Protocol

from dictation_server.config import KEYTERM_MAX_CHARS, KEYTERM_MAX_MERGED


class WeightedPhrase(Protocol):
    phrase: str
    weight: float


def dictionary_phrases(entries: Iterable[WeightedPhrase]) -> list[str]:
    """Usable phrases from dictionary entries, highest weight first."""
    ranked = sorted(entries, key=lambda e: e.weight, reverse=True)
    phrases: list[str] = []
    for entry in ranked:
        phrase = entry.phrase.strip()
        if 0 < len(phrase) <= KEYTERM_MAX_CHARS:
            phrases.append(phrase)
    return phrases


def merge_keyterms(
    existing: Sequence[str] | None,
    entries: Iterable[WeightedPhrase],
    limit: int = KEYTERM_MAX_MERGED,
) -> list[str]:
    """Combine settings keyterms with dictionary phrases.

    Args:
        existing: Keyterms from the user's recognizer settings, if any.
        entries: The user's dictionary entries.
        limit: Maximum number of terms to return.

    Returns:
        Deduplicated terms, explicit keyterms first.
    """
    merged: list[str] = []
    seen: set[str] = set()
    for term in list(existing or []) + dictionary_phrases(entries):
        if term in seen:
            continue
        seen.add(term)
        merged.append(term)
    return merged[:limit]

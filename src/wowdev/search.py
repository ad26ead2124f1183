"""Identifier normalization, fuzzy ranking and multi-query merging.

Corpora here are small (tens of thousands of entries at most), so every query
is a linear scan scored with rapidfuzz. Results are plain key lists; callers
map keys back to whatever values they need.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Sequence
from functools import lru_cache

from rapidfuzz import fuzz

from wowdev.models.datasets import SearchTarget

DEFAULT_RESULT_CAP = 100

_CAPS_RUN_RE = re.compile(r"([A-Z]+)")
_WORD_SEPARATOR_RE = re.compile(r"[._]")
_WHITESPACE_RE = re.compile(r"\s+")
_QUERY_SPLIT_RE = re.compile(r"[\s|-]+")


# ---------------------------------------------------------------------------
# Normalization
# ---------------------------------------------------------------------------


def _to_words(text: str) -> str:
    # A run of capitals opens a single word, so "GUID" stays one token.
    text = _CAPS_RUN_RE.sub(r" \1", text)
    text = _WORD_SEPARATOR_RE.sub(" ", text)
    return _WHITESPACE_RE.sub(" ", text).strip().lower()


@lru_cache(maxsize=65536)
def normalize_identifier(identifier: str) -> str:
    """Turn an API identifier into lowercase space-separated words.

    The namespace before the first ``.`` is kept as a single lowercased token:

        >>> normalize_identifier("C_QuestLog.IsQuestFlaggedCompleted")
        'c_questlog is quest flagged completed'
        >>> normalize_identifier("UnitGUID")
        'unit guid'
    """
    namespace, separator, remainder = identifier.partition(".")
    if not separator:
        return _to_words(identifier)
    namespace = namespace.strip().lower()
    words = _to_words(remainder)
    return " ".join(part for part in (namespace, words) if part)


def normalize_text(text: str) -> str:
    """Normalization used for free-text corpora: lowercase only."""
    return text.lower()


@lru_cache(maxsize=65536)
def identifier_target(identifier: str) -> SearchTarget:
    """Memoized search target for an API identifier."""
    return SearchTarget(key=identifier, text=normalize_identifier(identifier), raw=identifier)


# ---------------------------------------------------------------------------
# Ranking
# ---------------------------------------------------------------------------


def similarity(query: str, text: str) -> float:
    """Case-insensitive similarity in [0, 1].

    Queries no longer than the text are aligned against the best matching
    substring; longer queries fall back to a whole-string comparison so short
    texts cannot score perfectly against long queries.
    """
    query = query.lower()
    text = text.lower()
    if not query or not text:
        return 0.0
    if len(query) <= len(text):
        score = fuzz.partial_ratio(query, text)
    else:
        score = fuzz.ratio(query, text)
    return score / 100.0


def rank(
    query: str,
    corpus: Sequence[SearchTarget],
    threshold: float,
    limit: int | None = None,
) -> list[str]:
    """Return corpus keys scoring above ``threshold``, best first.

    Ties keep corpus order. ``limit`` of 0 or None means unbounded.
    """
    scored: list[tuple[float, int, str]] = []
    for index, target in enumerate(corpus):
        score = similarity(query, target.text)
        if score > threshold:
            scored.append((-score, index, target.key))
    scored.sort()
    keys = [key for _, _, key in scored]
    return keys[:limit] if limit else keys


# ---------------------------------------------------------------------------
# Multi-query merge
# ---------------------------------------------------------------------------


def split_query(raw_query: str) -> list[str]:
    """Split on whitespace, ``|`` and ``-``; empty pieces are dropped."""
    return [part for part in _QUERY_SPLIT_RE.split(raw_query) if part.strip()]


def round_robin_merge(ranked_lists: Sequence[Sequence[str]], cap: int | None = None) -> list[str]:
    """Interleave ranked lists by position, skipping keys already emitted."""
    merged: list[str] = []
    seen: set[str] = set()
    depth = max((len(ranked) for ranked in ranked_lists), default=0)
    for position in range(depth):
        for ranked in ranked_lists:
            if position < len(ranked) and ranked[position] not in seen:
                seen.add(ranked[position])
                merged.append(ranked[position])
    return merged[:cap] if cap else merged


def multi_search(
    raw_query: str,
    corpus: Sequence[SearchTarget],
    threshold: float,
    limit: int | None = None,
    *,
    normalizer: Callable[[str], str] = normalize_identifier,
    cap: int = DEFAULT_RESULT_CAP,
) -> list[str]:
    """Rank every sub-query of ``raw_query`` and merge the results.

    ``normalizer`` must be the rule the corpus text was built with.
    """
    ranked_lists = [
        rank(normalizer(sub_query), corpus, threshold, limit)
        for sub_query in split_query(raw_query)
    ]
    return round_robin_merge(ranked_lists, cap)

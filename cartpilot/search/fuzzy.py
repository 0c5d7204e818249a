"""Fuzzy product matching used for live search suggestions.

Each catalog entry is scored against the query through three shortcuts
(exact, prefix, substring) and a normalized Levenshtein fallback. The entry
keeps the best weighted score across its name, keywords and category.
"""

import logging
from functools import lru_cache
from typing import Iterable, List, Tuple

from cartpilot.core.models import MatchResult, ProductCatalogEntry

logger = logging.getLogger(__name__)

MIN_QUERY_LENGTH = 2

EXACT_SCORE = 1.0
PREFIX_SCORE = 0.9
SUBSTRING_SCORE = 0.7

NAME_WEIGHT = 1.0
KEYWORD_WEIGHT = 0.9
CATEGORY_WEIGHT = 0.8


def levenshtein(a: str, b: str) -> int:
    """Minimum number of single-character edits turning ``a`` into ``b``."""
    if a == b:
        return 0
    if not a:
        return len(b)
    if not b:
        return len(a)
    if len(a) < len(b):
        a, b = b, a

    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, start=1):
        current = [i]
        for j, char_b in enumerate(b, start=1):
            current.append(
                min(
                    previous[j] + 1,
                    current[j - 1] + 1,
                    previous[j - 1] + (char_a != char_b),
                )
            )
        previous = current
    return previous[-1]


def similarity(query: str, candidate: str) -> float:
    """Normalized edit similarity in [0, 1]; two empty strings score 0."""
    longest = max(len(query), len(candidate))
    if longest == 0:
        return 0.0
    return max(0.0, 1.0 - levenshtein(query, candidate) / longest)


def score_candidate(query: str, candidate: str) -> float:
    q = query.lower()
    c = candidate.lower()
    if not q:
        return 0.0
    if q == c:
        return EXACT_SCORE
    if c.startswith(q):
        return PREFIX_SCORE
    if q in c:
        return SUBSTRING_SCORE
    return similarity(q, c)


def _weighted_candidates(entry: ProductCatalogEntry) -> Iterable[Tuple[str, float]]:
    yield entry.name, NAME_WEIGHT
    for keyword in entry.keywords:
        yield keyword, KEYWORD_WEIGHT
    if entry.category:
        yield entry.category, CATEGORY_WEIGHT


def score_entry(query: str, entry: ProductCatalogEntry) -> float:
    """Best weighted score of ``query`` against every string of ``entry``."""
    if not entry.name:
        raise ValueError(f"Catalog entry {entry.id!r} has no name")
    return max(score_candidate(query, text) * weight for text, weight in _weighted_candidates(entry))


def match(
    query: str,
    catalog: Iterable[ProductCatalogEntry],
    min_score: float = 0.3,
    limit: int = 8,
) -> List[MatchResult]:
    """Rank ``catalog`` against ``query``, best first, dropping scores <= ``min_score``."""
    query = (query or "").strip()
    if len(query) < MIN_QUERY_LENGTH or limit <= 0:
        return []

    results: List[MatchResult] = []
    for entry in catalog:
        score = score_entry(query, entry)
        if score > min_score:
            results.append(MatchResult(entry=entry, score=score))

    # sorted() is stable, so equal scores keep catalog order.
    results = sorted(results, key=lambda result: -result.score)
    logger.debug("query=%r matched %d entries (limit=%d)", query, len(results), limit)
    return results[:limit]


@lru_cache(maxsize=512)
def _cached_match(query: str, catalog, min_score: float, limit: int) -> Tuple[MatchResult, ...]:
    return tuple(match(query, catalog, min_score=min_score, limit=limit))


def suggest(query: str, catalog, min_score: float = 0.3, limit: int = 8) -> List[MatchResult]:
    """Memoized ``match`` for keystroke-driven autocomplete.

    ``catalog`` must be hashable (a ``ProductCatalog``); it compares by version
    and entries, so cached results never leak between catalog snapshots.
    """
    return list(_cached_match((query or "").strip(), catalog, min_score, limit))


"""Lexical similarity between normalized strings.

Trigram similarity follows pg_trgm semantics so scores computed here agree
with what a PostgreSQL similarity() query would rank, but as a multiset
Jaccard so repeated trigrams are not lost. Fuzzy similarity is normalized
Levenshtein distance via rapidfuzz.
"""

from collections import Counter
from functools import lru_cache

from rapidfuzz.distance import Levenshtein

# Identical strings are the only pairs allowed to score exactly 1.0
_MAX_DISTINCT_SIMILARITY = 0.999


@lru_cache(maxsize=8192)
def _trigrams(text: str) -> Counter:
    padded = "  " + text + " "
    return Counter(padded[i:i + 3] for i in range(len(padded) - 2))


def trigram_similarity(a: str, b: str) -> float:
    """Trigram Jaccard similarity of two normalized strings.

    Args:
        a: First normalized string
        b: Second normalized string

    Returns:
        float: Similarity in [0, 1]; 1.0 only for identical strings,
            0.0 if either string is empty or no trigram is shared
    """
    if not a or not b:
        return 0.0
    if a == b:
        return 1.0

    ta = _trigrams(a)
    tb = _trigrams(b)
    shared = sum((ta & tb).values())
    if shared == 0:
        return 0.0
    total = sum((ta | tb).values())
    return min(shared / total, _MAX_DISTINCT_SIMILARITY)


def fuzzy_score(a: str, b: str) -> float:
    """Normalized edit similarity: 1 - levenshtein(a, b) / max(len(a), len(b)).

    Returns 0.0 if either string is empty.
    """
    if not a or not b:
        return 0.0
    return float(Levenshtein.normalized_similarity(a, b))


def text_similarity(a: str, b: str) -> float:
    """Best of trigram and fuzzy similarity, used to compare query texts."""
    return max(trigram_similarity(a, b), fuzzy_score(a, b))

"""Matching module for quotematch.

Hybrid catalog matching for free-text quote/invoice line items:
- Normalization of hardware/fastener shorthand
- Trigram and edit-distance similarity
- Exact alias hits
- Embedding similarity (optional, fail-open)
- Learned adjustment from reviewed decisions

The service, ledger and router are imported from their modules directly.
"""

from .ports import (
    SignalScores,
    MatchCandidate,
    MatchResult,
    Decision,
    CatalogProviderPort,
    MatcherError,
    InputError,
    LedgerError,
    StateTransitionError,
    TenantIsolationError,
)
from .normalizer import normalize_text
from .lexical import trigram_similarity, fuzzy_score, text_similarity
from .alias_resolver import AliasResolver, EXACT_ALIAS_SCORE
from .semantic import SemanticScorer
from .learned_adjuster import LearnedAdjuster
from .ranker import rank, combine
from .status import MatchStatus
from .hybrid_matcher import HybridMatcher

__all__ = [
    "SignalScores",
    "MatchCandidate",
    "MatchResult",
    "Decision",
    "CatalogProviderPort",
    "MatcherError",
    "InputError",
    "LedgerError",
    "StateTransitionError",
    "TenantIsolationError",
    "normalize_text",
    "trigram_similarity",
    "fuzzy_score",
    "text_similarity",
    "AliasResolver",
    "EXACT_ALIAS_SCORE",
    "SemanticScorer",
    "LearnedAdjuster",
    "rank",
    "combine",
    "MatchStatus",
    "HybridMatcher",
]

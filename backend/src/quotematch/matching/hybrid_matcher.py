"""Hybrid matcher combining lexical, fuzzy, alias, semantic and learned signals.

Pipeline per query:
1. Normalize the query (empty -> no candidates)
2. Load the tenant's active catalog entries and aliases
3. Score every entry: lexical + fuzzy on name/SKU, exact alias hits,
   embedding similarity when the provider answers in time
4. Apply the learned adjustment from the tenant's review history
5. Combine, threshold, order and truncate (ranker)

Scoring has no side effects; nothing is persisted here.
"""

import logging
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, Iterable, List, Optional
from uuid import UUID

from ..observability.metrics import match_candidates, match_requests_total, match_top_confidence
from ..tenancy import ensure_same_tenant
from .alias_resolver import AliasResolver
from .learned_adjuster import LearnedAdjuster
from .lexical import fuzzy_score, trigram_similarity
from .normalizer import normalize_text
from .ports import CatalogProviderPort, InputError, MatchCandidate, MatchResult, SignalScores
from .ranker import rank
from .semantic import SemanticScorer

logger = logging.getLogger(__name__)

HistoryLoader = Callable[[UUID], Iterable]


@dataclass
class _TenantContext:
    org_id: UUID
    entries: List
    aliases: AliasResolver
    adjuster: LearnedAdjuster
    has_embeddings: bool


def validate_match_params(limit: int, threshold: float, max_limit: int) -> None:
    """Reject out-of-range limit/threshold before any data access.

    Raises:
        InputError: If limit is outside [1, max_limit] or threshold outside [0, 1]
    """
    if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1 or limit > max_limit:
        raise InputError(f"limit must be an integer between 1 and {max_limit}, got {limit!r}")
    if isinstance(threshold, bool) or not isinstance(threshold, (int, float)) or not 0.0 <= threshold <= 1.0:
        raise InputError(f"threshold must be between 0 and 1, got {threshold!r}")


class HybridMatcher:
    """Ranks a tenant's catalog entries against free-text line items.

    Args:
        catalog: Catalog provider for entries and aliases
        semantic: Semantic scorer; None disables the semantic signal
        history: Callable returning the tenant's training records
        max_limit: Largest accepted candidate limit
        now: Reference time for history recency (tests)
    """

    def __init__(
        self,
        catalog: CatalogProviderPort,
        semantic: Optional[SemanticScorer] = None,
        history: Optional[HistoryLoader] = None,
        max_limit: int = 100,
        now: Optional[datetime] = None,
    ):
        self.catalog = catalog
        self.semantic = semantic
        self.history = history
        self.max_limit = max_limit
        self.now = now

    def _load_context(self, org_id: UUID) -> _TenantContext:
        entries = [e for e in self.catalog.list_entries(org_id) if e.active]
        ensure_same_tenant(org_id, entries, what="catalog entry")
        records = list(self.history(org_id)) if self.history else []
        return _TenantContext(
            org_id=org_id,
            entries=entries,
            aliases=AliasResolver(self.catalog.list_aliases(org_id)),
            adjuster=LearnedAdjuster(records, now=self.now),
            has_embeddings=any(e.embedding is not None for e in entries),
        )

    def match(
        self,
        org_id: UUID,
        query_text: Optional[str],
        limit: int = 10,
        threshold: float = 0.3,
    ) -> List[MatchCandidate]:
        """Rank catalog entries for one query.

        Args:
            org_id: Tenant
            query_text: Raw line item text
            limit: Maximum number of candidates (1..max_limit)
            threshold: Minimum final score (0..1)

        Returns:
            Ranked candidates, best first; [] for empty or unmatchable text

        Raises:
            InputError: If limit or threshold is out of range
            TenantIsolationError: If the provider returns another tenant's data
        """
        validate_match_params(limit, threshold, self.max_limit)
        if not normalize_text(query_text):
            match_requests_total.labels(outcome="unmatchable").inc()
            return []
        return self._match_one(self._load_context(org_id), query_text, limit, threshold)

    def match_batch(
        self,
        org_id: UUID,
        queries: List[Optional[str]],
        limit: int = 10,
        threshold: float = 0.3,
    ) -> List[List[MatchCandidate]]:
        """Rank candidates for several queries, loading the catalog once.

        Returns:
            One ranked list per query (same order as queries)
        """
        validate_match_params(limit, threshold, self.max_limit)
        context = self._load_context(org_id)
        results = []
        for query_text in queries:
            if not normalize_text(query_text):
                match_requests_total.labels(outcome="unmatchable").inc()
                results.append([])
                continue
            results.append(self._match_one(context, query_text, limit, threshold))
        return results

    def _match_one(
        self,
        context: _TenantContext,
        query_text: str,
        limit: int,
        threshold: float,
    ) -> List[MatchCandidate]:
        start_time = time.time()
        org_id = context.org_id
        query_norm = normalize_text(query_text)

        alias_hits = context.aliases.resolve(org_id, query_norm)

        query_vector = None
        if self.semantic is not None and context.has_embeddings:
            query_vector = self.semantic.embed_query(query_norm, org_id=org_id)

        candidates = []
        for entry in context.entries:
            scores = self._score_entry(entry, query_norm, query_vector, alias_hits)
            candidates.append(MatchCandidate(
                catalog_entry_id=entry.id,
                sku=entry.sku,
                name=entry.name,
                scores=scores,
                learned_adjustment=context.adjuster.adjust(org_id, query_norm, entry.id),
            ))

        ranked = rank(candidates, threshold, limit)

        match_requests_total.labels(outcome="matched" if ranked else "empty").inc()
        match_candidates.observe(len(ranked))
        if ranked:
            match_top_confidence.observe(ranked[0].final_score)

        logger.info(
            f"Ranked {len(ranked)} of {len(candidates)} catalog entries",
            extra={
                "org_id": str(org_id),
                "candidate_count": len(ranked),
                "duration_ms": int((time.time() - start_time) * 1000),
            },
        )
        return ranked

    def _score_entry(
        self,
        entry,
        query_norm: str,
        query_vector: Optional[List[float]],
        alias_hits: Dict[UUID, float],
    ) -> SignalScores:
        name_norm = normalize_text(entry.name)
        sku_norm = normalize_text(entry.sku)

        semantic = None
        if query_vector is not None:
            semantic = self.semantic.score(query_vector, entry.embedding)

        return SignalScores(
            lexical=max(trigram_similarity(query_norm, name_norm), trigram_similarity(query_norm, sku_norm)),
            fuzzy=max(fuzzy_score(query_norm, name_norm), fuzzy_score(query_norm, sku_norm)),
            alias=alias_hits.get(entry.id),
            semantic=semantic,
        )

    @staticmethod
    def classify(
        line_item_id: UUID,
        candidates: List[MatchCandidate],
        auto_apply_threshold: float = 0.92,
        auto_apply_gap: float = 0.10,
    ) -> MatchResult:
        """Build a MatchResult, marking it SUGGESTED when the top candidate is
        confident and clearly ahead of the runner-up.

        Args:
            line_item_id: Line item the candidates belong to
            candidates: Ranked candidates
            auto_apply_threshold: Minimum top score for SUGGESTED
            auto_apply_gap: Minimum lead over the second candidate

        Returns:
            MatchResult with status SUGGESTED or UNMATCHED
        """
        if not candidates:
            return MatchResult(
                line_item_id=line_item_id,
                status="UNMATCHED",
                catalog_entry_id=None,
                sku=None,
                confidence=0.0,
                method=None,
                candidates=[],
            )

        top1 = candidates[0]
        top2 = candidates[1] if len(candidates) > 1 else None
        gap = top1.final_score - (top2.final_score if top2 else 0.0)
        suggested = top1.final_score >= auto_apply_threshold and gap >= auto_apply_gap - 1e-9

        return MatchResult(
            line_item_id=line_item_id,
            status="SUGGESTED" if suggested else "UNMATCHED",
            catalog_entry_id=top1.catalog_entry_id,
            sku=top1.sku,
            confidence=top1.final_score,
            method=top1.method,
            candidates=candidates,
        )

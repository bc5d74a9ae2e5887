"""Matching service: the entry points used by the API and by batch callers.

Wires the hybrid matcher, the ledger and the training corpus together for
one database session. Tenant and reviewer are always explicit arguments.
"""

import logging
from dataclasses import replace
from datetime import datetime
from typing import List, Optional, Union
from uuid import UUID

from sqlalchemy.orm import Session

from ..catalog.repository import SqlCatalogRepository
from ..config import Settings, get_settings
from ..domain.ai.ports import EmbeddingError, EmbeddingProviderPort
from ..feedback.services import TrainingService
from ..models import CatalogAlias, MatchDecision
from ..tenancy import coerce_uuid
from .hybrid_matcher import HybridMatcher
from .ledger import MatchLedger
from .ports import Decision, MatchCandidate, MatchResult
from .semantic import SemanticScorer

logger = logging.getLogger(__name__)

IdLike = Union[UUID, str]


def build_embedding_provider(settings: Settings) -> Optional[EmbeddingProviderPort]:
    """Create the OpenAI adapter when an API key is configured, else None."""
    if not settings.OPENAI_API_KEY:
        return None
    from ..infrastructure.ai import OpenAIEmbeddingAdapter

    try:
        return OpenAIEmbeddingAdapter(
            api_key=settings.OPENAI_API_KEY,
            timeout=settings.EMBEDDING_TIMEOUT_SECONDS,
        )
    except EmbeddingError as e:
        logger.warning(f"Embedding provider disabled: {e}")
        return None


class MatchingService:
    """Scoring and decision entry points for one database session.

    Args:
        db: Database session (the service commits on successful writes)
        embedding_provider: Provider for query embeddings; None disables
            the semantic signal
        settings: Settings override (defaults to get_settings())
        now: Reference time for history recency (tests)
    """

    def __init__(
        self,
        db: Session,
        embedding_provider: Optional[EmbeddingProviderPort] = None,
        settings: Optional[Settings] = None,
        now: Optional[datetime] = None,
    ):
        self.db = db
        self.settings = settings or get_settings()
        self.catalog = SqlCatalogRepository(db)
        self.ledger = MatchLedger(db, self.catalog)
        self.matcher = HybridMatcher(
            catalog=self.catalog,
            semantic=SemanticScorer(
                embedding_provider,
                timeout_seconds=self.settings.EMBEDDING_TIMEOUT_SECONDS,
                model=self.settings.EMBEDDING_MODEL,
                dimension=self.settings.EMBEDDING_DIMENSION,
            ),
            history=self._load_history,
            max_limit=self.settings.MATCH_MAX_LIMIT,
            now=now,
        )

    def _load_history(self, org_id: UUID):
        return TrainingService.load_records(self.db, org_id, limit=self.settings.TRAINING_HISTORY_LIMIT)

    def match(
        self,
        org_id: IdLike,
        query_text: Optional[str],
        limit: Optional[int] = None,
        threshold: Optional[float] = None,
    ) -> List[MatchCandidate]:
        """Rank catalog candidates for free text.

        Args:
            org_id: Tenant
            query_text: Raw line item text
            limit: Maximum candidates (default MATCH_DEFAULT_LIMIT)
            threshold: Minimum final score (default MATCH_DEFAULT_THRESHOLD)

        Returns:
            Ranked candidates; [] for empty or unmatchable text

        Raises:
            InputError: Malformed org_id, out-of-range limit or threshold
            TenantIsolationError: Cross-tenant data reached the matcher
        """
        org_id = coerce_uuid(org_id, "org_id")
        return self.matcher.match(
            org_id,
            query_text,
            limit=self.settings.MATCH_DEFAULT_LIMIT if limit is None else limit,
            threshold=self.settings.MATCH_DEFAULT_THRESHOLD if threshold is None else threshold,
        )

    def match_line_item(
        self,
        org_id: IdLike,
        line_item_id: IdLike,
        query_text: Optional[str],
        limit: Optional[int] = None,
        threshold: Optional[float] = None,
    ) -> MatchResult:
        """Rank candidates for a line item and open its pending decision.

        A line item that is already approved or rejected keeps its decision;
        only the ranked result is returned.
        """
        org_id = coerce_uuid(org_id, "org_id")
        line_item_id = coerce_uuid(line_item_id, "line_item_id")

        candidates = self.match(org_id, query_text, limit=limit, threshold=threshold)
        result = HybridMatcher.classify(
            line_item_id,
            candidates,
            auto_apply_threshold=self.settings.AUTO_APPLY_THRESHOLD,
            auto_apply_gap=self.settings.AUTO_APPLY_GAP,
        )

        try:
            self.ledger.mark_pending(
                org_id,
                line_item_id,
                query_text or "",
                candidates[0] if candidates else None,
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(
            f"Line item scored as {result.status}",
            extra={
                "org_id": str(org_id),
                "line_item_id": str(line_item_id),
                "status": result.status,
                "candidate_count": len(candidates),
            },
        )
        return result

    def record_decision(
        self,
        org_id: IdLike,
        line_item_id: IdLike,
        decision: Decision,
        reviewer_id: Optional[IdLike],
        query_text: Optional[str] = None,
    ) -> MatchDecision:
        """Record an approve/reject decision for a line item.

        See MatchLedger.record_decision for semantics and errors.
        """
        org_id = coerce_uuid(org_id, "org_id")
        line_item_id = coerce_uuid(line_item_id, "line_item_id")
        reviewer_id = coerce_uuid(reviewer_id, "reviewer_id") if reviewer_id is not None else None
        if decision.approved:
            decision = replace(decision, catalog_entry_id=coerce_uuid(decision.catalog_entry_id, "catalog_entry_id"))

        try:
            row = self.ledger.record_decision(org_id, line_item_id, decision, reviewer_id, query_text=query_text)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return row

    def get_decision(self, org_id: IdLike, line_item_id: IdLike) -> Optional[MatchDecision]:
        org_id = coerce_uuid(org_id, "org_id")
        line_item_id = coerce_uuid(line_item_id, "line_item_id")
        return self.ledger.get_decision(org_id, line_item_id)

    def register_alias(
        self,
        org_id: IdLike,
        entry_id: IdLike,
        alias_text: str,
        created_by: Optional[IdLike] = None,
    ) -> CatalogAlias:
        """Register a MANUAL alias for a catalog entry."""
        org_id = coerce_uuid(org_id, "org_id")
        entry_id = coerce_uuid(entry_id, "catalog_entry_id")
        created_by = coerce_uuid(created_by, "created_by") if created_by is not None else None
        try:
            alias = self.catalog.register_alias(org_id, entry_id, alias_text, source="MANUAL", created_by=created_by)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return alias

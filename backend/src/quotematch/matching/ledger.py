"""Match ledger: the durable, single-row-per-line-item decision store.

Every write is one INSERT ... ON CONFLICT (line_item_id) DO UPDATE
statement guarded by WHERE org_id = excluded.org_id, followed by a re-read
of the row. Concurrent writers for the same line item therefore converge
on one row, and the loser of a race observes the winner's state instead
of creating a duplicate.
"""

import logging
from datetime import datetime, timezone
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import and_, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from ..catalog.repository import SqlCatalogRepository
from ..feedback.services import TrainingService
from ..models import MatchDecision
from ..observability.metrics import decisions_total
from ..tenancy import ensure_same_tenant
from .normalizer import normalize_text
from .ports import Decision, InputError, LedgerError, MatchCandidate
from .status import MatchStatus, validate_transition

logger = logging.getLogger(__name__)


class MatchLedger:
    """Records pending suggestions and reviewer decisions for line items.

    The ledger never commits; the caller owns the transaction boundary.
    """

    def __init__(self, db: Session, catalog: Optional[SqlCatalogRepository] = None):
        self.db = db
        self.catalog = catalog or SqlCatalogRepository(db)

    def _dialect(self) -> str:
        return self.db.get_bind().dialect.name

    def _insert(self):
        dialect = self._dialect()
        if dialect == "postgresql":
            return postgresql.insert(MatchDecision)
        if dialect == "sqlite":
            return sqlite.insert(MatchDecision)
        raise LedgerError(f"Atomic decision upsert is not supported on dialect '{dialect}'")

    def _load(self, line_item_id: UUID, for_update: bool = False) -> Optional[MatchDecision]:
        stmt = (
            select(MatchDecision)
            .where(MatchDecision.line_item_id == line_item_id)
            .execution_options(populate_existing=True)
        )
        if for_update and self._dialect() == "postgresql":
            stmt = stmt.with_for_update()
        return self.db.execute(stmt).scalar_one_or_none()

    def _reload(self, org_id: UUID, line_item_id: UUID) -> MatchDecision:
        row = self._load(line_item_id)
        if row is None:
            raise LedgerError(f"Decision upsert for line item {line_item_id} produced no row")
        ensure_same_tenant(org_id, [row], what="line item")
        return row

    def get_decision(self, org_id: UUID, line_item_id: UUID) -> Optional[MatchDecision]:
        """Current decision for a line item, or None if it was never scored or decided.

        Raises:
            TenantIsolationError: If the line item belongs to another tenant
        """
        row = self._load(line_item_id)
        if row is not None:
            ensure_same_tenant(org_id, [row], what="line item")
        return row

    def mark_pending(
        self,
        org_id: UUID,
        line_item_id: UUID,
        query_text: str,
        candidate: Optional[MatchCandidate] = None,
    ) -> MatchDecision:
        """Open or refresh the pending decision for a line item.

        A line item that is already APPROVED or REJECTED is left untouched;
        re-scoring never moves a decided item back to pending.

        Args:
            org_id: Tenant
            line_item_id: Line item being scored
            query_text: Raw line item text
            candidate: Top ranked candidate, None if nothing matched

        Returns:
            The authoritative MatchDecision row after the write

        Raises:
            TenantIsolationError: If the line item belongs to another tenant
            LedgerError: If the database dialect cannot do the atomic upsert
        """
        existing = self._load(line_item_id, for_update=True)
        if existing is not None:
            ensure_same_tenant(org_id, [existing], what="line item")

        now = datetime.now(timezone.utc)
        values = {
            "catalog_entry_id": candidate.catalog_entry_id if candidate else None,
            "confidence": candidate.final_score if candidate else None,
            "features_json": candidate.features if candidate else {},
            "query_text": query_text,
            "query_norm": normalize_text(query_text),
            "updated_at": now,
        }

        stmt = self._insert().values(
            id=uuid4(),
            org_id=org_id,
            line_item_id=line_item_id,
            status=MatchStatus.PENDING.value,
            revision=1,
            created_at=now,
            **values,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[MatchDecision.line_item_id],
            set_={**values, "revision": MatchDecision.revision + 1},
            where=and_(
                MatchDecision.org_id == stmt.excluded.org_id,
                MatchDecision.status == MatchStatus.PENDING.value,
            ),
        )
        self.db.execute(stmt)

        row = self._reload(org_id, line_item_id)
        if row.status == MatchStatus.PENDING.value:
            decisions_total.labels(status=MatchStatus.PENDING.value).inc()
        else:
            logger.info(
                "Line item already decided, pending suggestion not stored",
                extra={"org_id": str(org_id), "line_item_id": str(line_item_id), "status": row.status},
            )
        return row

    def record_decision(
        self,
        org_id: UUID,
        line_item_id: UUID,
        decision: Decision,
        reviewer_id: Optional[UUID],
        query_text: Optional[str] = None,
    ) -> MatchDecision:
        """Record a reviewer's approve/reject outcome and update the training corpus.

        Args:
            org_id: Tenant
            line_item_id: Line item being decided
            decision: Decision.approve(entry_id) or Decision.reject()
            reviewer_id: Reviewer, recorded on the decision and training record
            query_text: Line item text; may be omitted when a previous
                scoring call stored it

        Returns:
            The authoritative MatchDecision row after the write

        Raises:
            InputError: Missing query text, or unknown/inactive catalog entry
            TenantIsolationError: Line item or entry belongs to another tenant
            StateTransitionError: Transition not allowed from the current status
            LedgerError: Dialect without atomic upsert, or no row after upsert
        """
        existing = self._load(line_item_id, for_update=True)
        if existing is not None:
            ensure_same_tenant(org_id, [existing], what="line item")

        new_status = MatchStatus.APPROVED if decision.approved else MatchStatus.REJECTED
        current_status = MatchStatus(existing.status) if existing is not None else None
        validate_transition(current_status, new_status)

        if query_text is not None and query_text.strip():
            query_text = query_text.strip()
        elif existing is not None and existing.query_text:
            query_text = existing.query_text
        else:
            raise InputError(f"query_text is required for line item {line_item_id} without a scoring record")
        query_norm = normalize_text(query_text)

        entry = None
        if decision.approved:
            entry = self.catalog.get_active_entry(org_id, decision.catalog_entry_id)

        previous_entry_id = existing.catalog_entry_id if existing is not None else None
        new_entry_id = entry.id if entry is not None else None

        # Keep the score snapshot only when the reviewer confirms the proposed entry
        if existing is not None and new_entry_id is not None and previous_entry_id == new_entry_id:
            confidence = existing.confidence
            features = existing.features_json or {}
        else:
            confidence = None
            features = {}

        now = datetime.now(timezone.utc)
        values = {
            "catalog_entry_id": new_entry_id,
            "status": new_status.value,
            "query_text": query_text,
            "query_norm": query_norm,
            "confidence": confidence,
            "features_json": features,
            "reviewed_by": reviewer_id,
            "reviewed_at": now,
            "updated_at": now,
        }

        stmt = self._insert().values(
            id=uuid4(),
            org_id=org_id,
            line_item_id=line_item_id,
            revision=1,
            created_at=now,
            **values,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[MatchDecision.line_item_id],
            set_={**values, "revision": MatchDecision.revision + 1},
            where=MatchDecision.org_id == stmt.excluded.org_id,
        )
        self.db.execute(stmt)
        row = self._reload(org_id, line_item_id)

        if not query_norm:
            logger.warning(
                "Decision recorded without training example, query text normalizes to empty",
                extra={"org_id": str(org_id), "line_item_id": str(line_item_id)},
            )
        elif entry is not None:
            TrainingService.record_positive(
                self.db, org_id, query_text, query_norm, entry.id,
                reviewer_id=reviewer_id, line_item_id=line_item_id, quality=decision.quality,
            )
        else:
            TrainingService.record_negative(
                self.db, org_id, query_text, query_norm, previous_entry_id,
                reviewer_id=reviewer_id, line_item_id=line_item_id,
            )

        if entry is not None and decision.learn_alias and query_norm:
            self.catalog.register_alias(org_id, entry.id, query_text, source="LEARNED", created_by=reviewer_id)

        decisions_total.labels(status=new_status.value).inc()
        logger.info(
            f"Recorded {new_status.value} decision (revision {row.revision})",
            extra={
                "org_id": str(org_id),
                "line_item_id": str(line_item_id),
                "catalog_entry_id": str(new_entry_id) if new_entry_id else None,
                "reviewer_id": str(reviewer_id) if reviewer_id else None,
                "status": new_status.value,
            },
        )
        return row

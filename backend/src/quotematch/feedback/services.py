"""Training corpus services.

Turns confirmed review outcomes into TrainingRecords and loads a tenant's
corpus for scoring. Records are only ever written from a confirmed human
decision, never from a suggestion.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select, desc
from sqlalchemy.orm import Session

from ..models.training_record import TrainingLabel, TrainingQuality, TrainingRecord
from ..tenancy import ensure_same_tenant

logger = logging.getLogger(__name__)


class TrainingService:
    """Service for creating and reading training records.

    Repeated confirmations of the same (query, entry, label) fact update
    one record and bump its support_count instead of adding rows.
    Callers own the transaction; this service only flushes.
    """

    @staticmethod
    def _find(
        db: Session,
        org_id: UUID,
        query_norm: str,
        catalog_entry_id: Optional[UUID],
        label: TrainingLabel,
    ) -> Optional[TrainingRecord]:
        stmt = select(TrainingRecord).where(
            TrainingRecord.org_id == org_id,
            TrainingRecord.query_norm == query_norm,
            TrainingRecord.label == label.value,
        )
        if catalog_entry_id is None:
            stmt = stmt.where(TrainingRecord.catalog_entry_id.is_(None))
        else:
            stmt = stmt.where(TrainingRecord.catalog_entry_id == catalog_entry_id)
        return db.execute(stmt.limit(1)).scalars().first()

    @staticmethod
    def _record(
        db: Session,
        org_id: UUID,
        label: TrainingLabel,
        query_text: str,
        query_norm: str,
        catalog_entry_id: Optional[UUID],
        reviewer_id: Optional[UUID],
        line_item_id: Optional[UUID],
        quality: str,
    ) -> TrainingRecord:
        record = TrainingService._find(db, org_id, query_norm, catalog_entry_id, label)
        now = datetime.now(timezone.utc)

        if record is None:
            record = TrainingRecord(
                org_id=org_id,
                query_text=query_text,
                query_norm=query_norm,
                catalog_entry_id=catalog_entry_id,
                label=label.value,
                quality=quality,
                support_count=1,
                line_item_id=line_item_id,
                reviewed_by=reviewer_id,
                created_at=now,
                updated_at=now,
            )
            db.add(record)
        else:
            ensure_same_tenant(org_id, [record], what="training record")
            record.support_count = (record.support_count or 0) + 1
            record.quality = quality
            record.query_text = query_text
            record.line_item_id = line_item_id
            record.reviewed_by = reviewer_id
            record.updated_at = now

        db.flush()
        logger.info(
            f"Recorded {label.value} training example (support={record.support_count})",
            extra={
                "org_id": str(org_id),
                "catalog_entry_id": str(catalog_entry_id) if catalog_entry_id else None,
                "line_item_id": str(line_item_id) if line_item_id else None,
            },
        )
        return record

    @staticmethod
    def record_positive(
        db: Session,
        org_id: UUID,
        query_text: str,
        query_norm: str,
        catalog_entry_id: UUID,
        reviewer_id: Optional[UUID] = None,
        line_item_id: Optional[UUID] = None,
        quality: str = TrainingQuality.GOOD.value,
    ) -> TrainingRecord:
        """Record that query_norm was confirmed as catalog_entry_id.

        Args:
            db: Database session
            org_id: Organization ID
            query_text: Raw query text as reviewed
            query_norm: Normalized query text
            catalog_entry_id: Approved catalog entry
            reviewer_id: User who approved
            line_item_id: Line item the approval came from
            quality: Reviewer quality assessment

        Returns:
            Created or updated TrainingRecord
        """
        return TrainingService._record(
            db, org_id, TrainingLabel.POSITIVE, query_text, query_norm,
            catalog_entry_id, reviewer_id, line_item_id, quality,
        )

    @staticmethod
    def record_negative(
        db: Session,
        org_id: UUID,
        query_text: str,
        query_norm: str,
        catalog_entry_id: Optional[UUID],
        reviewer_id: Optional[UUID] = None,
        line_item_id: Optional[UUID] = None,
    ) -> TrainingRecord:
        """Record that query_norm is not catalog_entry_id.

        A None catalog_entry_id records "no catalog entry matches this query".
        """
        return TrainingService._record(
            db, org_id, TrainingLabel.NEGATIVE, query_text, query_norm,
            catalog_entry_id, reviewer_id, line_item_id, TrainingQuality.GOOD.value,
        )

    @staticmethod
    def load_records(db: Session, org_id: UUID, limit: int = 5000) -> List[TrainingRecord]:
        """Load the most recently updated training records of one tenant.

        Args:
            db: Database session
            org_id: Organization ID
            limit: Maximum number of records

        Returns:
            List of TrainingRecord, newest first
        """
        stmt = (
            select(TrainingRecord)
            .where(TrainingRecord.org_id == org_id)
            .order_by(desc(TrainingRecord.updated_at))
            .limit(limit)
        )
        records = list(db.execute(stmt).scalars())
        ensure_same_tenant(org_id, records, what="training record")
        return records

"""Training record SQLAlchemy model.

A training record is a human-confirmed fact that a normalized query text
does (POSITIVE) or does not (NEGATIVE) correspond to a catalog entry. A
NEGATIVE record without a catalog entry means a reviewer marked the query
as having no match at all.
"""

from datetime import datetime, timezone
from enum import Enum
from uuid import uuid4

from sqlalchemy import Column, Text, ForeignKey, Integer, Index, DateTime, Float, Uuid

from .base import Base


def _utcnow():
    return datetime.now(timezone.utc)


class TrainingLabel(str, Enum):
    """Outcome a reviewer confirmed for a (query, entry) pair."""
    POSITIVE = "POSITIVE"
    NEGATIVE = "NEGATIVE"


class TrainingQuality(str, Enum):
    """Reviewer assessment of how good the confirmed pairing is."""
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"


class TrainingRecord(Base):
    """Tenant-scoped review outcome used by the learned adjuster."""
    __tablename__ = "training_record"
    __table_args__ = (
        Index("ix_training_record_org_norm", "org_id", "query_norm"),
        Index("ix_training_record_org_updated", "org_id", "updated_at"),
    )

    id = Column(Uuid, primary_key=True, default=uuid4)
    org_id = Column(Uuid, nullable=False)

    query_text = Column(Text, nullable=False)
    query_norm = Column(Text, nullable=False)

    # NULL together with NEGATIVE: explicitly no match
    catalog_entry_id = Column(Uuid, ForeignKey("catalog_entry.id", ondelete="CASCADE"), nullable=True)

    label = Column(Text, nullable=False)
    quality = Column(Text, nullable=False, default=TrainingQuality.GOOD.value)
    weight = Column(Float, nullable=False, default=1.0)
    support_count = Column(Integer, nullable=False, default=1)

    line_item_id = Column(Uuid, nullable=True)
    reviewed_by = Column(Uuid, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

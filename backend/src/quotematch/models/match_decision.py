"""Match decision SQLAlchemy model.

One row per line item. The unique constraint on line_item_id is what the
ledger's conditional upsert relies on; a second decision for the same
line item updates this row in place.
"""

from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import Column, Text, ForeignKey, Integer, Index, DateTime, Float, Uuid, UniqueConstraint

from .base import Base, PortableJSONB


def _utcnow():
    return datetime.now(timezone.utc)


class MatchDecision(Base):
    """Durable review outcome for one line item.

    Status values:
    - PENDING: scored, waiting for a reviewer
    - APPROVED: reviewer confirmed catalog_entry_id
    - REJECTED: reviewer declared no match (catalog_entry_id is NULL)
    """
    __tablename__ = "match_decision"
    __table_args__ = (
        UniqueConstraint("line_item_id", name="uq_match_decision_line_item"),
        Index("ix_match_decision_org_status", "org_id", "status"),
    )

    id = Column(Uuid, primary_key=True, default=uuid4)
    org_id = Column(Uuid, nullable=False)
    line_item_id = Column(Uuid, nullable=False)

    catalog_entry_id = Column(Uuid, ForeignKey("catalog_entry.id", ondelete="SET NULL"), nullable=True)
    status = Column(Text, nullable=False)

    # Query snapshot, feeds the training corpus on review
    query_text = Column(Text, nullable=True)
    query_norm = Column(Text, nullable=True)

    # Score snapshot of the proposed/approved candidate
    confidence = Column(Float, nullable=True)
    features_json = Column(PortableJSONB, nullable=False, default=dict)

    reviewed_by = Column(Uuid, nullable=True)
    reviewed_at = Column(DateTime(timezone=True), nullable=True)

    revision = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

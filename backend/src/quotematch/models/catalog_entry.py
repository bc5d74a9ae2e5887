"""Catalog entry and alias SQLAlchemy models"""

from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import Column, Text, ForeignKey, Boolean, Index, DateTime, Uuid, UniqueConstraint
from sqlalchemy.orm import relationship

from .base import Base, PortableVector


def _utcnow():
    return datetime.now(timezone.utc)


class CatalogEntry(Base):
    """Product catalog entry owned by one tenant.

    The matching engine treats entries as read-only; only aliases are
    added through the engine. The optional embedding is precomputed by
    the external embedding provider.
    """
    __tablename__ = "catalog_entry"
    __table_args__ = (
        UniqueConstraint("org_id", "sku", name="uq_catalog_entry_org_sku"),
        Index("ix_catalog_entry_org_id", "org_id"),
    )

    id = Column(Uuid, primary_key=True, default=uuid4)
    org_id = Column(Uuid, nullable=False)
    sku = Column(Text, nullable=False)
    name = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    embedding = Column(PortableVector(1536), nullable=True)
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    aliases = relationship("CatalogAlias", back_populates="catalog_entry", cascade="all, delete-orphan")


class CatalogAlias(Base):
    """Alternate or competitor name mapped to a canonical catalog entry.

    Source values:
    - MANUAL: maintained by catalog administrators
    - LEARNED: registered from an approved match decision
    """
    __tablename__ = "catalog_alias"
    __table_args__ = (
        UniqueConstraint("org_id", "alias_norm", "catalog_entry_id", name="uq_catalog_alias_org_norm_entry"),
        Index("ix_catalog_alias_org_norm", "org_id", "alias_norm"),
    )

    id = Column(Uuid, primary_key=True, default=uuid4)
    org_id = Column(Uuid, nullable=False)
    catalog_entry_id = Column(Uuid, ForeignKey("catalog_entry.id", ondelete="CASCADE"), nullable=False)
    alias_text = Column(Text, nullable=False)
    alias_norm = Column(Text, nullable=False)
    source = Column(Text, nullable=False, default="MANUAL")
    created_by = Column(Uuid, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    catalog_entry = relationship("CatalogEntry", back_populates="aliases")

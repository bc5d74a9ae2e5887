"""SQL implementation of the catalog provider port"""

import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..errors import InputError
from ..matching.normalizer import normalize_text
from ..matching.ports import CatalogProviderPort
from ..models import CatalogAlias, CatalogEntry
from ..tenancy import ensure_same_tenant

logger = logging.getLogger(__name__)


class SqlCatalogRepository(CatalogProviderPort):
    """Tenant-scoped catalog reads plus alias registration.

    Every query filters on org_id, and every returned row is checked again
    before it leaves the repository.
    """

    def __init__(self, db: Session):
        self.db = db

    def list_entries(self, org_id: UUID) -> List[CatalogEntry]:
        stmt = (
            select(CatalogEntry)
            .where(CatalogEntry.org_id == org_id, CatalogEntry.active.is_(True))
            .order_by(CatalogEntry.sku)
        )
        entries = list(self.db.execute(stmt).scalars())
        ensure_same_tenant(org_id, entries, what="catalog entry")
        return entries

    def list_aliases(self, org_id: UUID) -> List[CatalogAlias]:
        stmt = select(CatalogAlias).where(CatalogAlias.org_id == org_id)
        aliases = list(self.db.execute(stmt).scalars())
        ensure_same_tenant(org_id, aliases, what="catalog alias")
        return aliases

    def get_entry(self, org_id: UUID, entry_id: UUID) -> Optional[CatalogEntry]:
        """Fetch one entry by id.

        The lookup is by primary key only, so an entry owned by another
        tenant is found and rejected rather than silently reported missing.

        Raises:
            TenantIsolationError: If the entry belongs to another tenant
        """
        entry = self.db.get(CatalogEntry, entry_id)
        if entry is None:
            return None
        ensure_same_tenant(org_id, [entry], what="catalog entry")
        return entry

    def get_active_entry(self, org_id: UUID, entry_id: UUID) -> CatalogEntry:
        """Fetch an entry that can be approved as a match.

        Raises:
            InputError: If the entry does not exist or is inactive
            TenantIsolationError: If the entry belongs to another tenant
        """
        entry = self.get_entry(org_id, entry_id)
        if entry is None or not entry.active:
            raise InputError(f"Catalog entry {entry_id} does not exist or is inactive")
        return entry

    def register_alias(
        self,
        org_id: UUID,
        entry_id: UUID,
        alias_text: str,
        source: str = "MANUAL",
        created_by: Optional[UUID] = None,
    ) -> CatalogAlias:
        """Attach an alias to a catalog entry, reusing an existing identical one.

        Args:
            org_id: Tenant owning the entry
            entry_id: Catalog entry the alias points to
            alias_text: Raw alias text
            source: MANUAL or LEARNED
            created_by: User registering the alias

        Returns:
            The new or existing CatalogAlias

        Raises:
            InputError: If the alias normalizes to empty text or the entry is unknown
            TenantIsolationError: If the entry belongs to another tenant
        """
        alias_norm = normalize_text(alias_text)
        if not alias_norm:
            raise InputError("alias_text is empty after normalization")
        self.get_active_entry(org_id, entry_id)

        existing = self.db.execute(
            select(CatalogAlias).where(
                CatalogAlias.org_id == org_id,
                CatalogAlias.catalog_entry_id == entry_id,
                CatalogAlias.alias_norm == alias_norm,
            )
        ).scalar_one_or_none()
        if existing is not None:
            return existing

        alias = CatalogAlias(
            org_id=org_id,
            catalog_entry_id=entry_id,
            alias_text=alias_text,
            alias_norm=alias_norm,
            source=source,
            created_by=created_by,
        )
        self.db.add(alias)
        self.db.flush()

        logger.info(
            f"Registered {source} alias '{alias_norm}'",
            extra={"org_id": str(org_id), "catalog_entry_id": str(entry_id)},
        )
        return alias

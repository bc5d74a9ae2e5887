"""Alias resolution: exact normalized alias hits for a query."""

import logging
from collections import defaultdict
from typing import Dict, Iterable, List, Set
from uuid import UUID

from ..tenancy import ensure_same_tenant
from .normalizer import normalize_text

logger = logging.getLogger(__name__)

# Fixed signal for an exact alias hit. Kept below 1.0 so an identical
# name/SKU match can still outrank an alias on ties.
EXACT_ALIAS_SCORE = 0.99


class AliasResolver:
    """Looks up catalog entries whose alias equals the normalized query.

    Entries without a matching alias are absent from the result, never
    scored zero.
    """

    def __init__(self, aliases: Iterable):
        self._aliases: List = list(aliases)
        self._index: Dict[str, Set[UUID]] = defaultdict(set)
        self._indexed_org = None

    def _build_index(self, org_id: UUID) -> None:
        ensure_same_tenant(org_id, self._aliases, what="catalog alias")
        self._index.clear()
        for alias in self._aliases:
            alias_norm = normalize_text(alias.alias_norm or alias.alias_text)
            if alias_norm:
                self._index[alias_norm].add(alias.catalog_entry_id)
        self._indexed_org = org_id

    def resolve(self, org_id: UUID, normalized_query: str) -> Dict[UUID, float]:
        """Return {catalog_entry_id: EXACT_ALIAS_SCORE} for exact alias hits.

        Args:
            org_id: Tenant performing the lookup
            normalized_query: Output of normalize_text

        Returns:
            Dict mapping entry id to alias score; empty when nothing matches

        Raises:
            TenantIsolationError: If any alias belongs to another tenant
        """
        if self._indexed_org != org_id:
            self._build_index(org_id)

        if not self._aliases:
            logger.debug("Alias table empty, alias signal absent", extra={"org_id": str(org_id)})
            return {}
        if not normalized_query:
            return {}

        return {entry_id: EXACT_ALIAS_SCORE for entry_id in self._index.get(normalized_query, ())}

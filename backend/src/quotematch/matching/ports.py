"""Matching ports and value types.

Candidates and results are transient dataclasses; only the decision
snapshot in MatchDecision.features_json is ever persisted.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, List, Optional
from uuid import UUID

from ..errors import (
    InputError,
    LedgerError,
    MatcherError,
    StateTransitionError,
    TenantIsolationError,
)

if TYPE_CHECKING:
    from ..models import CatalogAlias, CatalogEntry


@dataclass
class SignalScores:
    """Component similarity scores for one candidate.

    None means the signal is absent for this candidate (no alias, no
    embedding) and is excluded from the weighted combination. It never
    counts as zero.

    Attributes:
        lexical: Trigram similarity, max over normalized name and SKU
        fuzzy: Normalized Levenshtein similarity, max over name and SKU
        alias: Exact alias match score
        semantic: Rescaled embedding cosine similarity
    """
    lexical: Optional[float] = None
    fuzzy: Optional[float] = None
    alias: Optional[float] = None
    semantic: Optional[float] = None

    def present(self) -> Dict[str, float]:
        """Return the signals that carry a value, keyed by signal name."""
        return {
            name: value
            for name, value in (
                ("lexical", self.lexical),
                ("fuzzy", self.fuzzy),
                ("alias", self.alias),
                ("semantic", self.semantic),
            )
            if value is not None
        }

    def to_features(self) -> dict:
        return {
            "S_lex": self.lexical,
            "S_fuzzy": self.fuzzy,
            "S_alias": self.alias,
            "S_sem": self.semantic,
        }


@dataclass
class MatchCandidate:
    """Single catalog candidate with its scores.

    Attributes:
        catalog_entry_id: Catalog entry UUID
        sku: Catalog SKU
        name: Catalog entry name for display
        scores: Component signals
        learned_adjustment: Delta from tenant review history
        final_score: Combined confidence (0.0-1.0), set by the ranker
        method: Dominant signal (alias, lexical, fuzzy, semantic)
    """
    catalog_entry_id: UUID
    sku: str
    name: str
    scores: SignalScores = field(default_factory=SignalScores)
    learned_adjustment: float = 0.0
    final_score: float = 0.0
    method: str = "lexical"

    @property
    def features(self) -> dict:
        features = self.scores.to_features()
        features["learned_adjustment"] = self.learned_adjustment
        features["final_score"] = self.final_score
        features["method"] = self.method
        return features


@dataclass
class MatchResult:
    """Result of matching one line item.

    Attributes:
        line_item_id: Line item the result belongs to
        status: SUGGESTED when the top candidate is confident and clearly
            ahead of the runner-up, UNMATCHED otherwise
        catalog_entry_id: Top candidate entry (None if no candidates)
        sku: Top candidate SKU (None if no candidates)
        confidence: Top candidate final score (0.0 if no candidates)
        method: Top candidate dominant signal (None if no candidates)
        candidates: Ranked candidates
    """
    line_item_id: UUID
    status: str  # SUGGESTED, UNMATCHED
    catalog_entry_id: Optional[UUID]
    sku: Optional[str]
    confidence: float
    method: Optional[str]
    candidates: List[MatchCandidate]


@dataclass
class Decision:
    """Reviewer outcome for a line item.

    Use Decision.approve(entry_id) or Decision.reject().
    """
    approved: bool
    catalog_entry_id: Optional[UUID] = None
    quality: str = "good"
    learn_alias: bool = False

    @classmethod
    def approve(cls, catalog_entry_id: UUID, quality: str = "good", learn_alias: bool = False) -> "Decision":
        if catalog_entry_id is None:
            raise InputError("approve requires a catalog_entry_id")
        return cls(approved=True, catalog_entry_id=catalog_entry_id, quality=quality, learn_alias=learn_alias)

    @classmethod
    def reject(cls) -> "Decision":
        return cls(approved=False)


class CatalogProviderPort(ABC):
    """Read access to one tenant's catalog.

    Implementations must only return rows owned by the requested org_id.
    Callers still verify ownership of every row they receive.
    """

    @abstractmethod
    def list_entries(self, org_id: UUID) -> List["CatalogEntry"]:
        """Return all active catalog entries of the tenant."""
        pass

    @abstractmethod
    def list_aliases(self, org_id: UUID) -> List["CatalogAlias"]:
        """Return all aliases of the tenant's catalog."""
        pass

    @abstractmethod
    def get_entry(self, org_id: UUID, entry_id: UUID) -> Optional["CatalogEntry"]:
        """Return one catalog entry or None if it does not exist.

        Raises:
            TenantIsolationError: If the entry belongs to another tenant
        """
        pass


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
]

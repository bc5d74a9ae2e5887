"""Pydantic schemas for matching endpoints."""

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class MatchRequest(BaseModel):
    """Free-text match request.

    limit/threshold are range-checked by the service so that out-of-range
    values surface as the same InputError the Python API raises.
    """
    query_text: Optional[str] = None
    limit: Optional[int] = None
    threshold: Optional[float] = None


class SignalScoresSchema(BaseModel):
    """Component signals; null means the signal was absent."""
    lexical: Optional[float] = None
    fuzzy: Optional[float] = None
    alias: Optional[float] = None
    semantic: Optional[float] = None


class MatchCandidateSchema(BaseModel):
    """Ranked match candidate."""
    catalog_entry_id: UUID
    sku: str
    name: str
    final_score: float = Field(ge=0.0, le=1.0)
    learned_adjustment: float
    method: str
    scores: SignalScoresSchema

    @classmethod
    def from_candidate(cls, candidate) -> "MatchCandidateSchema":
        return cls(
            catalog_entry_id=candidate.catalog_entry_id,
            sku=candidate.sku,
            name=candidate.name,
            final_score=candidate.final_score,
            learned_adjustment=candidate.learned_adjustment,
            method=candidate.method,
            scores=SignalScoresSchema(
                lexical=candidate.scores.lexical,
                fuzzy=candidate.scores.fuzzy,
                alias=candidate.scores.alias,
                semantic=candidate.scores.semantic,
            ),
        )


class MatchListResponse(BaseModel):
    """Ranked candidates for a free-text query."""
    candidates: List[MatchCandidateSchema]


class MatchResultSchema(BaseModel):
    """Result of matching one line item."""
    line_item_id: UUID
    status: str
    catalog_entry_id: Optional[UUID]
    sku: Optional[str]
    confidence: float = Field(ge=0.0, le=1.0)
    method: Optional[str]
    candidates: List[MatchCandidateSchema]


class DecisionRequest(BaseModel):
    """Reviewer decision for a line item."""
    action: Literal["approve", "reject"]
    catalog_entry_id: Optional[UUID] = None
    reviewer_id: Optional[UUID] = None
    query_text: Optional[str] = None
    quality: Literal["excellent", "good", "fair", "poor"] = "good"
    learn_alias: bool = False


class DecisionSchema(BaseModel):
    """Stored match decision."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    org_id: UUID
    line_item_id: UUID
    catalog_entry_id: Optional[UUID]
    status: str
    query_text: Optional[str]
    confidence: Optional[float]
    features_json: Dict[str, Any]
    reviewed_by: Optional[UUID]
    reviewed_at: Optional[datetime]
    revision: int
    created_at: datetime
    updated_at: datetime


class AliasCreateRequest(BaseModel):
    """Manual alias registration."""
    alias_text: str = Field(min_length=1)
    created_by: Optional[UUID] = None


class AliasSchema(BaseModel):
    """Stored catalog alias."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    org_id: UUID
    catalog_entry_id: UUID
    alias_text: str
    alias_norm: str
    source: str
    created_by: Optional[UUID]
    created_at: datetime

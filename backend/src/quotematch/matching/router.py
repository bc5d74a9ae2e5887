"""Matching API endpoints.

The tenant is an explicit path parameter on every route; identity and
authorization are handled upstream of this service.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..config import get_settings
from ..database import get_db
from .ports import Decision
from .schemas import (
    AliasCreateRequest,
    AliasSchema,
    DecisionRequest,
    DecisionSchema,
    MatchCandidateSchema,
    MatchListResponse,
    MatchRequest,
    MatchResultSchema,
)
from .service import MatchingService, build_embedding_provider


router = APIRouter(prefix="/api/v1/orgs/{org_id}", tags=["matching"])


def get_matching_service(db: Session = Depends(get_db)) -> MatchingService:
    """Dependency building a MatchingService for the request session."""
    settings = get_settings()
    return MatchingService(db, embedding_provider=build_embedding_provider(settings), settings=settings)


@router.post("/matches", response_model=MatchListResponse)
def match_text(
    org_id: UUID,
    request: MatchRequest,
    service: MatchingService = Depends(get_matching_service),
):
    """Rank catalog candidates for free text.

    Returns an empty list for text that normalizes to nothing.
    """
    candidates = service.match(org_id, request.query_text, limit=request.limit, threshold=request.threshold)
    return MatchListResponse(candidates=[MatchCandidateSchema.from_candidate(c) for c in candidates])


@router.post("/line-items/{line_item_id}/match", response_model=MatchResultSchema)
def match_line_item(
    org_id: UUID,
    line_item_id: UUID,
    request: MatchRequest,
    service: MatchingService = Depends(get_matching_service),
):
    """Rank candidates for a line item and open its pending decision."""
    result = service.match_line_item(
        org_id, line_item_id, request.query_text, limit=request.limit, threshold=request.threshold
    )
    return MatchResultSchema(
        line_item_id=result.line_item_id,
        status=result.status,
        catalog_entry_id=result.catalog_entry_id,
        sku=result.sku,
        confidence=result.confidence,
        method=result.method,
        candidates=[MatchCandidateSchema.from_candidate(c) for c in result.candidates],
    )


@router.put("/line-items/{line_item_id}/decision", response_model=DecisionSchema)
def record_decision(
    org_id: UUID,
    line_item_id: UUID,
    request: DecisionRequest,
    service: MatchingService = Depends(get_matching_service),
):
    """Approve a catalog entry for a line item, or reject all candidates.

    Repeating the call replaces the previous decision; approve and reject
    may alternate.
    """
    if request.action == "approve":
        decision = Decision.approve(request.catalog_entry_id, quality=request.quality, learn_alias=request.learn_alias)
    else:
        decision = Decision.reject()

    row = service.record_decision(
        org_id, line_item_id, decision, request.reviewer_id, query_text=request.query_text
    )
    return DecisionSchema.model_validate(row)


@router.get("/line-items/{line_item_id}/decision", response_model=DecisionSchema)
def get_decision(
    org_id: UUID,
    line_item_id: UUID,
    service: MatchingService = Depends(get_matching_service),
):
    """Current decision for a line item."""
    row = service.get_decision(org_id, line_item_id)
    if row is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Resource not found",
        )
    return DecisionSchema.model_validate(row)


@router.post("/catalog/{entry_id}/aliases", response_model=AliasSchema, status_code=status.HTTP_201_CREATED)
def create_alias(
    org_id: UUID,
    entry_id: UUID,
    request: AliasCreateRequest,
    service: MatchingService = Depends(get_matching_service),
):
    """Register a manual alias for a catalog entry."""
    alias = service.register_alias(org_id, entry_id, request.alias_text, created_by=request.created_by)
    return AliasSchema.model_validate(alias)

"""Routes for browsing validated opportunities."""

from datetime import datetime
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from linkdrip.api.deps import error_detail, get_context, get_current_user
from linkdrip.app_shell.context import ServiceContext
from linkdrip.components.matching import ExplainMatchInput, run_explain_match
from linkdrip.domain.entities import ContactInfo, DiscoveredOpportunity, SourceType, User

router = APIRouter()

# Statuses an opportunity reaches once it has passed validation.
VISIBLE_STATUSES = [
    "validated",
    "matched",
    "assigned",
    "premium",
    "unlocked",
    "contacted",
    "converted",
]


class OpportunityResponse(BaseModel):
    id: str
    url: str
    domain: str
    source_type: SourceType
    page_title: str | None
    description: str | None
    categories: list[str]
    contact_info: ContactInfo
    domain_authority: int | None
    page_authority: int | None
    spam_score: float | None
    is_premium: bool
    status: str
    discovered_at: datetime
    last_checked: datetime


class OpportunityListResponse(BaseModel):
    items: list[OpportunityResponse]
    total: int


class ExplanationResponse(BaseModel):
    opportunity_id: str
    website_id: str
    score: int
    reasons: list[str]
    metrics: dict[str, Any]


def to_response(opp: DiscoveredOpportunity) -> OpportunityResponse:
    return OpportunityResponse(
        id=str(opp.id),
        url=opp.url,
        domain=opp.domain,
        source_type=opp.source_type,
        page_title=opp.page_title,
        description=opp.description,
        categories=opp.categories,
        contact_info=opp.contact_info,
        domain_authority=opp.domain_authority,
        page_authority=opp.page_authority,
        spam_score=opp.spam_score,
        is_premium=opp.is_premium,
        status=opp.status,
        discovered_at=opp.discovered_at,
        last_checked=opp.last_checked,
    )


@router.get("", response_model=OpportunityListResponse)
def list_opportunities(
    source_type: SourceType | None = None,
    min_da: int | None = Query(default=None, ge=0, le=100),
    premium: bool | None = None,
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    current_user: User = Depends(get_current_user),
    ctx: ServiceContext = Depends(get_context),
) -> OpportunityListResponse:
    """List opportunities that passed validation."""
    items, total = ctx.opportunity_repo.list(
        statuses=VISIBLE_STATUSES,
        source_type=source_type,
        min_domain_authority=min_da,
        premium=premium,
        limit=limit,
        offset=offset,
    )
    return OpportunityListResponse(items=[to_response(o) for o in items], total=total)


@router.get("/{opportunity_id}", response_model=OpportunityResponse)
def get_opportunity(
    opportunity_id: UUID,
    current_user: User = Depends(get_current_user),
    ctx: ServiceContext = Depends(get_context),
) -> OpportunityResponse:
    opp = ctx.opportunity_repo.get_by_id(opportunity_id)
    if opp is None or opp.status not in VISIBLE_STATUSES:
        raise HTTPException(status_code=404, detail="Opportunity not found")
    return to_response(opp)


@router.get("/{opportunity_id}/explain", response_model=ExplanationResponse)
def explain_opportunity(
    opportunity_id: UUID,
    website_id: UUID,
    current_user: User = Depends(get_current_user),
    ctx: ServiceContext = Depends(get_context),
) -> ExplanationResponse:
    """Why an opportunity fits one of the user's websites."""
    if ctx.opportunity_repo.get_by_id(opportunity_id) is None:
        raise HTTPException(status_code=404, detail="Opportunity not found")

    result = run_explain_match(
        ExplainMatchInput(
            opportunity_id=opportunity_id, website_id=website_id, user_id=current_user.id
        ),
        ctx.website_repo,
        ctx.matcher,
    )
    if not result.success or result.explanation is None:
        raise HTTPException(status_code=404, detail=error_detail(result.errors))

    return ExplanationResponse(
        opportunity_id=str(opportunity_id),
        website_id=str(website_id),
        score=result.explanation.score,
        reasons=result.explanation.reasons,
        metrics=result.explanation.metrics,
    )

"""Routes for the user's daily drips."""

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from linkdrip.api.deps import error_detail, get_context, get_current_user
from linkdrip.api.routes.opportunities import OpportunityResponse, to_response
from linkdrip.app_shell.context import ServiceContext
from linkdrip.components.matching import UpdateDripInput, run_update_drip
from linkdrip.domain.entities import DailyDrip, DripStatus, User

router = APIRouter()


class DripResponse(BaseModel):
    id: str
    opportunity_id: str
    website_id: str | None
    drip_date: date
    status: DripStatus
    is_premium: bool
    opportunity: OpportunityResponse | None = None


class DripListResponse(BaseModel):
    items: list[DripResponse]
    total: int
    premium: int


class DripUpdateRequest(BaseModel):
    status: str


class AssignmentResponse(BaseModel):
    count: int
    premium: int


def drip_response(drip: DailyDrip, opportunity: OpportunityResponse | None = None) -> DripResponse:
    return DripResponse(
        id=str(drip.id),
        opportunity_id=str(drip.opportunity_id),
        website_id=str(drip.website_id) if drip.website_id else None,
        drip_date=drip.drip_date,
        status=drip.status,
        is_premium=drip.is_premium,
        opportunity=opportunity,
    )


@router.get("", response_model=DripListResponse)
def list_todays_drips(
    current_user: User = Depends(get_current_user),
    ctx: ServiceContext = Depends(get_context),
) -> DripListResponse:
    """Today's (UTC) drips with their opportunities."""
    drips = ctx.matcher.list_daily_drips(current_user.id)
    items = [
        drip_response(d.drip, to_response(d.opportunity) if d.opportunity else None)
        for d in drips
    ]
    return DripListResponse(
        items=items,
        total=len(items),
        premium=sum(1 for d in drips if d.drip.is_premium),
    )


@router.post("/assign", response_model=AssignmentResponse)
def assign_drips(
    current_user: User = Depends(get_current_user),
    ctx: ServiceContext = Depends(get_context),
) -> AssignmentResponse:
    """Deliver today's drips now. Repeated calls return the same counts."""
    result = ctx.matcher.assign_daily_matches(current_user.id)
    return AssignmentResponse(count=result.count, premium=result.premium)


@router.put("/{drip_id}", response_model=DripResponse)
def update_drip(
    drip_id: UUID,
    data: DripUpdateRequest,
    current_user: User = Depends(get_current_user),
    ctx: ServiceContext = Depends(get_context),
) -> DripResponse:
    result = run_update_drip(
        UpdateDripInput(drip_id=drip_id, user_id=current_user.id, status=data.status),
        ctx.matcher,
    )
    if not result.success or result.drip is None:
        code = 404 if any(e.code == "drip_not_found" for e in result.errors) else 400
        raise HTTPException(status_code=code, detail=error_detail(result.errors))
    return drip_response(result.drip)

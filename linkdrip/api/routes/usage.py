"""Plan usage: drip and splash counters, and spending a splash on demand."""

from dataclasses import asdict
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from linkdrip.api.deps import error_detail, get_context, get_current_user
from linkdrip.api.routes.drips import DripResponse, drip_response
from linkdrip.api.routes.opportunities import to_response
from linkdrip.app_shell.context import ServiceContext
from linkdrip.components.matching import UseSplashInput, run_use_splash
from linkdrip.domain.entities import SplashSource, User

router = APIRouter()

# Error codes that mean "nothing to hand out" rather than a bad request
NOT_FOUND_CODES = {"website_not_found", "no_premium_opportunity"}


class StatsResponse(BaseModel):
    plan: str
    drips_today: int
    premium_today: int
    drips_per_day: int
    splashes_per_month: int
    splashes_used_this_month: int
    splash_credits: int
    splashes_remaining: int
    websites: int
    max_websites: int


class UseSplashRequest(BaseModel):
    website_id: UUID | None = None


class SplashResponse(BaseModel):
    drip: DripResponse
    source: SplashSource
    splashes_remaining: int


@router.get("/stats", response_model=StatsResponse)
def get_stats(
    current_user: User = Depends(get_current_user),
    ctx: ServiceContext = Depends(get_context),
) -> StatsResponse:
    stats = ctx.matcher.usage_stats(current_user.id)
    if stats is None:
        raise HTTPException(status_code=404, detail="User not found")
    return StatsResponse(**asdict(stats))


@router.post("/splashes/use", response_model=SplashResponse)
def use_splash(
    data: UseSplashRequest | None = None,
    current_user: User = Depends(get_current_user),
    ctx: ServiceContext = Depends(get_context),
) -> SplashResponse:
    """Deliver one premium opportunity now, paid from the allowance or purchased credits."""
    website_id = data.website_id if data else None
    result = run_use_splash(
        UseSplashInput(user_id=current_user.id, website_id=website_id), ctx.matcher
    )
    if not result.success or result.splash is None:
        code = 404 if any(e.code in NOT_FOUND_CODES for e in result.errors) else 400
        raise HTTPException(status_code=code, detail=error_detail(result.errors))

    splash = result.splash
    return SplashResponse(
        drip=drip_response(splash.drip, to_response(splash.opportunity)),
        source=splash.source,
        splashes_remaining=splash.splashes_remaining,
    )

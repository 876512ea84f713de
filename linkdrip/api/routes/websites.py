"""Routes for managing the user's own websites."""

from datetime import UTC, datetime
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from linkdrip.api.deps import error_detail, get_context, get_current_user
from linkdrip.app_shell.context import ServiceContext
from linkdrip.components.analyzer import AnalyzeWebsiteInput, run_analyze_website
from linkdrip.components.crawler import format_url
from linkdrip.domain.entities import User, Website, WebsitePreferences

router = APIRouter()


# --- Request/Response Models ---


class WebsiteCreateRequest(BaseModel):
    url: str = Field(min_length=3)
    name: str = Field(min_length=1)
    description: str = ""
    niche: str | None = None
    preferences: WebsitePreferences = Field(default_factory=WebsitePreferences)


class WebsiteUpdateRequest(BaseModel):
    url: str | None = None
    name: str | None = None
    description: str | None = None
    niche: str | None = None
    is_active: bool | None = None
    preferences: WebsitePreferences | None = None


class WebsiteResponse(BaseModel):
    id: str
    url: str
    name: str
    description: str
    niche: str | None
    is_active: bool
    preferences: WebsitePreferences


class WebsiteListResponse(BaseModel):
    items: list[WebsiteResponse]
    total: int


class ProfileResponse(BaseModel):
    website_id: str
    keywords: list[str]
    topics: list[str]
    content_types: list[str]
    domain_authority: int | None
    target_niches: list[str]
    avoid_niches: list[str]
    link_type_preferences: list[str]
    analyzed_at: datetime


def _to_response(website: Website) -> WebsiteResponse:
    return WebsiteResponse(
        id=str(website.id),
        url=website.url,
        name=website.name,
        description=website.description,
        niche=website.niche,
        is_active=website.is_active,
        preferences=website.preferences,
    )


def _owned_website(website_id: UUID, user: User, ctx: ServiceContext) -> Website:
    website = ctx.website_repo.get_by_id(website_id)
    if website is None or website.user_id != user.id:
        raise HTTPException(status_code=404, detail="Website not found")
    return website


# --- Routes ---


@router.get("", response_model=WebsiteListResponse)
def list_websites(
    current_user: User = Depends(get_current_user),
    ctx: ServiceContext = Depends(get_context),
) -> WebsiteListResponse:
    """List the user's websites."""
    websites = ctx.website_repo.list_by_user(current_user.id)
    return WebsiteListResponse(items=[_to_response(w) for w in websites], total=len(websites))


@router.post("", response_model=WebsiteResponse, status_code=201)
def create_website(
    data: WebsiteCreateRequest,
    current_user: User = Depends(get_current_user),
    ctx: ServiceContext = Depends(get_context),
) -> WebsiteResponse:
    """Register a website, within the plan's website limit."""
    limit = ctx.plans.limits_for(current_user.plan).websites
    if len(ctx.website_repo.list_by_user(current_user.id)) >= limit:
        raise HTTPException(
            status_code=400,
            detail=[
                {
                    "code": "website_limit_reached",
                    "message": f"Your plan allows {limit} website(s)",
                    "field": None,
                }
            ],
        )

    website = Website(
        user_id=current_user.id,
        url=format_url(data.url),
        name=data.name,
        description=data.description,
        niche=data.niche,
        preferences=data.preferences,
    )
    ctx.website_repo.save(website)
    return _to_response(website)


@router.get("/{website_id}", response_model=WebsiteResponse)
def get_website(
    website_id: UUID,
    current_user: User = Depends(get_current_user),
    ctx: ServiceContext = Depends(get_context),
) -> WebsiteResponse:
    return _to_response(_owned_website(website_id, current_user, ctx))


@router.put("/{website_id}", response_model=WebsiteResponse)
def update_website(
    website_id: UUID,
    data: WebsiteUpdateRequest,
    current_user: User = Depends(get_current_user),
    ctx: ServiceContext = Depends(get_context),
) -> WebsiteResponse:
    """Update a website; only provided fields change."""
    website = _owned_website(website_id, current_user, ctx)
    updates = data.model_dump(exclude_unset=True)
    if "url" in updates and updates["url"]:
        updates["url"] = format_url(updates["url"])
    if "preferences" in updates:
        updates["preferences"] = data.preferences
    updated = website.model_copy(update={**updates, "updated_at": datetime.now(UTC)})
    ctx.website_repo.save(updated)
    return _to_response(updated)


@router.delete("/{website_id}", status_code=204)
def delete_website(
    website_id: UUID,
    current_user: User = Depends(get_current_user),
    ctx: ServiceContext = Depends(get_context),
) -> None:
    _owned_website(website_id, current_user, ctx)
    ctx.website_repo.delete(website_id)


@router.post("/{website_id}/analyze", response_model=ProfileResponse)
def analyze_website(
    website_id: UUID,
    current_user: User = Depends(get_current_user),
    ctx: ServiceContext = Depends(get_context),
) -> ProfileResponse:
    """Build or refresh the website's matching profile."""
    result = run_analyze_website(
        AnalyzeWebsiteInput(website_id=website_id, user_id=current_user.id),
        ctx.website_repo,
        ctx.analyzer,
    )
    if not result.success or result.profile is None:
        raise HTTPException(status_code=404, detail=error_detail(result.errors))

    profile = result.profile
    return ProfileResponse(
        website_id=str(profile.website_id),
        keywords=profile.keywords,
        topics=profile.topics,
        content_types=profile.content_types,
        domain_authority=profile.domain_authority,
        target_niches=profile.target_niches,
        avoid_niches=profile.avoid_niches,
        link_type_preferences=profile.link_type_preferences,
        analyzed_at=profile.analyzed_at,
    )

from datetime import UTC, date, datetime
from typing import Any, Literal
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

# --- Enums / Literals ---
SourceType = Literal[
    "resource_page",
    "directory",
    "blog",
    "guest_post",
    "competitor_backlink",
    "social_mention",
    "forum",
    "comment_section",
]
DiscoveryStatus = Literal[
    "discovered",
    "analyzed",
    "validated",
    "rejected",
    "matched",
    "assigned",
    "premium",
    "unlocked",
    "contacted",
    "converted",
    "failed",
    "expired",
]
PlanName = Literal["Free Trial", "Starter", "Grow", "Pro"]
DripStatus = Literal["active", "clicked", "saved", "hidden"]
JobStatus = Literal["pending", "in_progress", "completed", "failed"]
SplashSource = Literal["monthly_allowance", "purchased"]
OutreachStatus = Literal["Draft", "Sent", "Awaiting response", "Responded", "Failed"]
ContactMethod = Literal[
    "email", "social_message", "contact_form", "phone_call", "in_person", "other"
]
ContactStatus = Literal[
    "planned",
    "in_progress",
    "sent",
    "delivered",
    "opened",
    "clicked",
    "replied",
    "converted",
    "rejected",
    "bounced",
    "no_response",
    "postponed",
    "cancelled",
]

SOURCE_TYPES: tuple[str, ...] = (
    "resource_page",
    "directory",
    "blog",
    "guest_post",
    "competitor_backlink",
    "social_mention",
    "forum",
    "comment_section",
)


def utcnow() -> datetime:
    return datetime.now(UTC)


# --- Users ---


class User(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    username: str
    email: str
    first_name: str = ""
    last_name: str = ""
    password_hash: str
    plan: PlanName = "Free Trial"
    splash_credits: int = 0
    status: Literal["active", "disabled"] = "active"
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


# --- Websites ---


class WebsitePreferences(BaseModel):
    link_types: list[str] = Field(default_factory=list)
    avoid_niches: list[str] = Field(default_factory=list)
    drip_priorities: list[str] = Field(default_factory=list)
    min_domain_authority: int | None = None
    max_spam_score: float | None = None
    excluded_source_types: list[SourceType] = Field(default_factory=list)


class Website(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    user_id: UUID
    url: str
    name: str
    description: str = ""
    niche: str | None = None
    is_active: bool = True
    preferences: WebsitePreferences = Field(default_factory=WebsitePreferences)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class WebsiteProfile(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    website_id: UUID
    keywords: list[str] = Field(default_factory=list)
    topics: list[str] = Field(default_factory=list)
    content_types: list[str] = Field(default_factory=list)
    domain_authority: int | None = None
    target_niches: list[str] = Field(default_factory=list)
    avoid_niches: list[str] = Field(default_factory=list)
    link_type_preferences: list[str] = Field(default_factory=list)
    analyzed_at: datetime = Field(default_factory=utcnow)
    last_updated: datetime = Field(default_factory=utcnow)


# --- Opportunities ---


class SocialProfile(BaseModel):
    platform: str
    url: str
    username: str | None = None


class ContactInfo(BaseModel):
    email: str | None = None
    emails: list[str] = Field(default_factory=list)
    form: str | None = None
    social: list[SocialProfile] = Field(default_factory=list)
    phones: list[str] = Field(default_factory=list)
    confidence: float = 0.0
    sources: list[str] = Field(default_factory=list)
    last_updated: datetime | None = None

    def all_emails(self) -> list[str]:
        return ([self.email] if self.email else []) + list(self.emails)

    def has_contact_method(self) -> bool:
        return bool(self.email or self.emails or self.form or self.social)


class DiscoveredOpportunity(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    url: str
    domain: str
    source_type: SourceType = "blog"
    page_title: str | None = None
    description: str | None = None
    page_content: str | None = None
    categories: list[str] = Field(default_factory=list)
    contact_info: ContactInfo = Field(default_factory=ContactInfo)
    domain_authority: int | None = None
    page_authority: int | None = None
    spam_score: float | None = None
    is_premium: bool = False
    status: DiscoveryStatus = "discovered"
    status_note: str | None = None
    discovered_at: datetime = Field(default_factory=utcnow)
    last_checked: datetime = Field(default_factory=utcnow)
    raw_data: dict[str, Any] = Field(default_factory=dict)
    validation_data: dict[str, Any] = Field(default_factory=dict)


class OpportunityMatch(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    website_id: UUID
    user_id: UUID
    opportunity_id: UUID
    match_score: int
    match_reasons: list[str] = Field(default_factory=list)
    assigned_at: datetime = Field(default_factory=utcnow)
    status: str = "pending"
    user_dismissed: bool = False
    user_saved: bool = False
    is_premium: bool = False


class DailyDrip(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    user_id: UUID
    opportunity_id: UUID
    website_id: UUID | None = None
    drip_date: date
    status: DripStatus = "active"
    is_premium: bool = False


class SplashUsage(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    user_id: UUID
    website_id: UUID | None = None
    used_at: datetime = Field(default_factory=utcnow)
    count: int = 1
    source: SplashSource = "monthly_allowance"


# --- Crawler ---


class CrawlerJob(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    job_type: str
    target_url: str | None = None
    status: JobStatus = "pending"
    started_at: datetime | None = None
    completed_at: datetime | None = None
    results: dict[str, Any] = Field(default_factory=dict)
    error: str | None = None
    created_at: datetime = Field(default_factory=utcnow)


# --- Outreach ---


class OutreachEmail(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    user_id: UUID
    opportunity_id: UUID | None = None
    subject: str
    body: str
    status: OutreachStatus = "Draft"
    site_name: str | None = None
    contact_email: str | None = None
    contact_role: str | None = None
    domain_authority: int | None = None
    sent_at: datetime | None = None
    response_at: datetime | None = None
    is_follow_up: bool = False
    parent_email_id: UUID | None = None
    message_id: str | None = None
    thread_id: str | None = None
    provider_message_id: str | None = None
    reply_content: str | None = None
    reply_headers: dict[str, str] = Field(default_factory=dict)
    error_message: str | None = None
    created_at: datetime = Field(default_factory=utcnow)


class ContactActivity(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    user_id: UUID
    website_id: UUID | None = None
    opportunity_id: UUID | None = None
    email_id: UUID | None = None
    contact_method: ContactMethod = "email"
    contact_details: str | None = None
    subject: str | None = None
    message: str | None = None
    status: ContactStatus = "planned"
    status_note: str | None = None
    is_follow_up: bool = False
    parent_activity_id: UUID | None = None
    executed_at: datetime | None = None
    responded_at: datetime | None = None
    last_status_change: datetime = Field(default_factory=utcnow)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

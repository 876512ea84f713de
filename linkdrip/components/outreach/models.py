"""
Outreach component - Data models.
"""

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from linkdrip.domain.entities import OutreachEmail
from linkdrip.rules.models import OutreachRules

TEMPLATES = ("guest-post", "resource-mention", "collaboration", "default")

ACTIVITY_STATUSES = (
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
)


# --- Configuration ---


@dataclass(frozen=True)
class OutreachConfig:
    """Outreach configuration from rules."""

    sender_email: str = "outreach@linkdrip.app"
    sender_name: str | None = None
    email_domain: str = "linkdrip.app"
    platform_name: str = "LinkDrip"

    @classmethod
    def from_rules(cls, rules: OutreachRules) -> OutreachConfig:
        return cls(
            sender_email=rules.sender_email,
            sender_name=rules.sender_name,
            email_domain=rules.email_domain,
            platform_name=rules.platform_name,
        )

    @property
    def header_prefix(self) -> str:
        return f"X-{self.platform_name}"


DEFAULT_CONFIG = OutreachConfig()


# --- Validation Errors ---


@dataclass(frozen=True)
class OutreachValidationError:
    """Outreach validation error."""

    code: str
    message: str
    field: str | None = None


# --- Drafts and results ---


@dataclass(frozen=True)
class SenderProfile:
    """Who the pitch is from. Missing parts stay as placeholders for the user to fill."""

    name: str | None = None
    website: str | None = None


@dataclass(frozen=True)
class EmailDraft:
    subject: str
    body: str


@dataclass(frozen=True)
class IncomingResult:
    """Outcome of matching an inbound email to a sent one."""

    processed: bool
    reason: str | None = None
    email_id: UUID | None = None


# --- Input Models ---


@dataclass(frozen=True)
class GenerateEmailInput:
    opportunity_id: UUID
    template: str = "default"
    sender: SenderProfile = SenderProfile()
    contact_name: str | None = None


@dataclass(frozen=True)
class SendEmailInput:
    user_id: UUID
    opportunity_id: UUID
    subject: str
    body: str
    to: str | None = None


@dataclass(frozen=True)
class FollowUpInput:
    email_id: UUID
    user_id: UUID


# --- Output Models ---


@dataclass(frozen=True)
class GenerateEmailOutput:
    draft: EmailDraft | None
    errors: tuple[OutreachValidationError, ...]
    success: bool


@dataclass(frozen=True)
class SendEmailOutput:
    email: OutreachEmail | None
    errors: tuple[OutreachValidationError, ...]
    success: bool

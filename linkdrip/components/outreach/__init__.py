"""
Outreach component - Pitch emails, reply tracking and follow-ups.
"""

from ._impl import OutreachService, follow_up_body, generate_email, strip_html, to_html
from .component import run_create_follow_up, run_generate_email, run_send_email
from .models import (
    ACTIVITY_STATUSES,
    DEFAULT_CONFIG,
    TEMPLATES,
    EmailDraft,
    FollowUpInput,
    GenerateEmailInput,
    GenerateEmailOutput,
    IncomingResult,
    OutreachConfig,
    OutreachValidationError,
    SendEmailInput,
    SendEmailOutput,
    SenderProfile,
)
from .ports import (
    ClockPort,
    ContactActivityRepoPort,
    EmailPort,
    OpportunityRepoPort,
    OutreachEmailRepoPort,
)

__all__ = [
    # Entry points
    "run_generate_email",
    "run_send_email",
    "run_create_follow_up",
    # Input models
    "GenerateEmailInput",
    "SendEmailInput",
    "FollowUpInput",
    "SenderProfile",
    # Output models
    "EmailDraft",
    "GenerateEmailOutput",
    "SendEmailOutput",
    "IncomingResult",
    "OutreachValidationError",
    # Config
    "OutreachConfig",
    "DEFAULT_CONFIG",
    "TEMPLATES",
    "ACTIVITY_STATUSES",
    # Ports
    "ClockPort",
    "ContactActivityRepoPort",
    "EmailPort",
    "OpportunityRepoPort",
    "OutreachEmailRepoPort",
    # Service
    "OutreachService",
    "generate_email",
    "follow_up_body",
    "strip_html",
    "to_html",
]

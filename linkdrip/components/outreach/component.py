"""
Outreach component - Draft generation, sending and follow-ups.

Shell Layer - input checks and error conversion.
"""

from __future__ import annotations

from linkdrip.domain.entities import User

from ._impl import OutreachService, generate_email
from .models import (
    TEMPLATES,
    FollowUpInput,
    GenerateEmailInput,
    GenerateEmailOutput,
    OutreachValidationError,
    SendEmailInput,
    SendEmailOutput,
)
from .ports import OpportunityRepoPort


def run_generate_email(
    input_data: GenerateEmailInput,
    opportunity_repo: OpportunityRepoPort,
) -> GenerateEmailOutput:
    """Draft a pitch for an opportunity."""
    errors: list[OutreachValidationError] = []
    if input_data.template not in TEMPLATES:
        errors.append(
            OutreachValidationError(
                code="template_invalid",
                message=f"Template must be one of: {', '.join(TEMPLATES)}",
                field="template",
            )
        )
        return GenerateEmailOutput(draft=None, errors=tuple(errors), success=False)

    opp = opportunity_repo.get_by_id(input_data.opportunity_id)
    if opp is None:
        errors.append(
            OutreachValidationError(
                code="opportunity_not_found",
                message=f"Opportunity with ID {input_data.opportunity_id} not found",
                field="opportunity_id",
            )
        )
        return GenerateEmailOutput(draft=None, errors=tuple(errors), success=False)

    draft = generate_email(opp, input_data.template, input_data.sender, input_data.contact_name)
    return GenerateEmailOutput(draft=draft, errors=(), success=True)


def run_send_email(
    input_data: SendEmailInput,
    user: User,
    service: OutreachService,
) -> SendEmailOutput:
    """Send a pitch on behalf of the signed-in user."""
    if user.id != input_data.user_id:
        return SendEmailOutput(
            email=None,
            errors=(OutreachValidationError("unauthorized", "User mismatch", "user_id"),),
            success=False,
        )
    email, errors = service.send_email(
        user,
        input_data.opportunity_id,
        input_data.subject,
        input_data.body,
        to=input_data.to,
    )
    if errors:
        return SendEmailOutput(email=None, errors=tuple(errors), success=False)
    return SendEmailOutput(email=email, errors=(), success=True)


def run_create_follow_up(
    input_data: FollowUpInput,
    service: OutreachService,
    user: User | None = None,
) -> SendEmailOutput:
    """Follow up on one of the user's sent emails."""
    email, errors = service.create_follow_up(input_data.email_id, input_data.user_id, user)
    if errors:
        return SendEmailOutput(email=None, errors=tuple(errors), success=False)
    return SendEmailOutput(email=email, errors=(), success=True)

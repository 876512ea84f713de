"""Routes for outreach emails and reply tracking."""

from datetime import datetime
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from linkdrip.api.deps import error_detail, get_context, get_current_user
from linkdrip.app_shell.context import ServiceContext
from linkdrip.components.outreach import (
    FollowUpInput,
    GenerateEmailInput,
    SendEmailInput,
    SenderProfile,
    run_create_follow_up,
    run_generate_email,
    run_send_email,
)
from linkdrip.domain.entities import OutreachEmail, OutreachStatus, User

router = APIRouter()


# --- Request/Response Models ---


class GenerateRequest(BaseModel):
    opportunity_id: UUID
    template: str = "default"
    contact_name: str | None = None
    sender_website: str | None = None


class DraftResponse(BaseModel):
    subject: str
    body: str


class SendRequest(BaseModel):
    opportunity_id: UUID
    subject: str
    body: str
    to: str | None = None


class InboundRequest(BaseModel):
    headers: dict[str, str] = Field(default_factory=dict)
    text: str | None = None
    html: str | None = None


class ActivityUpdateRequest(BaseModel):
    status: str
    note: str | None = None


class EmailResponse(BaseModel):
    id: str
    opportunity_id: str | None
    subject: str
    body: str
    status: OutreachStatus
    site_name: str | None
    contact_email: str | None
    sent_at: datetime | None
    response_at: datetime | None
    is_follow_up: bool
    parent_email_id: str | None
    message_id: str | None
    thread_id: str | None
    reply_content: str | None
    error_message: str | None
    created_at: datetime


def _email_response(email: OutreachEmail) -> EmailResponse:
    return EmailResponse(
        id=str(email.id),
        opportunity_id=str(email.opportunity_id) if email.opportunity_id else None,
        subject=email.subject,
        body=email.body,
        status=email.status,
        site_name=email.site_name,
        contact_email=email.contact_email,
        sent_at=email.sent_at,
        response_at=email.response_at,
        is_follow_up=email.is_follow_up,
        parent_email_id=str(email.parent_email_id) if email.parent_email_id else None,
        message_id=email.message_id,
        thread_id=email.thread_id,
        reply_content=email.reply_content,
        error_message=email.error_message,
        created_at=email.created_at,
    )


def _status_for(errors: tuple) -> int:
    codes = {e.code for e in errors}
    if "unauthorized" in codes:
        return 403
    if codes & {"opportunity_not_found", "email_not_found", "activity_not_found"}:
        return 404
    return 400


# --- Routes ---


@router.post("/generate", response_model=DraftResponse)
def generate(
    data: GenerateRequest,
    current_user: User = Depends(get_current_user),
    ctx: ServiceContext = Depends(get_context),
) -> DraftResponse:
    """Draft a pitch for an opportunity from a template."""
    name = " ".join(p for p in (current_user.first_name, current_user.last_name) if p)
    result = run_generate_email(
        GenerateEmailInput(
            opportunity_id=data.opportunity_id,
            template=data.template,
            sender=SenderProfile(name=name or None, website=data.sender_website),
            contact_name=data.contact_name,
        ),
        ctx.opportunity_repo,
    )
    if not result.success or result.draft is None:
        raise HTTPException(status_code=_status_for(result.errors), detail=error_detail(result.errors))
    return DraftResponse(subject=result.draft.subject, body=result.draft.body)


@router.post("/send", response_model=EmailResponse, status_code=201)
def send(
    data: SendRequest,
    current_user: User = Depends(get_current_user),
    ctx: ServiceContext = Depends(get_context),
) -> EmailResponse:
    result = run_send_email(
        SendEmailInput(
            user_id=current_user.id,
            opportunity_id=data.opportunity_id,
            subject=data.subject,
            body=data.body,
            to=data.to,
        ),
        current_user,
        ctx.outreach,
    )
    if not result.success or result.email is None:
        raise HTTPException(status_code=_status_for(result.errors), detail=error_detail(result.errors))
    return _email_response(result.email)


@router.post("/{email_id}/follow-up", response_model=EmailResponse, status_code=201)
def follow_up(
    email_id: UUID,
    current_user: User = Depends(get_current_user),
    ctx: ServiceContext = Depends(get_context),
) -> EmailResponse:
    result = run_create_follow_up(
        FollowUpInput(email_id=email_id, user_id=current_user.id), ctx.outreach, current_user
    )
    if not result.success or result.email is None:
        raise HTTPException(status_code=_status_for(result.errors), detail=error_detail(result.errors))
    return _email_response(result.email)


@router.get("/emails", response_model=list[EmailResponse])
def list_emails(
    current_user: User = Depends(get_current_user),
    ctx: ServiceContext = Depends(get_context),
) -> list[EmailResponse]:
    """The user's outreach emails, newest first."""
    return [_email_response(e) for e in ctx.outreach.list_emails(current_user.id)]


@router.put("/activities/{activity_id}")
def update_activity(
    activity_id: UUID,
    data: ActivityUpdateRequest,
    current_user: User = Depends(get_current_user),
    ctx: ServiceContext = Depends(get_context),
) -> dict[str, Any]:
    activity = ctx.activity_repo.get_by_id(activity_id)
    if activity is None or activity.user_id != current_user.id:
        raise HTTPException(status_code=404, detail="Activity not found")

    updated, errors = ctx.outreach.update_activity_status(activity_id, data.status, data.note)
    if errors or updated is None:
        raise HTTPException(status_code=_status_for(tuple(errors)), detail=error_detail(errors))
    return {
        "id": str(updated.id),
        "status": updated.status,
        "status_note": updated.status_note,
        "last_status_change": updated.last_status_change.isoformat(),
    }


@router.post("/inbound")
def inbound(
    data: InboundRequest,
    ctx: ServiceContext = Depends(get_context),
) -> dict[str, Any]:
    """Reply webhook for the mail provider. Unauthenticated."""
    result = ctx.outreach.process_incoming_email(data.headers, data.text, data.html)
    return {
        "processed": result.processed,
        "reason": result.reason,
        "email_id": str(result.email_id) if result.email_id else None,
    }

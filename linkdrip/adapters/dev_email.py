"""
Dev email adapter.

Records outreach emails in memory and logs them instead of delivering.
Every send comes back SKIPPED, which OutreachService treats as delivered,
so local runs exercise the whole send, track and reply flow.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import uuid4

from linkdrip.core.ports.email import EmailMessage, EmailResult

logger = logging.getLogger(__name__)


@dataclass
class SentEmail:
    id: str
    recipient: str
    subject: str
    body_html: str
    body_text: str
    sender: str | None
    in_reply_to: str | None
    headers: dict[str, str]
    logged_at: datetime


@dataclass
class DevEmailAdapter:
    """EmailPort that keeps every message for inspection."""

    sent_emails: list[SentEmail] = field(default_factory=list)
    preview_chars: int = 80

    def send(self, message: EmailMessage) -> EmailResult:
        recipient = str(message.recipient)
        record = SentEmail(
            id=f"dev-{uuid4().hex[:12]}",
            recipient=recipient,
            subject=message.subject,
            body_html=message.body_html,
            body_text=message.body_text,
            sender=str(message.sender) if message.sender else None,
            in_reply_to=message.in_reply_to,
            headers=dict(message.headers),
            logged_at=datetime.now(UTC),
        )
        self.sent_emails.append(record)

        preview = (message.body_text or message.body_html)[: self.preview_chars]
        logger.info(
            "Dev email %s to %s: %r (thread=%s) %r",
            record.id,
            recipient,
            message.subject,
            message.in_reply_to or "new",
            preview,
        )
        result = EmailResult.skipped(recipient, reason="Dev mode, email recorded not sent")
        result.message_id = record.id
        return result

    def get_last_email(self) -> SentEmail | None:
        return self.sent_emails[-1] if self.sent_emails else None

    def get_emails_to(self, recipient: str) -> list[SentEmail]:
        return [e for e in self.sent_emails if e.recipient == recipient]

    def clear(self) -> None:
        self.sent_emails.clear()

    @property
    def email_count(self) -> int:
        return len(self.sent_emails)

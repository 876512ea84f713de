"""
Outbound email port.

OutreachService hands every first-contact and follow-up email to an
EmailPort. Adapters must:
- accept an HTML part, a plain-text part, or both
- pass tracking headers through untouched so replies can be correlated
- thread follow-ups onto the parent message via In-Reply-To
- report failures in the result rather than raising

Adapters: DevEmailAdapter (records, never delivers) and SMTPEmailAdapter.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Protocol


class EmailStatus(Enum):
    SENT = "sent"
    FAILED = "failed"
    QUEUED = "queued"  # accepted by a relay for later delivery
    SKIPPED = "skipped"  # recorded by the dev adapter only


@dataclass(frozen=True)
class EmailAddress:
    """Mailbox with an optional display name, e.g. ``"Garden Blog" <editor@gardenblog.com>``."""

    email: str
    name: str | None = None

    def __str__(self) -> str:
        if not self.name:
            return self.email
        quoted = self.name.replace('"', '\\"')
        return f'"{quoted}" <{self.email}>'


@dataclass(frozen=True)
class EmailMessage:
    recipient: EmailAddress
    subject: str
    body_html: str
    body_text: str
    sender: EmailAddress | None = None  # adapter default when None
    reply_to: EmailAddress | None = None
    in_reply_to: str | None = None  # parent Message-ID, without angle brackets
    headers: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.recipient.email:
            raise ValueError("Recipient email is required")
        if not self.subject:
            raise ValueError("Subject is required")
        if not (self.body_html or self.body_text):
            raise ValueError("Email body is empty")


@dataclass
class EmailResult:
    status: EmailStatus
    recipient: str = ""
    message_id: str | None = None
    error: str | None = None
    sent_at: datetime | None = None

    @property
    def delivered(self) -> bool:
        """QUEUED and SKIPPED count as delivered; SKIPPED keeps dev runs on the happy path."""
        return self.status != EmailStatus.FAILED

    @classmethod
    def success(cls, recipient: str, message_id: str | None = None) -> EmailResult:
        return cls(EmailStatus.SENT, recipient, message_id, sent_at=datetime.now(UTC))

    @classmethod
    def skipped(cls, recipient: str, reason: str = "Dev mode") -> EmailResult:
        return cls(EmailStatus.SKIPPED, recipient, error=reason)

    @classmethod
    def failed(cls, recipient: str, error: str) -> EmailResult:
        return cls(EmailStatus.FAILED, recipient, error=error)


class EmailPort(Protocol):
    def send(self, message: EmailMessage) -> EmailResult:
        """Deliver one message. Never raises; failures come back as FAILED."""
        ...

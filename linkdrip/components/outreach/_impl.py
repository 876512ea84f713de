"""
OutreachService - Pitch emails, reply tracking and follow-ups.

Every sent email carries tracking headers with a message id of the form
`<email_id>-<8 hex>@<email_domain>`. A reply that echoes the header (or
references the message id) is matched back to the original email.

Key behaviors:
- Sending never raises on provider failure; the email is marked Failed
- Each send records an email contact activity (sent or bounced)
- A delivered email moves its opportunity to `contacted`
- Only the owner of an email can follow up on it
"""

from __future__ import annotations

import html as html_lib
import logging
import re
from uuid import UUID, uuid4

from bs4 import BeautifulSoup

from linkdrip.core.ports.email import EmailAddress, EmailMessage, EmailPort, EmailResult
from linkdrip.domain.entities import (
    ContactActivity,
    DiscoveredOpportunity,
    OutreachEmail,
    User,
)

from .models import (
    ACTIVITY_STATUSES,
    DEFAULT_CONFIG,
    EmailDraft,
    IncomingResult,
    OutreachConfig,
    OutreachValidationError,
    SenderProfile,
)
from .ports import (
    ClockPort,
    ContactActivityRepoPort,
    OpportunityRepoPort,
    OutreachEmailRepoPort,
)

logger = logging.getLogger(__name__)

_TAG_RE = re.compile(r"<[a-zA-Z/][^>]*>")
_MESSAGE_ID_RE = re.compile(r"<?([^<>\s]+@[^<>\s]+)>?")


# --- Pure Functions ---


def site_name(opportunity: DiscoveredOpportunity) -> str:
    return opportunity.page_title or opportunity.domain or "your website"


def niche_label(opportunity: DiscoveredOpportunity) -> str:
    if opportunity.categories:
        return opportunity.categories[0]
    return opportunity.source_type.replace("_", " ")


def generate_email(
    opportunity: DiscoveredOpportunity,
    template: str,
    sender: SenderProfile | None = None,
    contact_name: str | None = None,
) -> EmailDraft:
    """Build a pitch for the opportunity from one of the stock templates.

    Unknown template names fall back to a general introduction.
    """
    sender = sender or SenderProfile()
    name = sender.name or "[Your Name]"
    website = sender.website or "[Your Website]"
    site = site_name(opportunity)
    niche = niche_label(opportunity)
    greeting = f"Hi {contact_name or 'there'},"

    if template == "guest-post":
        subject = f"Guest post opportunity for {site}"
        body = f"""{greeting}

I'm {name} from {website}, and I've been reading {site} for a while now. Your coverage of {niche} is consistently useful.

I'd love to contribute a guest article for your readers. Based on what you publish, I think they would get a lot out of a piece titled:

"7 {niche} strategies that actually moved the needle for us"

It would be a practical, data-backed write-up with concrete steps your audience can apply straight away. I'm happy to adjust the topic or angle to fit your editorial guidelines.

Would that be a good fit?

Best regards,
{name}
{website}"""
    elif template == "resource-mention":
        subject = f"Resource for your {niche} page on {site}"
        body = f"""{greeting}

I recently came across your {niche} resources on {site} and found them genuinely helpful.

We have put together a resource that complements your list well, and I thought it could be useful to your readers as well: [Resource URL]

If you think it fits, a mention or link on your page would be much appreciated. Either way, thanks for the great content.

Best regards,
{name}
{website}"""
    elif template == "collaboration":
        subject = f"Collaboration opportunity with {site}"
        body = f"""{greeting}

My name is {name} from {website}, a site focused on {niche}. I've been following {site} and really appreciate your expertise in the field.

We serve similar audiences with complementary content, and I think there is room to work together. A few ideas:
- Co-creating content that draws on both our strengths
- Cross-promotion to our respective audiences
- A joint webinar or workshop

Would you be open to a short call to explore this?

Best regards,
{name}
{website}"""
    else:
        subject = f"Reaching out from {website} about {niche}"
        body = f"""{greeting}

I'm {name} from {website}. I came across {site} while researching {niche} resources and was impressed with your content.

I'd love to talk about how we might work together. Would you be interested in discussing this further?

Thank you for your time.

Best regards,
{name}
{website}"""

    return EmailDraft(subject=subject, body=body)


def follow_up_body(original: OutreachEmail) -> str:
    greeting = f"Hi {original.contact_role or 'there'},"
    site = original.site_name or "your website"
    if "guest post" in original.subject.lower():
        about = "contributing a guest post"
        nudge = (
            "I wanted to make sure you received my pitch for an article I believe "
            "would resonate with your audience."
        )
    else:
        about = "a potential collaboration"
        nudge = "I wanted to check whether you had a chance to consider my previous message."

    return f"""{greeting}

I'm following up on my previous email about {about}.

{nudge}

I'm still very interested in working with {site} and happy to provide any additional information.

Best regards

-------- Original Message --------
{original.body}"""


def strip_html(body: str) -> str:
    """Plain-text rendition of an HTML body. Plain text passes through unchanged."""
    if not _TAG_RE.search(body):
        return html_lib.unescape(body)
    soup = BeautifulSoup(body, "html.parser")
    for br in soup.find_all("br"):
        br.replace_with("\n")
    for block in soup.find_all(["p", "div", "li"]):
        block.append("\n")
    text = soup.get_text()
    return "\n".join(line.strip() for line in text.splitlines()).strip()


def to_html(body: str) -> str:
    """HTML rendition of a body. Bodies that already contain markup are left alone."""
    if _TAG_RE.search(body):
        return body
    paragraphs = [p for p in body.split("\n\n") if p.strip()]
    return "".join(
        "<p>" + html_lib.escape(p).replace("\n", "<br>") + "</p>" for p in paragraphs
    )


def header_lookup(headers: dict[str, str], name: str) -> str | None:
    wanted = name.lower()
    for key, value in headers.items():
        if key.lower() == wanted:
            return value
    return None


def referenced_message_ids(headers: dict[str, str]) -> list[str]:
    """Message ids named by In-Reply-To and References, most recent first."""
    found: list[str] = []
    in_reply_to = header_lookup(headers, "In-Reply-To")
    if in_reply_to:
        found.extend(_MESSAGE_ID_RE.findall(in_reply_to))
    references = header_lookup(headers, "References")
    if references:
        found.extend(reversed(_MESSAGE_ID_RE.findall(references)))
    return found


# --- Service ---


class OutreachService:
    def __init__(
        self,
        email_repo: OutreachEmailRepoPort,
        activity_repo: ContactActivityRepoPort,
        opportunity_repo: OpportunityRepoPort,
        email_port: EmailPort,
        clock: ClockPort,
        config: OutreachConfig = DEFAULT_CONFIG,
    ) -> None:
        self._emails = email_repo
        self._activities = activity_repo
        self._opportunities = opportunity_repo
        self._email_port = email_port
        self._clock = clock
        self._config = config

    # --- Tracking ---

    def _message_id(self, email_id: UUID) -> str:
        return f"{email_id}-{uuid4().hex[:8]}@{self._config.email_domain}"

    def _tracking_headers(self, email: OutreachEmail) -> dict[str, str]:
        prefix = self._config.header_prefix
        return {
            f"{prefix}-Message-ID": email.message_id or "",
            f"{prefix}-Thread-ID": email.thread_id or "",
            f"{prefix}-User-ID": str(email.user_id),
            f"{prefix}-Opportunity-ID": str(email.opportunity_id or ""),
            f"{prefix}-Email-ID": str(email.id),
        }

    def _sender(self, user: User | None) -> EmailAddress:
        name = None
        if user is not None:
            name = " ".join(p for p in (user.first_name, user.last_name) if p) or None
        return EmailAddress(
            self._config.sender_email,
            name or self._config.sender_name or self._config.platform_name,
        )

    # --- Sending ---

    def _deliver(self, email: OutreachEmail, user: User | None) -> OutreachEmail:
        """Send a saved draft and record the outcome."""
        now = self._clock.now_utc()
        email.message_id = self._message_id(email.id)
        email.thread_id = email.thread_id or uuid4().hex[:12]
        sender = self._sender(user)
        in_reply_to = None
        if email.parent_email_id is not None:
            parent = self._emails.get_by_id(email.parent_email_id)
            in_reply_to = parent.message_id if parent else None

        message = EmailMessage(
            recipient=EmailAddress(email.contact_email or ""),
            subject=email.subject,
            body_html=to_html(email.body),
            body_text=strip_html(email.body),
            sender=sender,
            reply_to=sender,
            in_reply_to=in_reply_to,
            headers=self._tracking_headers(email),
        )
        result: EmailResult = self._email_port.send(message)

        if result.delivered:
            email.status = "Awaiting response"
            email.sent_at = now
            email.provider_message_id = result.message_id
            email.error_message = None
            logger.info("Outreach email %s sent to %s", email.id, email.contact_email)
        else:
            email.status = "Failed"
            email.error_message = result.error
            logger.warning(
                "Outreach email %s to %s failed: %s", email.id, email.contact_email, result.error
            )
        self._emails.save(email)

        self._activities.save(
            ContactActivity(
                user_id=email.user_id,
                opportunity_id=email.opportunity_id,
                email_id=email.id,
                contact_method="email",
                contact_details=email.contact_email,
                subject=email.subject,
                message=email.body,
                status="sent" if result.delivered else "bounced",
                status_note=None if result.delivered else result.error,
                is_follow_up=email.is_follow_up,
                executed_at=now,
                last_status_change=now,
                created_at=now,
                updated_at=now,
            )
        )

        if result.delivered and email.opportunity_id is not None:
            opp = self._opportunities.get_by_id(email.opportunity_id)
            if opp is not None and opp.status != "contacted":
                opp.status = "contacted"
                opp.last_checked = now
                self._opportunities.save(opp)

        return email

    def send_email(
        self,
        user: User,
        opportunity_id: UUID,
        subject: str,
        body: str,
        to: str | None = None,
    ) -> tuple[OutreachEmail | None, list[OutreachValidationError]]:
        """Send a pitch to an opportunity's contact (or an explicit address)."""
        errors: list[OutreachValidationError] = []
        if not subject.strip():
            errors.append(
                OutreachValidationError("subject_required", "Subject is required", "subject")
            )
        elif "\r" in subject or "\n" in subject:
            errors.append(
                OutreachValidationError(
                    "subject_invalid", "Subject must be a single line", "subject"
                )
            )
        if not body.strip():
            errors.append(OutreachValidationError("body_required", "Body is required", "body"))
        if errors:
            return None, errors

        opp = self._opportunities.get_by_id(opportunity_id)
        if opp is None:
            return None, [
                OutreachValidationError(
                    "opportunity_not_found",
                    f"Opportunity with ID {opportunity_id} not found",
                    "opportunity_id",
                )
            ]

        recipient = to or next(iter(opp.contact_info.all_emails()), None)
        if not recipient:
            return None, [
                OutreachValidationError(
                    "no_contact_email", "Opportunity has no contact email", "to"
                )
            ]

        email = OutreachEmail(
            user_id=user.id,
            opportunity_id=opp.id,
            subject=subject,
            body=body,
            status="Draft",
            site_name=site_name(opp),
            contact_email=recipient,
            domain_authority=opp.domain_authority,
            created_at=self._clock.now_utc(),
        )
        self._emails.save(email)
        return self._deliver(email, user), []

    def create_follow_up(
        self, email_id: UUID, user_id: UUID, user: User | None = None
    ) -> tuple[OutreachEmail | None, list[OutreachValidationError]]:
        original = self._emails.get_by_id(email_id)
        if original is None:
            return None, [
                OutreachValidationError(
                    "email_not_found", f"Email with ID {email_id} not found", "email_id"
                )
            ]
        if original.user_id != user_id:
            return None, [
                OutreachValidationError(
                    "unauthorized", "Unauthorized to follow up on this email", "email_id"
                )
            ]
        if not original.contact_email:
            return None, [
                OutreachValidationError(
                    "no_contact_email", "Original email has no recipient", "email_id"
                )
            ]

        follow_up = OutreachEmail(
            user_id=original.user_id,
            opportunity_id=original.opportunity_id,
            subject=f"Following up: {original.subject}",
            body=follow_up_body(original),
            status="Draft",
            site_name=original.site_name,
            contact_email=original.contact_email,
            contact_role=original.contact_role,
            domain_authority=original.domain_authority,
            is_follow_up=True,
            parent_email_id=original.id,
            thread_id=original.thread_id,
            created_at=self._clock.now_utc(),
        )
        self._emails.save(follow_up)
        return self._deliver(follow_up, user), []

    # --- Replies ---

    def process_incoming_email(
        self,
        headers: dict[str, str],
        text: str | None = None,
        html: str | None = None,
    ) -> IncomingResult:
        """Attach an inbound reply to the email it answers."""
        tracked = header_lookup(headers, f"{self._config.header_prefix}-Message-ID")
        candidates = [tracked] if tracked else referenced_message_ids(headers)
        if not candidates:
            return IncomingResult(processed=False, reason="No tracking ID found")

        original = None
        for message_id in candidates:
            original = self._emails.get_by_message_id(message_id)
            if original is not None:
                break
        if original is None:
            logger.info("Inbound email references unknown message %s", candidates[0])
            return IncomingResult(processed=False, reason="Original email not found")

        now = self._clock.now_utc()
        original.status = "Responded"
        original.response_at = now
        original.reply_content = text or html or ""
        original.reply_headers = dict(headers)
        self._emails.save(original)

        activity = self._activities.get_by_email_id(original.id)
        if activity is not None:
            activity.status = "replied"
            activity.responded_at = now
            activity.last_status_change = now
            activity.updated_at = now
            self._activities.save(activity)

        logger.info("Recorded reply to outreach email %s", original.id)
        return IncomingResult(processed=True, email_id=original.id)

    # --- Queries and updates ---

    def list_emails(self, user_id: UUID) -> list[OutreachEmail]:
        return self._emails.list_by_user(user_id)

    def update_activity_status(
        self, activity_id: UUID, status: str, note: str | None = None
    ) -> tuple[ContactActivity | None, list[OutreachValidationError]]:
        if status not in ACTIVITY_STATUSES:
            return None, [
                OutreachValidationError(
                    "status_invalid", f"Unknown activity status: {status}", "status"
                )
            ]
        activity = self._activities.get_by_id(activity_id)
        if activity is None:
            return None, [
                OutreachValidationError(
                    "activity_not_found",
                    f"Activity with ID {activity_id} not found",
                    "activity_id",
                )
            ]

        now = self._clock.now_utc()
        activity.status = status  # type: ignore[assignment]
        activity.status_note = note
        activity.last_status_change = now
        activity.updated_at = now
        if status == "replied" and activity.responded_at is None:
            activity.responded_at = now
        self._activities.save(activity)
        return activity, []

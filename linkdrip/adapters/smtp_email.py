"""
SMTP Email Adapter.

Sends outreach email through an SMTP relay using the standard library.
Port 465 uses implicit TLS; any other port upgrades with STARTTLS when
`use_tls` is set.
"""

from __future__ import annotations

import logging
import os
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage as MimeMessage
from email.utils import make_msgid

from linkdrip.core.ports.email import EmailAddress, EmailMessage, EmailResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SMTPConfig:
    host: str
    port: int = 587
    username: str | None = None
    password: str | None = None
    use_tls: bool = True
    timeout: float = 30

    @property
    def secure(self) -> bool:
        return self.port == 465

    @classmethod
    def from_env(cls) -> SMTPConfig | None:
        host = os.environ.get("SMTP_HOST")
        if not host:
            return None
        return cls(
            host=host,
            port=int(os.environ.get("SMTP_PORT", "587")),
            username=os.environ.get("SMTP_USER"),
            password=os.environ.get("SMTP_PASSWORD"),
            use_tls=os.environ.get("SMTP_TLS", "true").lower() != "false",
        )


class SMTPEmailAdapter:
    """EmailPort implementation over smtplib."""

    def __init__(self, config: SMTPConfig, default_sender: EmailAddress) -> None:
        self._config = config
        self._default_sender = default_sender

    def _build(self, message: EmailMessage) -> MimeMessage:
        mime = MimeMessage()
        sender = message.sender or self._default_sender
        mime["From"] = str(sender)
        mime["To"] = str(message.recipient)
        mime["Subject"] = message.subject
        mime["Message-ID"] = make_msgid(domain=sender.email.split("@")[-1])
        if message.reply_to:
            mime["Reply-To"] = str(message.reply_to)
        if message.in_reply_to:
            parent = f"<{message.in_reply_to}>"
            mime["In-Reply-To"] = parent
            mime["References"] = parent
        for name, value in message.headers.items():
            mime[name] = value

        mime.set_content(message.body_text or message.body_html)
        if message.body_html:
            mime.add_alternative(message.body_html, subtype="html")
        return mime

    def _connect(self) -> smtplib.SMTP:
        cfg = self._config
        if cfg.secure:
            return smtplib.SMTP_SSL(cfg.host, cfg.port, timeout=cfg.timeout)
        client = smtplib.SMTP(cfg.host, cfg.port, timeout=cfg.timeout)
        if cfg.use_tls:
            try:
                client.starttls()
            except BaseException:
                client.close()
                raise
        return client

    def send(self, message: EmailMessage) -> EmailResult:
        recipient = str(message.recipient)
        try:
            mime = self._build(message)
            with self._connect() as client:
                if self._config.username and self._config.password:
                    client.login(self._config.username, self._config.password)
                client.send_message(mime)
        except (smtplib.SMTPException, OSError, ValueError) as e:
            # ValueError: header injection (CR/LF) rejected by the email package
            logger.warning("SMTP send to %s failed: %s", recipient, e)
            return EmailResult.failed(recipient, str(e))

        logger.info("SMTP email sent to %s (%s)", recipient, mime["Message-ID"])
        return EmailResult.success(recipient, message_id=mime["Message-ID"])

"""
Email service — relays contact submissions via SMTP.

In development (no SMTP configured), messages are logged instead of sent
so you can see what *would* be delivered without a mail server.
"""

from __future__ import annotations

import logging
from email.mime.text import MIMEText
from email.utils import formataddr
from typing import Protocol

import aiosmtplib

from contact_relay.config import Settings
from contact_relay.errors import MailTransportError
from contact_relay.models import ContactSubmission

logger = logging.getLogger(__name__)


class Mailer(Protocol):
    async def send(self, submission: ContactSubmission) -> None:
        """Deliver the submission; raise MailTransportError on failure."""
        ...


def build_body(submission: ContactSubmission) -> str:
    return "\n".join(
        [
            f"Name:    {submission.name}",
            f"Email:   {submission.email}",
            "",
            "Message:",
            submission.message,
        ]
    )


def build_message(submission: ContactSubmission, settings: Settings) -> MIMEText:
    """Compose the plaintext notification for the site owner."""
    msg = MIMEText(build_body(submission), "plain", "utf-8")
    msg["Subject"] = f"Contact form: {submission.name}"
    msg["From"] = formataddr((settings.mail_from_name, settings.mail_from_address))
    msg["To"] = settings.mail_to_address
    msg["Reply-To"] = formataddr((submission.name, submission.email))
    return msg


class SmtpMailer:
    """Sends through an authenticated relay with aiosmtplib."""

    def __init__(self, settings: Settings) -> None:
        self._settings = settings

    async def send(self, submission: ContactSubmission) -> None:
        s = self._settings
        msg = build_message(submission, s)

        # ── Console fallback (dev mode) ───────────────────────────────
        if not s.smtp_enabled():
            logger.info(
                "📧 [DEV] Would send email to %s:\n"
                "  Subject: %s\n"
                "  Reply-To: %s\n%s",
                msg["To"],
                msg["Subject"],
                msg["Reply-To"],
                build_body(submission),
            )
            return

        # ── Real SMTP send ────────────────────────────────────────────
        try:
            await aiosmtplib.send(
                msg,
                hostname=s.mail_host,
                port=s.mail_port,
                username=s.mail_username or None,
                password=s.mail_password or None,
                start_tls=s.mail_use_starttls,
                timeout=s.mail_timeout,
            )
        except (aiosmtplib.SMTPException, OSError) as exc:
            # Full diagnostics stay in the server log only
            logger.exception("Failed to send contact email via %s:%d", s.mail_host, s.mail_port)
            raise MailTransportError() from exc

        logger.info("Contact email relayed to %s", s.mail_to_address)

"""Tests for composing and sending the notification email."""

from unittest.mock import AsyncMock, patch

import aiosmtplib
import pytest

from contact_relay.config import Settings
from contact_relay.errors import MailTransportError
from contact_relay.models import ContactSubmission
from contact_relay.services.email import SmtpMailer, build_body, build_message
from tests.mocks.models import make_settings

SUBMISSION = ContactSubmission(
    name="Ada Lovelace",
    email="ada@example.com",
    message="Line one\nLine two",
)

SMTP_SETTINGS = make_settings(
    mail_enabled="auto",
    mail_host="smtp.example.com",
    mail_port=587,
    mail_username="owner@example.com",
    mail_password="hunter2",
    mail_from_address="noreply@example.com",
    mail_from_name="Contact Form",
    mail_to_address="owner@example.com",
    mail_timeout=15.0,
)


class TestBuildMessage:
    def test_body_layout(self):
        assert build_body(SUBMISSION) == (
            "Name:    Ada Lovelace\n"
            "Email:   ada@example.com\n"
            "\n"
            "Message:\n"
            "Line one\nLine two"
        )

    def test_headers(self):
        msg = build_message(SUBMISSION, SMTP_SETTINGS)
        assert msg["Subject"] == "Contact form: Ada Lovelace"
        assert msg["From"] == "Contact Form <noreply@example.com>"
        assert msg["To"] == "owner@example.com"
        assert msg["Reply-To"] == "Ada Lovelace <ada@example.com>"
        assert msg.get_content_type() == "text/plain"

    def test_body_roundtrips_utf8(self):
        sub = SUBMISSION.model_copy(update={"message": "Grüße ✓"})
        msg = build_message(sub, SMTP_SETTINGS)
        assert "Grüße ✓" in msg.get_payload(decode=True).decode("utf-8")


class TestSmtpMailer:
    @pytest.mark.asyncio
    async def test_sends_via_aiosmtplib(self):
        with patch("contact_relay.services.email.aiosmtplib.send", new=AsyncMock()) as send:
            await SmtpMailer(SMTP_SETTINGS).send(SUBMISSION)

        send.assert_awaited_once()
        kwargs = send.await_args.kwargs
        assert kwargs["hostname"] == "smtp.example.com"
        assert kwargs["port"] == 587
        assert kwargs["username"] == "owner@example.com"
        assert kwargs["password"] == "hunter2"
        assert kwargs["start_tls"] is True
        assert kwargs["timeout"] == 15.0
        msg = send.await_args.args[0]
        assert msg["Reply-To"] == "Ada Lovelace <ada@example.com>"

    @pytest.mark.asyncio
    async def test_smtp_error_becomes_generic_failure(self):
        error = aiosmtplib.SMTPAuthenticationError(535, "5.7.8 Username and Password not accepted")
        with patch("contact_relay.services.email.aiosmtplib.send", new=AsyncMock(side_effect=error)):
            with pytest.raises(MailTransportError) as exc_info:
                await SmtpMailer(SMTP_SETTINGS).send(SUBMISSION)

        assert exc_info.value.status_code == 500
        assert exc_info.value.message == "Failed to send message. Please try again later."
        assert "5.7.8" not in exc_info.value.message
        assert exc_info.value.__cause__ is error

    @pytest.mark.asyncio
    async def test_connection_error_becomes_generic_failure(self):
        with patch(
            "contact_relay.services.email.aiosmtplib.send",
            new=AsyncMock(side_effect=ConnectionRefusedError("refused")),
        ):
            with pytest.raises(MailTransportError):
                await SmtpMailer(SMTP_SETTINGS).send(SUBMISSION)

    @pytest.mark.asyncio
    async def test_dev_mode_logs_instead_of_sending(self, caplog):
        settings = make_settings(mail_enabled="false")
        with patch("contact_relay.services.email.aiosmtplib.send", new=AsyncMock()) as send:
            with caplog.at_level("INFO", logger="contact_relay.services.email"):
                await SmtpMailer(settings).send(SUBMISSION)

        send.assert_not_awaited()
        assert "Would send email" in caplog.text


class TestSmtpEnabled:
    def test_auto_requires_credentials(self):
        assert SMTP_SETTINGS.smtp_enabled() is True
        assert make_settings(mail_enabled="auto", mail_password="").smtp_enabled() is False

    def test_explicit_overrides(self):
        assert make_settings(mail_enabled="true", mail_password="").smtp_enabled() is True
        assert make_settings(mail_enabled="false").smtp_enabled() is False

    def test_default_settings_always_send(self):
        assert Settings().mail_enabled == "true"
        assert Settings(mail_username="", mail_password="").smtp_enabled() is True


class TestUnconfiguredMailer:
    @pytest.mark.asyncio
    async def test_missing_credentials_fail_instead_of_dropping(self):
        settings = Settings(mail_from_address="noreply@example.com")
        error = aiosmtplib.SMTPSenderRefused(530, "5.7.0 Authentication Required", "noreply@example.com")
        with patch(
            "contact_relay.services.email.aiosmtplib.send",
            new=AsyncMock(side_effect=error),
        ) as send:
            with pytest.raises(MailTransportError):
                await SmtpMailer(settings).send(SUBMISSION)

        send.assert_awaited_once()
        assert send.await_args.kwargs["username"] is None
        assert send.await_args.kwargs["password"] is None

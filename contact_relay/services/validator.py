"""
Input validation for contact-form submissions.

Fields are trimmed and checked in a fixed order; the first failure wins
and is reported with a field-specific message.  The name is flattened to
a single line afterwards because it ends up in the Subject and Reply-To
headers of the outgoing mail.
"""

from __future__ import annotations

import re
from collections.abc import Mapping

from email_validator import EmailNotValidError, validate_email

from contact_relay.errors import ValidationError
from contact_relay.models import ContactSubmission

MAX_NAME_LENGTH = 100
MAX_EMAIL_LENGTH = 255
MAX_MESSAGE_LENGTH = 5000

# Form field populated by the Turnstile widget
TOKEN_FIELD = "cf-turnstile-response"

_LINE_BREAKS = re.compile(r"[\r\n]+")


def _field(form: Mapping[str, object], name: str) -> str:
    value = form.get(name)
    return value if isinstance(value, str) else ""


def single_line(value: str) -> str:
    """Collapse each run of CR/LF characters into a single space."""
    return _LINE_BREAKS.sub(" ", value)


def is_valid_email(email: str) -> bool:
    if not email or len(email) > MAX_EMAIL_LENGTH:
        return False
    try:
        validate_email(email, check_deliverability=False)
    except EmailNotValidError:
        return False
    return True


def validate_submission(
    form: Mapping[str, object],
    *,
    require_token: bool,
) -> ContactSubmission:
    """Normalise the raw form and return a submission, or raise ValidationError."""
    name = _field(form, "name").strip()
    email = _field(form, "email").strip()
    message = _field(form, "message").strip()
    token = _field(form, TOKEN_FIELD)

    if not name:
        raise ValidationError("Name is required.")
    if len(name) > MAX_NAME_LENGTH:
        raise ValidationError(f"Name must be {MAX_NAME_LENGTH} characters or fewer.")

    if not email:
        raise ValidationError("Email is required.")
    if not is_valid_email(email):
        raise ValidationError("A valid email address is required.")

    if not message:
        raise ValidationError("Message is required.")
    if len(message) > MAX_MESSAGE_LENGTH:
        raise ValidationError(f"Message must be {MAX_MESSAGE_LENGTH} characters or fewer.")

    if require_token and not token:
        raise ValidationError("Please complete the security check.")

    return ContactSubmission(
        name=single_line(name),
        email=email,
        message=message,
        verification_token=token,
    )

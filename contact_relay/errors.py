"""
Error taxonomy for the contact pipeline.

Every stage raises a subclass of :class:`ContactError`.  The message is
safe to show to the caller; internal diagnostics are chained onto the
exception (``raise ... from exc``) and only ever logged.
"""

from __future__ import annotations


class ContactError(Exception):
    """Terminal failure of a contact submission."""

    status_code: int = 500
    message: str = "Something went wrong. Please try again later."

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


class MethodNotAllowed(ContactError):
    status_code = 405
    message = "Method not allowed."


class ValidationError(ContactError):
    """A submitted field is missing or malformed (message names the field)."""

    status_code = 422


class RateLimited(ContactError):
    status_code = 429
    message = "Too many requests. Please try again later."


class VerificationTransportError(ContactError):
    status_code = 500
    message = "Could not verify security check. Please try again."


class VerificationRejected(ContactError):
    status_code = 422
    message = "Security check failed. Please try again."


class MailTransportError(ContactError):
    status_code = 500
    message = "Failed to send message. Please try again later."

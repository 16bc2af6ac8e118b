"""Pydantic models for the contact relay."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class ContactSubmission(BaseModel):
    """A validated contact-form submission.  Lives for one request only."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., max_length=100, description="Sender display name (single line)")
    email: str = Field(..., max_length=255, description="Sender email address")
    message: str = Field(..., max_length=5000, description="Message body")
    verification_token: str = Field("", description="Turnstile response token")


class OutcomeResponse(BaseModel):
    """Uniform JSON body of every contact endpoint response."""

    success: bool
    error: str | None = None

    def to_body(self) -> dict:
        if self.success:
            return {"success": True}
        return {"success": False, "error": self.error or ""}


class VerificationResult(BaseModel):
    """Reply from the Turnstile siteverify endpoint."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    success: bool = False
    error_codes: list[str] = Field(default_factory=list, alias="error-codes")
    hostname: str | None = None


class HealthResponse(BaseModel):
    status: str
    version: str
    timestamp: datetime

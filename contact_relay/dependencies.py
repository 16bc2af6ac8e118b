from typing import Annotated

from fastapi import Depends, Request

from contact_relay.config import Settings
from contact_relay.services.pipeline import ContactPipeline


# ── App-scoped collaborators ───────────────────────────────────────────────


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_pipeline(request: Request) -> ContactPipeline:
    return request.app.state.pipeline


AppSettings = Annotated[Settings, Depends(get_app_settings)]
Pipeline = Annotated[ContactPipeline, Depends(get_pipeline)]


# ── Caller identity ────────────────────────────────────────────────────────


def get_client_ip(request: Request, settings: AppSettings) -> str | None:
    """Caller's address; the first X-Forwarded-For hop when proxies are trusted."""
    if settings.trust_forwarded_for:
        forwarded = request.headers.get("X-Forwarded-For")
        if forwarded:
            return forwarded.split(",")[0].strip() or None
    return request.client.host if request.client else None


ClientIP = Annotated[str | None, Depends(get_client_ip)]

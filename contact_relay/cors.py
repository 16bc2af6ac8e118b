"""
Request gate: CORS policy and method filtering for the contact endpoint.

Only allow-listed origins get ``Access-Control-Allow-Origin`` echoed back.
When Turnstile is disabled (local testing) any ``http(s)://localhost[:port]``
origin is accepted as well.  Other callers still reach the endpoint; the
browser simply refuses to expose the response cross-origin.
"""

from __future__ import annotations

import re

from contact_relay.config import Settings
from contact_relay.errors import MethodNotAllowed

_LOCALHOST_ORIGIN = re.compile(r"^https?://localhost(:\d+)?$")

ALLOWED_METHODS = "POST, OPTIONS"
ALLOWED_HEADERS = "Content-Type"


def origin_allowed(origin: str | None, settings: Settings) -> bool:
    if not origin:
        return False
    if origin in settings.allowed_origins:
        return True
    return not settings.turnstile_enabled and bool(_LOCALHOST_ORIGIN.match(origin))


def cors_headers(origin: str | None, settings: Settings) -> dict[str, str]:
    """Response headers for a request carrying the given ``Origin``."""
    headers: dict[str, str] = {}
    if origin_allowed(origin, settings):
        headers["Access-Control-Allow-Origin"] = origin
        headers["Vary"] = "Origin"
    headers["Access-Control-Allow-Methods"] = ALLOWED_METHODS
    headers["Access-Control-Allow-Headers"] = ALLOWED_HEADERS
    return headers


def is_preflight(method: str) -> bool:
    return method.upper() == "OPTIONS"


def require_post(method: str) -> None:
    if method.upper() != "POST":
        raise MethodNotAllowed()

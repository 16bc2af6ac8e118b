"""
Client for Cloudflare Turnstile's siteverify endpoint.

Exchanges the widget token for a pass/fail verdict.  Network failures
raise VerificationTransportError; any reply that does not say
``"success": true`` (including a non-JSON body) is a failed check.
"""

from __future__ import annotations

import logging
from typing import Protocol

import httpx
from pydantic import ValidationError as PydanticValidationError

from contact_relay.config import Settings
from contact_relay.errors import VerificationTransportError
from contact_relay.models import VerificationResult

logger = logging.getLogger(__name__)


class HumanVerifier(Protocol):
    async def verify(self, token: str, remote_ip: str | None) -> bool:
        """Return True if the token proves a human; raise on transport errors."""
        ...

    async def close(self) -> None:
        ...


class TurnstileVerifier:
    """Async HTTP client for the Turnstile API.  One instance per app."""

    def __init__(
        self,
        secret_key: str,
        *,
        verify_url: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._secret_key = secret_key
        self._verify_url = verify_url
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    @classmethod
    def from_settings(cls, settings: Settings) -> TurnstileVerifier:
        return cls(
            settings.turnstile_secret_key,
            verify_url=settings.turnstile_verify_url,
            timeout=settings.turnstile_timeout,
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def verify(self, token: str, remote_ip: str | None) -> bool:
        form = {"secret": self._secret_key, "response": token}
        if remote_ip:
            form["remoteip"] = remote_ip

        try:
            resp = await self._client.post(self._verify_url, data=form)
        except httpx.HTTPError as exc:
            logger.error("Turnstile request failed: %r", exc)
            raise VerificationTransportError() from exc

        try:
            result = VerificationResult.model_validate(resp.json())
        except (ValueError, PydanticValidationError):
            logger.warning(
                "Turnstile returned an unreadable reply (HTTP %d)", resp.status_code
            )
            return False

        if not result.success:
            logger.info("Turnstile rejected token: %s", ", ".join(result.error_codes) or "no codes")
        return result.success

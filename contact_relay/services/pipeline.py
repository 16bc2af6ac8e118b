"""
The contact pipeline.

    rate limit → validate → human check → send mail → record

Each stage either returns or raises a ContactError, which ends the
request.  The rate-limit slot is only consumed once the mail went out.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping

from contact_relay.config import Settings
from contact_relay.errors import VerificationRejected
from contact_relay.models import ContactSubmission
from contact_relay.services.email import Mailer
from contact_relay.services.rate_limiter import SlidingWindowRateLimiter
from contact_relay.services.turnstile import HumanVerifier
from contact_relay.services.validator import validate_submission

logger = logging.getLogger(__name__)


class ContactPipeline:
    def __init__(
        self,
        settings: Settings,
        limiter: SlidingWindowRateLimiter,
        verifier: HumanVerifier | None,
        mailer: Mailer,
    ) -> None:
        self._settings = settings
        self._limiter = limiter
        self._verifier = verifier
        self._mailer = mailer

    @property
    def verification_enabled(self) -> bool:
        return self._settings.turnstile_enabled

    async def submit(self, form: Mapping[str, object], client_ip: str | None) -> ContactSubmission:
        window = await self._limiter.check(client_ip)

        submission = validate_submission(form, require_token=self.verification_enabled)

        if self.verification_enabled:
            passed = await self._verifier.verify(submission.verification_token, client_ip)
            if not passed:
                raise VerificationRejected()

        await self._mailer.send(submission)

        await self._limiter.record(window)
        logger.info("Contact submission accepted (%d in window)", window.count)
        return submission

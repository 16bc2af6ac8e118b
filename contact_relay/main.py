"""
Main FastAPI application for the contact relay.

``create_app`` wires settings, the rate-limit store, the Turnstile client
and the mailer into a ContactPipeline held on ``app.state``.  Each
collaborator can be injected, which is how the tests run without network
access.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from contact_relay.config import Settings, configure_logging, get_settings
from contact_relay.cors import cors_headers
from contact_relay.errors import ContactError, MethodNotAllowed
from contact_relay.responses import emit
from contact_relay.routers import contact, health
from contact_relay.routers.health import VERSION
from contact_relay.services.email import Mailer, SmtpMailer
from contact_relay.services.pipeline import ContactPipeline
from contact_relay.services.rate_limiter import SlidingWindowRateLimiter
from contact_relay.services.stores import RateLimitStore, build_store
from contact_relay.services.turnstile import HumanVerifier, TurnstileVerifier

logger = logging.getLogger(__name__)


def create_app(
    settings: Settings | None = None,
    *,
    store: RateLimitStore | None = None,
    verifier: HumanVerifier | None = None,
    mailer: Mailer | None = None,
) -> FastAPI:
    settings = settings or get_settings()
    store = store if store is not None else build_store(settings)
    if verifier is None and settings.turnstile_enabled:
        verifier = TurnstileVerifier.from_settings(settings)
    mailer = mailer if mailer is not None else SmtpMailer(settings)

    limiter = SlidingWindowRateLimiter(
        store,
        max_requests=settings.rate_limit_max,
        window_seconds=settings.rate_limit_window,
    )
    pipeline = ContactPipeline(settings, limiter, verifier, mailer)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        await store.open()
        if not settings.turnstile_enabled:
            logger.warning("Turnstile disabled; localhost origins are allowed")
        try:
            yield
        finally:
            if verifier is not None:
                await verifier.close()
            await store.close()

    app = FastAPI(
        title="Contact Relay",
        description="Validates, rate-limits and relays contact-form messages by email",
        version=VERSION,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.pipeline = pipeline

    @app.exception_handler(ContactError)
    async def contact_error_handler(request: Request, exc: ContactError) -> JSONResponse:
        headers = cors_headers(request.headers.get("origin"), settings)
        return emit(False, exc.message, exc.status_code, headers=headers)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        """Framework errors (unrouted methods, unparseable bodies) keep the same body shape."""
        headers = dict(exc.headers or {})
        headers.update(cors_headers(request.headers.get("origin"), settings))
        if exc.status_code == MethodNotAllowed.status_code:
            message = MethodNotAllowed.message
        else:
            message = str(exc.detail)
        return emit(False, message, exc.status_code, headers=headers)

    app.include_router(contact.router)
    app.include_router(health.router)
    return app


configure_logging(get_settings().log_level)
app = create_app()

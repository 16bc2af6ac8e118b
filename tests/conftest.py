"""
Shared test fixtures.

Provides a FastAPI TestClient wired to:
  • an in-memory rate-limit store
  • a fake Turnstile verifier (no external HTTP)
  • a fake mailer that records submissions

Turnstile is disabled by default; use the ``verified_client`` fixture
for the enabled path.
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from contact_relay.main import create_app
from tests.mocks.models import make_settings
from tests.mocks.services import FakeMailer, FakeVerifier, MemoryRateLimitStore


@pytest.fixture()
def store() -> MemoryRateLimitStore:
    return MemoryRateLimitStore()


@pytest.fixture()
def verifier() -> FakeVerifier:
    return FakeVerifier()


@pytest.fixture()
def mailer() -> FakeMailer:
    return FakeMailer()


@pytest.fixture()
def client(store, mailer) -> TestClient:
    """TestClient with Turnstile disabled."""
    app = create_app(make_settings(), store=store, mailer=mailer)
    with TestClient(app, raise_server_exceptions=False) as tc:
        yield tc


@pytest.fixture()
def verified_client(store, verifier, mailer) -> TestClient:
    """TestClient with Turnstile enabled and a fake verifier."""
    app = create_app(
        make_settings(turnstile_enabled=True),
        store=store,
        verifier=verifier,
        mailer=mailer,
    )
    with TestClient(app, raise_server_exceptions=False) as tc:
        yield tc

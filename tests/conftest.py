"""Pytest configuration and fixtures shared across all test modules.

Environment variables are seeded before anything imports the settings
module, so the global settings object sees a complete test configuration.
"""

import os

# CRITICAL: Set this before any imports that might load settings
os.environ["APP_ENV"] = "testing"
os.environ.setdefault("MAIL_PROVIDER", "resend")
os.environ.setdefault("MAIL_API_KEY", "re_test_key_123")
os.environ.setdefault("MAIL_OWNER_EMAIL", "owner@example.com")
os.environ.setdefault("APP_FRONTEND_ORIGIN", "https://portfolio.example.com")
os.environ.setdefault("APP_RATE_LIMIT_REQUESTS", "5")
os.environ.setdefault("APP_RATE_LIMIT_WINDOW_SECONDS", "900")

from typing import Iterator  # noqa: E402
from unittest.mock import Mock  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from contact_relay.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter  # noqa: E402
from contact_relay.api.routes.contact import get_contact_service  # noqa: E402
from contact_relay.core import rate_limit as rate_limit_module  # noqa: E402
from contact_relay.core.config import MailSettings  # noqa: E402
from contact_relay.main import app  # noqa: E402
from contact_relay.services.contact_service import ContactService  # noqa: E402
from tests.fakes import RecordingTransport  # noqa: E402


@pytest.fixture
def allowed_origin() -> str:
    return os.environ["APP_FRONTEND_ORIGIN"]


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def mail_settings() -> MailSettings:
    return MailSettings(
        provider="resend",
        api_key="re_test_key_123",
        owner_email="owner@example.com",
    )


@pytest.fixture
def clock() -> Mock:
    """Controllable time source; tests move it with `clock.return_value = ...`."""
    return Mock(return_value=1_000_000.0)


@pytest.fixture
def limiter(clock: Mock, monkeypatch: pytest.MonkeyPatch) -> InMemoryFixedWindowRateLimiter:
    """Fresh 5-per-15-minutes limiter for every test."""
    limiter = InMemoryFixedWindowRateLimiter(limit=5, window_seconds=900, clock=clock)
    monkeypatch.setattr(rate_limit_module, "get_rate_limiter", lambda: limiter)
    return limiter


@pytest.fixture
def client(
    transport: RecordingTransport,
    mail_settings: MailSettings,
    limiter: InMemoryFixedWindowRateLimiter,
) -> Iterator[TestClient]:
    """TestClient with the recording transport and a fresh limiter."""
    service = ContactService(transport=transport, mail_settings=mail_settings)
    app.dependency_overrides[get_contact_service] = lambda: service
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def valid_payload() -> dict[str, str]:
    return {
        "name": "Ada Lovelace",
        "email": "ada@example.com",
        "message": "Hello, I'd like to get in touch.",
    }

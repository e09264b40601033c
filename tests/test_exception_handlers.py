"""Tests for global exception handlers.

Validates that every error kind maps to its HTTP status and body shape,
and that internals never leak into responses.
"""

import asyncio
import json
from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from contact_relay.core import exception_handlers as handlers_module
from contact_relay.core.errors import (
    AppError,
    ConfigurationAppError,
    DispatchAppError,
    ErrorDetails,
    OriginRejectedAppError,
    RateLimitAppError,
    ValidationAppError,
)
from contact_relay.core.exception_handlers import setup_exception_handlers


@pytest.fixture
def app_with_handlers() -> FastAPI:
    """Create FastAPI app with exception handlers registered."""
    app = FastAPI()
    setup_exception_handlers(app)
    return app


@pytest.fixture
def client(app_with_handlers: FastAPI) -> TestClient:
    """Create test client with handlers enabled."""
    return TestClient(app_with_handlers)


class TestAppErrorHandler:
    """Test handler for AppError and subclasses."""

    def test_validation_error_returns_400_with_violations(
        self, client: TestClient, app_with_handlers: FastAPI
    ):
        violation = {
            "type": "field",
            "value": "Al",
            "msg": "Name must be at least 3 characters long",
            "path": "name",
            "location": "body",
        }

        @app_with_handlers.get("/test-validation")
        async def test_endpoint():
            raise ValidationAppError(
                code="validation_failed",
                message="Submission failed validation",
                violations=[violation],
            )

        response = client.get("/test-validation")

        assert response.status_code == 400
        assert response.json() == {"errors": [violation]}

    def test_rate_limit_error_returns_429_with_headers(
        self, client: TestClient, app_with_handlers: FastAPI
    ):
        @app_with_handlers.get("/test-rate-limit")
        async def test_endpoint():
            raise RateLimitAppError(
                code="rate_limit_exceeded",
                message="Too many requests from this IP. Please try again after 15 minutes.",
                details={"limit": 5, "remaining": 0, "reset_at": 1900, "retry_after": 900},
            )

        response = client.get("/test-rate-limit")

        assert response.status_code == 429
        assert response.json() == {
            "message": "Too many requests from this IP. Please try again after 15 minutes."
        }
        assert response.headers["Retry-After"] == "900"
        assert response.headers["X-RateLimit-Reset"] == "1900"

    def test_rate_limit_headers_can_be_disabled(
        self, client: TestClient, app_with_handlers: FastAPI, monkeypatch: pytest.MonkeyPatch
    ):
        monkeypatch.setattr(handlers_module.settings.app, "rate_limit_include_headers", False)

        @app_with_handlers.get("/test-rate-limit-quiet")
        async def test_endpoint():
            raise RateLimitAppError(
                code="rate_limit_exceeded",
                message="slow down",
                details={"limit": 5, "remaining": 0, "reset_at": 1900, "retry_after": 900},
            )

        response = client.get("/test-rate-limit-quiet")

        assert response.status_code == 429
        assert "Retry-After" not in response.headers

    def test_origin_rejected_returns_403(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-origin")
        async def test_endpoint():
            raise OriginRejectedAppError(code="origin_rejected", message="Not allowed by CORS")

        response = client.get("/test-origin")

        assert response.status_code == 403
        assert response.json() == {"message": "Not allowed by CORS"}

    @pytest.mark.parametrize("error_cls", [DispatchAppError, ConfigurationAppError])
    def test_server_side_errors_return_generic_500(
        self, client: TestClient, app_with_handlers: FastAPI, error_cls: type[AppError]
    ):
        @app_with_handlers.get("/test-server-error")
        async def test_endpoint():
            raise error_cls(
                code="dispatch_failed",
                message="SMTP 535 5.7.8 Username and Password not accepted",
            )

        response = client.get("/test-server-error")

        assert response.status_code == 500
        assert response.json() == {"message": "Error in sending email. Please try again later."}
        assert "535" not in response.text

    def test_plain_app_error_returns_400(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-generic")
        async def test_endpoint():
            raise AppError(code="bad_request", message="Bad request")

        response = client.get("/test-generic")

        assert response.status_code == 400
        assert response.json() == {"message": "Bad request"}


class TestGeneralExceptionHandler:
    """Test fallback handler for unexpected exceptions."""

    def test_unexpected_exception_handler_registered(self, app_with_handlers: FastAPI):
        assert Exception in app_with_handlers.exception_handlers

    def test_general_exception_handler_never_leaks_details(self):
        from contact_relay.core.exception_handlers import general_exception_handler

        request = AsyncMock()
        request.url.path = "/send-email"
        request.method = "POST"

        exc = RuntimeError("connection to smtp.gmail.com:587 refused")
        response = asyncio.run(general_exception_handler(request, exc))

        response_body = response.body if isinstance(response.body, bytes) else bytes(response.body)
        data = json.loads(response_body.decode())
        assert response.status_code == 500
        assert "smtp" not in data["message"]
        assert "Traceback" not in response_body.decode()
        assert "RuntimeError" not in response_body.decode()


class TestErrorHandlerIntegration:
    def test_setup_exception_handlers_registers_handlers(self, app_with_handlers: FastAPI):
        assert AppError in app_with_handlers.exception_handlers
        assert Exception in app_with_handlers.exception_handlers

    def test_multiple_handler_setups_does_not_fail(self):
        app = FastAPI()

        setup_exception_handlers(app)
        setup_exception_handlers(app)

        assert AppError in app.exception_handlers

    def test_app_error_str_is_its_message(self):
        error = DispatchAppError(code="dispatch_failed", message="transport down")

        assert str(error) == "transport down"

    def test_error_details_only_declare_keys_the_relay_fills(self):
        assert set(ErrorDetails.__annotations__) == {
            "code",
            "message",
            "limit",
            "remaining",
            "reset_at",
            "retry_after",
            "provider",
            "origin",
        }

"""Global exception handlers for consistent error responses.

This module provides FastAPI exception handlers that intercept all errors
(domain and unexpected) and translate them into the response bodies the
contact form frontend understands.

Design:
- ValidationAppError → 400 ``{"errors": [...]}``
- RateLimitAppError → 429 ``{"message": ...}`` (or plain text)
- OriginRejectedAppError → 403 ``{"message": ...}``
- DispatchAppError / ConfigurationAppError → 500 with a generic message
- Unexpected Exception → generic 500 (safety net)

Transport and configuration internals are only ever written to the logs.
"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from contact_relay.core.config import settings
from contact_relay.core.errors import (
    AppError,
    ConfigurationAppError,
    DispatchAppError,
    OriginRejectedAppError,
    RateLimitAppError,
    ValidationAppError,
)
from contact_relay.core.logging import get_request_id

logger = logging.getLogger(__name__)

DISPATCH_FAILED_MESSAGE = "Error in sending email. Please try again later."


def _status_for(exc: AppError) -> int:
    """Map an AppError subclass to its HTTP status code."""
    if isinstance(exc, RateLimitAppError):
        return 429
    if isinstance(exc, OriginRejectedAppError):
        return 403
    if isinstance(exc, (DispatchAppError, ConfigurationAppError)):
        return 500
    return 400


def _rate_limit_headers(exc: RateLimitAppError) -> dict[str, str]:
    details = exc.details or {}
    if not settings.app.rate_limit_include_headers:
        return {}

    headers: dict[str, str] = {}
    if "retry_after" in details:
        headers["Retry-After"] = str(details["retry_after"])
    if "limit" in details:
        headers["X-RateLimit-Limit"] = str(details["limit"])
    if "remaining" in details:
        headers["X-RateLimit-Remaining"] = str(details["remaining"])
    if "reset_at" in details:
        headers["X-RateLimit-Reset"] = str(details["reset_at"])
    return headers


async def app_error_handler(request: Request, exc: AppError) -> Response:
    """Handle domain application errors.

    Args:
        request: FastAPI request object.
        exc: AppError instance (or subclass).

    Returns:
        Response with the status code and body shape for the error kind.
    """
    status_code = _status_for(exc)

    log = logger.error if status_code >= 500 else logger.warning
    log(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "error_message": exc.message,
            "status_code": status_code,
            "has_details": bool(exc.details),
            "request_path": request.url.path,
            "request_id": get_request_id(),
        },
    )

    if isinstance(exc, ValidationAppError):
        return JSONResponse(status_code=400, content={"errors": exc.violations})

    if isinstance(exc, RateLimitAppError):
        headers = _rate_limit_headers(exc)
        if settings.app.rate_limit_plain_text:
            return PlainTextResponse(exc.message, status_code=429, headers=headers)
        return JSONResponse(
            status_code=429,
            content={"message": exc.message},
            headers=headers,
        )

    if status_code == 500:
        # Never echo transport or configuration internals to the caller
        return JSONResponse(
            status_code=500,
            content={"message": DISPATCH_FAILED_MESSAGE},
        )

    return JSONResponse(status_code=status_code, content={"message": exc.message})


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback handler for unexpected errors (safety net).

    Logs detailed information for debugging while returning a generic message.

    Args:
        request: FastAPI request object.
        exc: Exception instance (unexpected).

    Returns:
        JSONResponse with generic error (no implementation details leaked).
    """
    logger.error(
        "unhandled_exception",
        extra={
            "error_type": type(exc).__name__,
            "error_msg": str(exc),
            "request_path": request.url.path,
            "request_method": request.method,
            "request_id": get_request_id(),
        },
    )

    return JSONResponse(
        status_code=500,
        content={"message": "An unexpected error occurred. Please try again later."},
    )


def setup_exception_handlers(app) -> None:
    """Register all exception handlers with FastAPI app.

    Args:
        app: FastAPI application instance.
    """
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(Exception)(general_exception_handler)

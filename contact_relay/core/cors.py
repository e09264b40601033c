"""Cross-origin policy for the browser contact form.

Exactly one frontend origin is allowed. Requests without an ``Origin`` header
(same-origin navigation, curl, server-to-server) are let through. Requests from
any other origin are refused before they reach rate limiting or validation.

Two pieces cooperate:
- ``origin_guard_middleware`` rejects foreign origins with 403
- Starlette's ``CORSMiddleware`` answers preflights and adds the
  Access-Control-* headers (credentials enabled)
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from contact_relay.core.config import settings
from contact_relay.core.errors import OriginRejectedAppError

logger = logging.getLogger(__name__)

ORIGIN_REJECTED_MESSAGE = "Not allowed by CORS"


def allowed_origins() -> list[str]:
    """Return the configured allow-list (empty when no origin is configured)."""
    origin = settings.app.frontend_origin
    if not origin:
        return []
    return [origin.strip().rstrip("/")]


def check_origin(origin: str | None) -> None:
    """Validate the request origin against the allow-list.

    Raises:
        OriginRejectedAppError: If an origin is present and not allowed.
    """
    if not origin:
        return
    if origin.rstrip("/") in allowed_origins():
        return
    raise OriginRejectedAppError(
        code="origin_rejected",
        message=ORIGIN_REJECTED_MESSAGE,
        details={"origin": origin},
    )


async def origin_guard_middleware(request: Request, call_next) -> Response:
    """Refuse requests whose Origin header is not on the allow-list.

    Runs outside the exception handlers, so the rejection is rendered here.
    """
    try:
        check_origin(request.headers.get("origin"))
    except OriginRejectedAppError as exc:
        logger.warning(
            "cors.origin_rejected",
            extra={
                "origin": request.headers.get("origin"),
                "path": request.url.path,
                "method": request.method,
            },
        )
        return JSONResponse(status_code=403, content={"message": exc.message})

    return await call_next(request)


def setup_cors(app: FastAPI) -> None:
    """Install the origin guard and the CORS header middleware.

    Starlette runs the most recently added middleware first, so the guard is
    added after ``CORSMiddleware`` to run before it.
    """
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins(),
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )
    app.middleware("http")(origin_guard_middleware)

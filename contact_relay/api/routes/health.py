from __future__ import annotations

from fastapi import APIRouter

from contact_relay.core.config import settings
from contact_relay.schemas.contact import MessageResponse

router = APIRouter(tags=["Health"])


@router.get("/", response_model=MessageResponse)
def welcome() -> MessageResponse:
    """Liveness probe kept at the root for simple uptime checkers."""

    return MessageResponse(message=settings.app.welcome_message)


@router.get("/health")
def health_check() -> dict:
    """Health check endpoint.

    Returns a simple status response to verify the API is operational.
    Used by load balancers and monitoring systems to determine service health.

    Returns:
        dict: A dictionary with a single "status" key set to "ok".
    """

    return {"status": "ok"}

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, Request

from contact_relay.adapters.mail.factory import create_mail_transport
from contact_relay.core.rate_limit import enforce_rate_limit
from contact_relay.schemas.contact import ContactRequest, MessageResponse, ValidationErrorResponse
from contact_relay.services.contact_service import SUCCESS_MESSAGE, ContactService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Contact"])

FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")

_contact_service: ContactService | None = None


def get_contact_service() -> ContactService:
    """Return the process-wide contact service, building it on first use."""

    global _contact_service

    if _contact_service is None:
        _contact_service = ContactService(transport=create_mail_transport())
    return _contact_service


async def read_submission_body(request: Request) -> dict[str, Any]:
    """Decode a JSON or form body into a plain dict.

    Unsupported content types, malformed JSON and non-object JSON all yield an
    empty dict, which then fails validation with "required" messages.
    """

    content_type = request.headers.get("content-type", "").split(";")[0].strip().lower()

    if content_type == "application/json" or content_type.endswith("+json"):
        try:
            data = await request.json()
        except ValueError:
            logger.info("submission.malformed_json")
            return {}
        return data if isinstance(data, dict) else {}

    if content_type in FORM_CONTENT_TYPES:
        form = await request.form()
        return {key: form.getlist(key) for key in form.keys()}

    return {}


@router.post(
    "/send-email",
    response_model=MessageResponse,
    dependencies=[Depends(enforce_rate_limit)],
    responses={
        400: {"model": ValidationErrorResponse, "description": "One entry per failed rule"},
        403: {"model": MessageResponse, "description": "Origin not allowed"},
        429: {"model": MessageResponse, "description": "Too many requests from this IP"},
        500: {"model": MessageResponse, "description": "Mail transport failure"},
    },
    openapi_extra={
        "requestBody": {
            "required": True,
            "content": {
                "application/json": {"schema": ContactRequest.model_json_schema()},
                "application/x-www-form-urlencoded": {"schema": ContactRequest.model_json_schema()},
            },
        }
    },
)
async def send_email(
    payload: dict[str, Any] = Depends(read_submission_body),
    service: ContactService = Depends(get_contact_service),
) -> MessageResponse:
    """Relay a contact-form submission to the site owner.

    Rate limiting runs first, then every field is validated, then the message
    is handed to the mail transport.

    Returns:
        MessageResponse: Fixed confirmation message.

    Raises:
        ValidationAppError: 400 with every failed rule.
        RateLimitAppError: 429 when the client IP is over quota.
        DispatchAppError: 500 when the transport fails.
    """

    await service.submit(payload)
    return MessageResponse(message=SUCCESS_MESSAGE)

"""OpenAPI metadata and customization utilities.

Enriches the generated schema with tags metadata and documents the
X-Request-ID / rate limit headers returned by the send endpoint. Keeps
documentation concerns out of the app factory.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

_TAGS = [
    {
        "name": "Contact",
        "description": "Relay contact-form submissions to the site owner by e-mail.",
    },
    {
        "name": "Health",
        "description": "Liveness checks.",
    },
]

_RATE_LIMIT_HEADERS = {
    "Retry-After": {"description": "Seconds until the client may retry.", "schema": {"type": "integer"}},
    "X-RateLimit-Limit": {"description": "Requests allowed per window.", "schema": {"type": "integer"}},
    "X-RateLimit-Remaining": {"description": "Requests left in the window.", "schema": {"type": "integer"}},
    "X-RateLimit-Reset": {"description": "UNIX time the window resets.", "schema": {"type": "integer"}},
}


def apply_openapi_customizations(app: FastAPI) -> None:
    """Patch FastAPI's OpenAPI generation to add tags and response headers."""

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        schema = original_openapi()

        tags = schema.setdefault("tags", [])
        existing_tag_names = {t.get("name") for t in tags}
        for tag in _TAGS:
            if tag["name"] not in existing_tag_names:
                tags.append(tag)

        send = schema.get("paths", {}).get("/send-email", {}).get("post")
        if isinstance(send, dict):
            throttled = send.get("responses", {}).get("429")
            if isinstance(throttled, dict):
                throttled.setdefault("headers", {}).update(_RATE_LIMIT_HEADERS)

        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]

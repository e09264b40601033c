"""Resend HTTP API mail transport."""

from __future__ import annotations

from typing import Any

import httpx

from contact_relay.adapters.mail.base import AbstractMailTransport, MailTransportError, OutboundEmail


class ResendTransport(AbstractMailTransport):
    """Send messages through the Resend ``POST /emails`` endpoint.

    Uses a single ``httpx.AsyncClient`` for connection reuse.
    """

    name = "resend"

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.resend.com",
        timeout_seconds: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the HTTP client.

        Args:
            api_key: Resend API key.
            base_url: API root, overridable for proxies and tests.
            timeout_seconds: Timeout for requests in seconds.
            transport: Optional httpx transport (tests use httpx.MockTransport).
        """
        self.client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout_seconds,
            headers={"Authorization": f"Bearer {api_key}"},
            transport=transport,
        )

    @staticmethod
    def build_payload(email: OutboundEmail) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "from": email.sender,
            "to": list(email.to),
            "subject": email.subject,
            "text": email.text,
        }
        if email.reply_to:
            payload["reply_to"] = email.reply_to
        return payload

    async def send(self, email: OutboundEmail) -> str | None:
        try:
            response = await self.client.post("/emails", json=self.build_payload(email))
        except httpx.HTTPError as exc:
            raise MailTransportError(
                f"Resend request failed: {exc!s}",
                provider=self.name,
            ) from exc

        if response.is_error:
            raise MailTransportError(
                f"Resend rejected the message: HTTP {response.status_code} {response.text}",
                provider=self.name,
                status_code=response.status_code,
            )

        try:
            return response.json().get("id")
        except ValueError:
            return None

    async def aclose(self) -> None:
        await self.client.aclose()

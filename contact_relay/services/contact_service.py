"""Contact service: validate a submission and relay it by e-mail.

This service is the core of the send endpoint. It handles:
- Batch validation and sanitization of the raw body
- Building the owner notification (and, optionally, the visitor auto-reply)
- Handing each message to the configured mail transport exactly once

No retries are attempted; a transport failure ends the request.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from contact_relay.adapters.mail.base import AbstractMailTransport, MailTransportError, OutboundEmail
from contact_relay.core.config import MailSettings, settings
from contact_relay.core.errors import ConfigurationAppError, DispatchAppError
from contact_relay.schemas.contact import ContactSubmission
from contact_relay.utils.form_validators import validate_submission

logger = logging.getLogger(__name__)

SUCCESS_MESSAGE = "Email sent successfully!"

OWNER_SUBJECT_TEMPLATE = "Portfolio message from {name}"
OWNER_BODY_TEMPLATE = "From: {name} <{email}>\n\n{message}"
AUTO_REPLY_BODY_TEMPLATE = (
    "Hi {name},\n\n"
    "Thank you for reaching out. I've received your message and will get back "
    "to you soon.\n\n"
    "Best regards,\n"
    "{signature}"
)


class ContactService:
    """Relay validated contact submissions through a mail transport."""

    def __init__(
        self,
        transport: AbstractMailTransport,
        mail_settings: MailSettings | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            transport: Mail transport used for every outbound message.
            mail_settings: Optional settings; defaults to the global settings.

        Raises:
            ConfigurationAppError: If no operator address is configured.
        """
        self.transport = transport
        self.config = mail_settings or settings.mail
        if not self.config.owner_email:
            raise ConfigurationAppError(
                code="mail_missing_owner_email",
                message="MAIL_OWNER_EMAIL (or EMAIL) must be set to receive contact messages",
            )

    def build_owner_email(self, submission: ContactSubmission) -> OutboundEmail:
        return OutboundEmail(
            sender=self.config.from_address,
            to=(self.config.owner_email,),
            subject=OWNER_SUBJECT_TEMPLATE.format(name=submission.name),
            text=OWNER_BODY_TEMPLATE.format(
                name=submission.name,
                email=submission.email,
                message=submission.message,
            ),
            reply_to=submission.email,
        )

    def build_auto_reply(self, submission: ContactSubmission) -> OutboundEmail:
        return OutboundEmail(
            sender=self.config.auto_reply_from or self.config.from_address,
            to=(submission.email,),
            subject=self.config.auto_reply_subject,
            text=AUTO_REPLY_BODY_TEMPLATE.format(
                name=submission.name,
                signature=self.config.auto_reply_signature,
            ),
        )

    async def _send(self, email: OutboundEmail, *, kind: str) -> None:
        try:
            message_id = await self.transport.send(email)
        except MailTransportError as exc:
            logger.error(
                "mail.dispatch_failed",
                extra={
                    "kind": kind,
                    "provider": exc.provider,
                    "provider_status": exc.status_code,
                    "error_msg": str(exc),
                },
            )
            raise DispatchAppError(
                code="dispatch_failed",
                message="The mail transport did not accept the message",
                details={"provider": exc.provider},
            ) from exc

        logger.info(
            "mail.dispatched",
            extra={
                "kind": kind,
                "provider": self.transport.name,
                "provider_message_id": message_id,
            },
        )

    async def dispatch(self, submission: ContactSubmission) -> None:
        """Send the owner notification and, when enabled, the auto-reply.

        A failed owner notification fails the request. A failed auto-reply
        only fails the request when ``auto_reply_required`` is set; otherwise
        it is logged and the submission counts as delivered.

        Raises:
            DispatchAppError: When a required message could not be sent.
        """
        await self._send(self.build_owner_email(submission), kind="owner")

        if not self.config.auto_reply_enabled:
            return

        try:
            await self._send(self.build_auto_reply(submission), kind="auto_reply")
        except DispatchAppError:
            if self.config.auto_reply_required:
                raise
            logger.warning(
                "mail.auto_reply_skipped",
                extra={"reason": "dispatch_failed", "owner_notified": True},
            )

    async def submit(self, payload: Mapping[str, Any]) -> ContactSubmission:
        """Validate ``payload`` and relay it.

        Args:
            payload: Raw JSON object or form fields from the request body.

        Returns:
            The sanitized submission that was sent.

        Raises:
            ValidationAppError: If any field breaks its rules.
            DispatchAppError: If the transport fails.
        """
        submission = validate_submission(payload)
        await self.dispatch(submission)
        return submission

"""SMTP mail transport built on aiosmtplib."""

from __future__ import annotations

from email.message import EmailMessage

import aiosmtplib

from contact_relay.adapters.mail.base import AbstractMailTransport, MailTransportError, OutboundEmail

IMPLICIT_TLS_PORT = 465


class SMTPTransport(AbstractMailTransport):
    """Send messages over SMTP, one connection per message.

    Port 465 uses implicit TLS; any other port upgrades with STARTTLS when
    ``use_tls`` is true.
    """

    name = "smtp"

    def __init__(
        self,
        host: str,
        port: int = 587,
        username: str | None = None,
        password: str | None = None,
        use_tls: bool = True,
        timeout_seconds: float = 30.0,
    ) -> None:
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.timeout_seconds = timeout_seconds

    @staticmethod
    def build_message(email: OutboundEmail) -> EmailMessage:
        message = EmailMessage()
        message["From"] = email.sender
        message["To"] = ", ".join(email.to)
        message["Subject"] = email.subject
        if email.reply_to:
            message["Reply-To"] = email.reply_to
        message.set_content(email.text)
        return message

    async def send(self, email: OutboundEmail) -> str | None:
        implicit_tls = self.port == IMPLICIT_TLS_PORT
        try:
            await aiosmtplib.send(
                self.build_message(email),
                hostname=self.host,
                port=self.port,
                username=self.username,
                password=self.password,
                use_tls=self.use_tls and implicit_tls,
                start_tls=self.use_tls and not implicit_tls,
                timeout=self.timeout_seconds,
            )
        except (aiosmtplib.SMTPException, OSError) as exc:
            raise MailTransportError(
                f"SMTP delivery failed: {exc!s}",
                provider=self.name,
                status_code=getattr(exc, "code", None),
            ) from exc

        return None

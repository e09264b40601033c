"""Mail transport layer - abstracts over the HTTP API and SMTP providers."""

from contact_relay.adapters.mail.base import AbstractMailTransport, MailTransportError, OutboundEmail
from contact_relay.adapters.mail.factory import create_mail_transport
from contact_relay.adapters.mail.resend_client import ResendTransport
from contact_relay.adapters.mail.smtp_client import SMTPTransport

__all__ = [
    "AbstractMailTransport",
    "MailTransportError",
    "OutboundEmail",
    "ResendTransport",
    "SMTPTransport",
    "create_mail_transport",
]

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class OutboundEmail:
    """A plain-text message ready to be handed to a transport."""

    sender: str
    to: tuple[str, ...]
    subject: str
    text: str
    reply_to: str | None = None


class MailTransportError(Exception):
    """Raised by transports when a message could not be handed over.

    Covers network failures, rejected credentials and provider-side refusals
    (quota, invalid sender). ``status_code`` is set when the provider answered.
    """

    def __init__(self, message: str, *, provider: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.provider = provider
        self.status_code = status_code


class AbstractMailTransport(ABC):
    """Interface for mail transports."""

    name: str = "abstract"

    @abstractmethod
    async def send(self, email: OutboundEmail) -> str | None:
        """Deliver one message.

        Args:
            email: Message to send.

        Returns:
            Provider message id when the provider returns one.

        Raises:
            MailTransportError: If the provider call fails.
        """
        ...

    async def aclose(self) -> None:
        """Release pooled connections; transports without any keep the default."""
        return None

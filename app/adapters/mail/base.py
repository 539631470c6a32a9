from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class SenderIdentity:
    """Resolved sender: the From address plus the credentials used to log in."""

    name: str
    address: str
    username: str
    password: str
    via_proxy: bool = False


@dataclass(frozen=True)
class OutgoingEmail:
    """A message ready for delivery."""

    to: str
    subject: str
    html_body: str
    attachment_path: Path | None = None


@dataclass(frozen=True)
class DeliveryResult:
    """Outcome of a delivery attempt.

    Attributes:
        success: True when the provider accepted the message.
        message_id: Message-ID header of the accepted message.
        error: Provider/transport error text when delivery failed.
    """

    success: bool
    message_id: str | None = None
    error: str | None = None


class AbstractMailSender(ABC):
    """Interface for sending mail under a single sender identity."""

    identity: SenderIdentity

    @abstractmethod
    async def send(self, email: OutgoingEmail) -> DeliveryResult:
        """Deliver ``email`` from this sender's identity.

        Implementations never raise for delivery problems: network, auth,
        provider rejection and timeouts are reported through the result.

        Args:
            email: Message to deliver.

        Returns:
            DeliveryResult describing the outcome.
        """
        ...

    async def verify(self) -> DeliveryResult:
        """Check connectivity and credentials without sending anything."""
        return DeliveryResult(success=True)

"""Mail adapter layer - abstracts over the outbound mail transport."""

from app.adapters.mail.base import (
    AbstractMailSender,
    DeliveryResult,
    OutgoingEmail,
    SenderIdentity,
)
from app.adapters.mail.factory import MailSenders, create_mail_senders, resolve_sender_identities
from app.adapters.mail.smtp_client import SMTPMailSender

__all__ = [
    "AbstractMailSender",
    "DeliveryResult",
    "MailSenders",
    "OutgoingEmail",
    "SMTPMailSender",
    "SenderIdentity",
    "create_mail_senders",
    "resolve_sender_identities",
]

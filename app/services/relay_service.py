"""Form relay service: submission limit, message building and delivery.

This is the business core behind both form endpoints. It:
- records the submission against the submitter's quota
- renders the notification email for the target mailbox
- hands the message to the matching sender and maps failures to errors

Temporary upload files are owned by the caller; this service only reads the
path it is given.
"""

from __future__ import annotations

import html
import logging
from pathlib import Path

from app.adapters.mail.base import AbstractMailSender, OutgoingEmail
from app.adapters.mail.factory import MailSenders
from app.adapters.rate_limit.base import AbstractSubmissionLedger
from app.core.errors import DeliveryAppError
from app.core.logging import hash_identifier
from app.core.submission_limit import enforce_submission_limit
from app.schemas.forms import SubmissionForm

logger = logging.getLogger(__name__)

CAREER_SUBJECT = "New Career Application"
CONTACT_SUBJECT = "New Business Connect: Join the Conversation"


def _field(value: str | None, escape: bool) -> str:
    # Absent fields render the way the browser form would have sent them.
    text = "" if value is None else value
    return html.escape(text) if escape else text


def _render_body(heading: str, form: SubmissionForm, *, escape: bool, extra: str = "") -> str:
    return f"""
      <h2>{heading}</h2>
      <p><strong>Name:</strong> {_field(form.name, escape)}</p>
      <p><strong>Email:</strong> {_field(form.email, escape)}</p>
      <p><strong>Phone:</strong> {_field(form.phone, escape)}</p>
      <p><strong>Message:</strong> {_field(form.message, escape)}</p>
      {extra}
    """


def build_career_email(
    form: SubmissionForm,
    *,
    recipient: str,
    attachment_path: Path | None = None,
    escape: bool = True,
) -> OutgoingEmail:
    """Build the HR notification for a career application."""
    extra = "<p><strong>Resume:</strong> Attached</p>" if attachment_path else ""
    return OutgoingEmail(
        to=recipient,
        subject=CAREER_SUBJECT,
        html_body=_render_body(CAREER_SUBJECT, form, escape=escape, extra=extra),
        attachment_path=attachment_path,
    )


def build_contact_email(
    form: SubmissionForm,
    *,
    recipient: str,
    escape: bool = True,
) -> OutgoingEmail:
    """Build the admin notification for a contact/blog inquiry."""
    return OutgoingEmail(
        to=recipient,
        subject=CONTACT_SUBJECT,
        html_body=_render_body(CONTACT_SUBJECT, form, escape=escape),
    )


class FormRelayService:
    """Relays form submissions as emails, subject to the submission limit."""

    def __init__(
        self,
        *,
        ledger: AbstractSubmissionLedger,
        senders: MailSenders,
        admin_recipient: str,
        hr_recipient: str,
        escape_user_input: bool = True,
    ) -> None:
        self._ledger = ledger
        self._senders = senders
        self._admin_recipient = admin_recipient
        self._hr_recipient = hr_recipient
        self._escape = escape_user_input

    async def _deliver(
        self,
        sender: AbstractMailSender,
        email: OutgoingEmail,
        *,
        failure_message: str,
    ) -> str | None:
        result = await sender.send(email)
        if not result.success:
            # Provider text is passed to the client verbatim.
            raise DeliveryAppError(
                code="delivery_failed",
                message=failure_message,
                details={"error": result.error or "Unknown delivery error"},
            )
        return result.message_id

    async def submit_career(
        self,
        form: SubmissionForm,
        attachment_path: Path | None = None,
    ) -> str:
        """Relay a career application to HR.

        Args:
            form: Submitted fields.
            attachment_path: Stored resume, if one was uploaded.

        Returns:
            Confirmation message for the client.

        Raises:
            ValidationAppError: If no email address was supplied.
            RateLimitAppError: If the submitter's quota is used up.
            DeliveryAppError: If the mail provider fails.
        """
        decision = enforce_submission_limit(self._ledger, form.email, noun="applications")

        email = build_career_email(
            form,
            recipient=self._hr_recipient,
            attachment_path=attachment_path,
            escape=self._escape,
        )
        message_id = await self._deliver(
            self._senders.hr,
            email,
            failure_message="Error submitting application",
        )

        logger.info(
            "relay.career_submitted",
            extra={
                "identity_hash": hash_identifier(form.email or ""),
                "remaining": decision.remaining,
                "message_id": message_id,
                "has_attachment": attachment_path is not None,
                "tracked_identities": len(self._ledger.snapshot()),
            },
        )
        return "Application submitted successfully"

    async def submit_contact(self, form: SubmissionForm) -> str:
        """Relay a contact/blog inquiry to the admin mailbox.

        Raises:
            ValidationAppError: If no email address was supplied.
            RateLimitAppError: If the submitter's quota is used up.
            DeliveryAppError: If the mail provider fails.
        """
        decision = enforce_submission_limit(self._ledger, form.email, noun="messages")

        email = build_contact_email(
            form,
            recipient=self._admin_recipient,
            escape=self._escape,
        )
        message_id = await self._deliver(
            self._senders.admin,
            email,
            failure_message="Error sending message",
        )

        logger.info(
            "relay.contact_submitted",
            extra={
                "identity_hash": hash_identifier(form.email or ""),
                "remaining": decision.remaining,
                "message_id": message_id,
                "tracked_identities": len(self._ledger.snapshot()),
            },
        )
        return "Message sent successfully"

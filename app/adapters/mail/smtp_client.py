"""SMTP mail sender adapter."""

from __future__ import annotations

import asyncio
import logging
import mimetypes
import smtplib
import ssl
from email.message import EmailMessage
from email.utils import formatdate, make_msgid

from app.adapters.mail.base import (
    AbstractMailSender,
    DeliveryResult,
    OutgoingEmail,
    SenderIdentity,
)

logger = logging.getLogger(__name__)


class SMTPMailSender(AbstractMailSender):
    """Sends mail through an SMTP server under one sender identity.

    smtplib is blocking, so each delivery runs in the default executor and is
    bounded by ``timeout_seconds`` end to end.
    """

    def __init__(
        self,
        identity: SenderIdentity,
        *,
        host: str,
        port: int,
        use_ssl: bool = True,
        starttls: bool = False,
        timeout_seconds: float = 30.0,
    ) -> None:
        self.identity = identity
        self.host = host
        self.port = port
        self.use_ssl = use_ssl
        self.starttls = starttls
        self.timeout_seconds = timeout_seconds

    def build_message(self, email: OutgoingEmail) -> EmailMessage:
        """Build the MIME message, attaching the file when one is given."""
        message = EmailMessage()
        message["From"] = self.identity.address
        message["To"] = email.to
        message["Subject"] = email.subject
        message["Date"] = formatdate(localtime=True)
        domain = self.identity.address.rpartition("@")[2] or None
        message["Message-ID"] = make_msgid(domain=domain)

        message.set_content("This message requires an HTML-capable mail client.")
        message.add_alternative(email.html_body, subtype="html")

        if email.attachment_path is not None:
            path = email.attachment_path
            mime_type, _ = mimetypes.guess_type(path.name)
            maintype, _, subtype = (mime_type or "application/octet-stream").partition("/")
            message.add_attachment(
                path.read_bytes(),
                maintype=maintype,
                subtype=subtype,
                filename=path.name,
            )

        return message

    def _connect(self) -> smtplib.SMTP:
        if self.use_ssl:
            return smtplib.SMTP_SSL(
                self.host,
                self.port,
                timeout=self.timeout_seconds,
                context=ssl.create_default_context(),
            )
        client = smtplib.SMTP(self.host, self.port, timeout=self.timeout_seconds)
        if self.starttls:
            client.ehlo()
            client.starttls(context=ssl.create_default_context())
            client.ehlo()
        return client

    def _deliver(self, email: OutgoingEmail) -> str:
        # Runs in the executor: reading the attachment is blocking I/O too.
        message = self.build_message(email)
        with self._connect() as client:
            client.login(self.identity.username, self.identity.password)
            client.send_message(message)
        return message["Message-ID"]

    def _login_only(self) -> None:
        with self._connect() as client:
            client.login(self.identity.username, self.identity.password)

    async def _run_bounded(self, func, *args):
        loop = asyncio.get_running_loop()
        return await asyncio.wait_for(
            loop.run_in_executor(None, func, *args),
            timeout=self.timeout_seconds,
        )

    async def send(self, email: OutgoingEmail) -> DeliveryResult:
        """Deliver ``email``; failures are returned, never raised."""
        logger.info(
            "mail.sending",
            extra={
                "sender": self.identity.name,
                "from_address": self.identity.address,
                "to": email.to,
                "via_proxy": self.identity.via_proxy,
                "has_attachment": email.attachment_path is not None,
            },
        )

        try:
            message_id = await self._run_bounded(self._deliver, email)
        except asyncio.TimeoutError:
            error = f"Mail delivery timed out after {self.timeout_seconds:g} seconds"
            logger.error(
                "mail.timeout",
                extra={"sender": self.identity.name, "timeout_seconds": self.timeout_seconds},
            )
            return DeliveryResult(success=False, error=error)
        except Exception as exc:
            logger.error(
                "mail.failed",
                extra={
                    "sender": self.identity.name,
                    "error_type": type(exc).__name__,
                    "error": str(exc),
                },
            )
            return DeliveryResult(success=False, error=str(exc))

        logger.info(
            "mail.sent",
            extra={"sender": self.identity.name, "message_id": message_id, "to": email.to},
        )
        return DeliveryResult(success=True, message_id=message_id)

    async def verify(self) -> DeliveryResult:
        try:
            await self._run_bounded(self._login_only)
        except asyncio.TimeoutError:
            return DeliveryResult(
                success=False,
                error=f"SMTP verification timed out after {self.timeout_seconds:g} seconds",
            )
        except Exception as exc:
            logger.warning(
                "mail.verify_failed",
                extra={"sender": self.identity.name, "error_type": type(exc).__name__, "error": str(exc)},
            )
            return DeliveryResult(success=False, error=str(exc))
        return DeliveryResult(success=True)

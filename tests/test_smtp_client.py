"""Tests for the SMTP mail sender with smtplib patched out."""

import smtplib
import threading
import time
from pathlib import Path
from unittest.mock import patch

import pytest

from app.adapters.mail.base import OutgoingEmail, SenderIdentity
from app.adapters.mail.smtp_client import SMTPMailSender

IDENTITY = SenderIdentity(
    name="hr",
    address="proxy@example.com",
    username="proxy@example.com",
    password="proxy-pass",
    via_proxy=True,
)


@pytest.fixture
def sender() -> SMTPMailSender:
    return SMTPMailSender(IDENTITY, host="smtp.test", port=465, timeout_seconds=2)


@pytest.fixture
def email() -> OutgoingEmail:
    return OutgoingEmail(
        to="hr@areta360.com",
        subject="New Career Application",
        html_body="<h2>New Career Application</h2>",
    )


class TestBuildMessage:
    def test_headers_use_identity_address(self, sender: SMTPMailSender, email: OutgoingEmail) -> None:
        message = sender.build_message(email)

        assert message["From"] == "proxy@example.com"
        assert message["To"] == "hr@areta360.com"
        assert message["Subject"] == "New Career Application"
        assert message["Message-ID"].endswith("@example.com>")

    def test_html_alternative_is_present(self, sender: SMTPMailSender, email: OutgoingEmail) -> None:
        message = sender.build_message(email)

        html_part = message.get_body(preferencelist=("html",))
        assert html_part is not None
        assert "<h2>New Career Application</h2>" in html_part.get_content()

    def test_attachment_is_added(self, sender: SMTPMailSender, tmp_path: Path) -> None:
        resume = tmp_path / "1700000000000-resume.pdf"
        resume.write_bytes(b"%PDF-1.4 test")
        email = OutgoingEmail(
            to="hr@areta360.com",
            subject="New Career Application",
            html_body="<p>hi</p>",
            attachment_path=resume,
        )

        message = sender.build_message(email)

        attachments = list(message.iter_attachments())
        assert len(attachments) == 1
        assert attachments[0].get_filename() == "1700000000000-resume.pdf"
        assert attachments[0].get_content_type() == "application/pdf"
        assert attachments[0].get_content() == b"%PDF-1.4 test"


class TestSend:
    @pytest.mark.asyncio
    async def test_success_logs_in_and_sends(self, sender: SMTPMailSender, email: OutgoingEmail) -> None:
        with patch("app.adapters.mail.smtp_client.smtplib.SMTP_SSL") as smtp_ssl:
            client = smtp_ssl.return_value.__enter__.return_value

            result = await sender.send(email)

        assert result.success is True
        assert result.message_id
        assert result.error is None
        smtp_ssl.assert_called_once()
        assert smtp_ssl.call_args.args[:2] == ("smtp.test", 465)
        client.login.assert_called_once_with("proxy@example.com", "proxy-pass")
        client.send_message.assert_called_once()

    @pytest.mark.asyncio
    async def test_starttls_connection(self, email: OutgoingEmail) -> None:
        sender = SMTPMailSender(
            IDENTITY, host="smtp.test", port=587, use_ssl=False, starttls=True, timeout_seconds=2
        )

        with patch("app.adapters.mail.smtp_client.smtplib.SMTP") as smtp:
            result = await sender.send(email)

        assert result.success is True
        smtp.return_value.starttls.assert_called_once()

    @pytest.mark.asyncio
    async def test_auth_failure_is_returned_not_raised(
        self, sender: SMTPMailSender, email: OutgoingEmail
    ) -> None:
        with patch("app.adapters.mail.smtp_client.smtplib.SMTP_SSL") as smtp_ssl:
            client = smtp_ssl.return_value.__enter__.return_value
            client.login.side_effect = smtplib.SMTPAuthenticationError(535, b"Bad credentials")

            result = await sender.send(email)

        assert result.success is False
        assert result.message_id is None
        assert "535" in result.error
        client.send_message.assert_not_called()

    @pytest.mark.asyncio
    async def test_connection_error_is_returned(self, sender: SMTPMailSender, email: OutgoingEmail) -> None:
        with patch(
            "app.adapters.mail.smtp_client.smtplib.SMTP_SSL",
            side_effect=ConnectionRefusedError("Connection refused"),
        ):
            result = await sender.send(email)

        assert result.success is False
        assert "Connection refused" in result.error

    @pytest.mark.asyncio
    async def test_slow_delivery_times_out(self, email: OutgoingEmail) -> None:
        sender = SMTPMailSender(IDENTITY, host="smtp.test", port=465, timeout_seconds=0.05)

        def hang(message) -> None:
            time.sleep(0.5)

        with patch.object(sender, "_deliver", hang):
            result = await sender.send(email)

        assert result.success is False
        assert "timed out" in result.error

    @pytest.mark.asyncio
    async def test_message_is_built_off_the_event_loop(self, sender: SMTPMailSender, email: OutgoingEmail) -> None:
        loop_thread = threading.get_ident()
        build_threads: list[int] = []
        original_build = sender.build_message

        def recording_build(outgoing: OutgoingEmail):
            build_threads.append(threading.get_ident())
            return original_build(outgoing)

        with patch.object(sender, "build_message", recording_build), patch(
            "app.adapters.mail.smtp_client.smtplib.SMTP_SSL"
        ):
            result = await sender.send(email)

        assert result.success is True
        assert len(build_threads) == 1
        assert build_threads[0] != loop_thread

    @pytest.mark.asyncio
    async def test_missing_attachment_is_returned(self, sender: SMTPMailSender, tmp_path: Path) -> None:
        email = OutgoingEmail(
            to="hr@areta360.com",
            subject="New Career Application",
            html_body="<p>hi</p>",
            attachment_path=tmp_path / "gone.pdf",
        )

        result = await sender.send(email)

        assert result.success is False
        assert result.error


class TestVerify:
    @pytest.mark.asyncio
    async def test_verify_success(self, sender: SMTPMailSender) -> None:
        with patch("app.adapters.mail.smtp_client.smtplib.SMTP_SSL") as smtp_ssl:
            result = await sender.verify()

        assert result.success is True
        smtp_ssl.return_value.__enter__.return_value.login.assert_called_once()

    @pytest.mark.asyncio
    async def test_verify_failure(self, sender: SMTPMailSender) -> None:
        with patch(
            "app.adapters.mail.smtp_client.smtplib.SMTP_SSL",
            side_effect=OSError("Network unreachable"),
        ):
            result = await sender.verify()

        assert result.success is False
        assert "Network unreachable" in result.error

    @pytest.mark.asyncio
    async def test_verify_never_raises(self, sender: SMTPMailSender) -> None:
        with patch(
            "app.adapters.mail.smtp_client.smtplib.SMTP_SSL",
            side_effect=RuntimeError("unexpected TLS state"),
        ):
            result = await sender.verify()

        assert result.success is False
        assert "unexpected TLS state" in result.error

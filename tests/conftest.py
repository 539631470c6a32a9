"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
It sets the TESTING environment variable to prevent loading the .env file
during tests and provides mail credentials so settings resolve.
"""

import os
import tempfile

# CRITICAL: Set this before any imports that might load settings
os.environ["TESTING"] = "true"
os.environ["APP_ENV"] = "testing"

# Set default env vars that all tests might need
os.environ.setdefault("MAIL_ADMIN_EMAIL", "admin-sender@example.com")
os.environ.setdefault("MAIL_ADMIN_PASSWORD", "admin-secret")
os.environ.setdefault("MAIL_HR_EMAIL", "hr-sender@example.com")
os.environ.setdefault("MAIL_HR_PASSWORD", "hr-secret")
os.environ.setdefault("APP_UPLOAD_DIR", tempfile.mkdtemp(prefix="form-relay-uploads-"))

from pathlib import Path  # noqa: E402
from unittest.mock import Mock  # noqa: E402

import pytest  # noqa: E402
from fastapi import FastAPI  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from app.adapters.mail.base import (  # noqa: E402
    AbstractMailSender,
    DeliveryResult,
    OutgoingEmail,
    SenderIdentity,
)
from app.adapters.mail.factory import MailSenders  # noqa: E402
from app.adapters.rate_limit.in_memory import InMemorySubmissionLedger  # noqa: E402
from app.core.app_factory import create_app  # noqa: E402
from app.core.config import settings  # noqa: E402

START_TIME = 1_700_000_000.0


class FakeMailSender(AbstractMailSender):
    """Records outgoing messages instead of talking to an SMTP server."""

    def __init__(self, name: str, *, fail_with: str | None = None) -> None:
        self.identity = SenderIdentity(
            name=name,
            address=f"{name}-sender@example.com",
            username=f"{name}-sender@example.com",
            password="secret",
        )
        self.fail_with = fail_with
        self.sent: list[OutgoingEmail] = []
        # Whether the attachment still existed on disk at send time
        self.attachment_existed: list[bool] = []

    async def send(self, email: OutgoingEmail) -> DeliveryResult:
        self.sent.append(email)
        self.attachment_existed.append(
            email.attachment_path is not None and email.attachment_path.exists()
        )
        if self.fail_with:
            return DeliveryResult(success=False, error=self.fail_with)
        return DeliveryResult(success=True, message_id=f"<{len(self.sent)}@example.com>")


@pytest.fixture
def clock() -> Mock:
    return Mock(return_value=START_TIME)


@pytest.fixture
def ledger(clock: Mock) -> InMemorySubmissionLedger:
    return InMemorySubmissionLedger(limit=3, window_seconds=24 * 3600, clock=clock)


@pytest.fixture
def admin_sender() -> FakeMailSender:
    return FakeMailSender("admin")


@pytest.fixture
def hr_sender() -> FakeMailSender:
    return FakeMailSender("hr")


@pytest.fixture
def upload_dir(tmp_path: Path) -> Path:
    return tmp_path / "uploads"


@pytest.fixture
def app(
    ledger: InMemorySubmissionLedger,
    admin_sender: FakeMailSender,
    hr_sender: FakeMailSender,
    upload_dir: Path,
) -> FastAPI:
    test_settings = settings.model_copy(
        update={"app": settings.app.model_copy(update={"upload_dir": str(upload_dir)})}
    )
    return create_app(
        app_settings=test_settings,
        ledger=ledger,
        mail_senders=MailSenders(admin=admin_sender, hr=hr_sender),
    )


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app)

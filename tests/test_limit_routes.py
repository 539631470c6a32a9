"""Tests for the submission-limit inspection endpoints, health and static uploads."""

from pathlib import Path
from unittest.mock import Mock

from fastapi.testclient import TestClient

from app.adapters.rate_limit.in_memory import InMemorySubmissionLedger
from tests.conftest import START_TIME

HOUR = 3600.0


class TestEmailLimit:
    def test_unknown_email(self, client: TestClient) -> None:
        response = client.get("/api/email-limit/new@example.com")

        assert response.status_code == 200
        assert response.json() == {
            "email": "new@example.com",
            "submitted": 0,
            "remaining": 3,
            "limit": 3,
            "canSubmit": True,
            "hoursUntilReset": None,
        }

    def test_tracked_email(self, client: TestClient, ledger: InMemorySubmissionLedger, clock: Mock) -> None:
        ledger.check_and_record("seen@example.com")
        ledger.check_and_record("seen@example.com")
        clock.return_value = START_TIME + 3 * HOUR

        response = client.get("/api/email-limit/seen@example.com")

        assert response.json() == {
            "email": "seen@example.com",
            "submitted": 2,
            "remaining": 1,
            "limit": 3,
            "canSubmit": True,
            "hoursUntilReset": 21,
        }

    def test_exhausted_email(self, client: TestClient, ledger: InMemorySubmissionLedger) -> None:
        for _ in range(3):
            ledger.check_and_record("full@example.com")

        body = client.get("/api/email-limit/full@example.com").json()

        assert body["remaining"] == 0
        assert body["canSubmit"] is False
        assert body["hoursUntilReset"] == 24

    def test_expired_email_is_evicted(
        self, client: TestClient, ledger: InMemorySubmissionLedger, clock: Mock
    ) -> None:
        for _ in range(3):
            ledger.check_and_record("old@example.com")
        clock.return_value = START_TIME + 25 * HOUR

        body = client.get("/api/email-limit/old@example.com").json()

        assert body["submitted"] == 0
        assert body["canSubmit"] is True
        assert body["hoursUntilReset"] is None
        assert client.get("/api/all-email-counts").json() == {}


def test_all_email_counts(client: TestClient, ledger: InMemorySubmissionLedger) -> None:
    ledger.check_and_record("a@example.com")
    ledger.check_and_record("b@example.com")
    ledger.check_and_record("b@example.com")

    response = client.get("/api/all-email-counts")

    assert response.status_code == 200
    assert response.json() == {"a@example.com": 1, "b@example.com": 2}


def test_reset_email_limits(client: TestClient, ledger: InMemorySubmissionLedger) -> None:
    for _ in range(3):
        ledger.check_and_record("a@x.com")

    response = client.post("/api/reset-email-limits")

    assert response.status_code == 200
    assert response.json() == {"message": "Email submission counts reset successfully"}
    assert client.get("/api/all-email-counts").json() == {}
    assert client.post("/api/blog-form", json={"email": "a@x.com"}).status_code == 200


def test_health(client: TestClient) -> None:
    response = client.get("/api/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_uploads_are_served_statically(client: TestClient, upload_dir: Path) -> None:
    (upload_dir / "note.txt").write_text("hello")

    response = client.get("/uploads/note.txt")

    assert response.status_code == 200
    assert response.text == "hello"


def test_openapi_flags_unauthenticated_limit_endpoints(client: TestClient) -> None:
    schema = client.get("/openapi.json").json()

    reset_op = schema["paths"]["/api/reset-email-limits"]["post"]
    assert reset_op["x-authentication"] == "none"
    assert "without authentication" in reset_op["description"]
    assert "/career-form" not in schema["paths"]
    assert {tag["name"] for tag in schema["tags"]} >= {"Forms", "Submission Limits", "Health"}

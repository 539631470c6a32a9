"""Submission limit enforcement for the form endpoints.

This module wires the submission ledger into the HTTP layer.

Design goals:
- Minimal coupling: routes and services depend on the abstract ledger only.
- Explicit lifecycle: the ledger is built by the application factory and
  stored on ``app.state``; nothing here holds module-level state.

Limit strategy:
- Rolling window per submitter email address, shared by both forms.
- The check and the increment are one synchronous call, so no other
  request can interleave between them on the event loop.
"""

from __future__ import annotations

import logging

from fastapi import Request

from app.adapters.rate_limit.base import AbstractSubmissionLedger, SubmissionDecision
from app.core.errors import RateLimitAppError, ValidationAppError
from app.core.logging import hash_identifier

logger = logging.getLogger(__name__)

EMAIL_LIMIT_EXCEEDED = "EMAIL_LIMIT_EXCEEDED"


def get_submission_ledger(request: Request) -> AbstractSubmissionLedger:
    """FastAPI dependency returning the application's submission ledger."""
    return request.app.state.submission_ledger


def build_limit_message(limit: int, hours_until_reset: int | None, noun: str) -> str:
    """Build the client-facing message for an exhausted quota.

    Examples:
        >>> build_limit_message(3, 5, "applications")
        'You have reached the maximum limit of 3 applications per email address. You can submit again in 5 hours.'
    """
    if hours_until_reset:
        reset = f" You can submit again in {hours_until_reset} hours."
    else:
        reset = " You can submit again after 24 hours."
    return f"You have reached the maximum limit of {limit} {noun} per email address.{reset}"


def enforce_submission_limit(
    ledger: AbstractSubmissionLedger,
    email: str | None,
    *,
    noun: str,
) -> SubmissionDecision:
    """Record a submission for ``email`` or raise when the quota is used up.

    Args:
        ledger: Submission ledger to consult.
        email: Submitter email address as supplied.
        noun: What is being limited, for the client message
            ("applications", "messages").

    Returns:
        SubmissionDecision for the accepted submission.

    Raises:
        ValidationAppError: If no email address was supplied.
        RateLimitAppError: If the submitter has no submissions left.
    """
    if not email or not email.strip():
        raise ValidationAppError(
            code="missing_email",
            message="An email address is required to submit this form.",
        )

    decision = ledger.check_and_record(email)
    if decision.allowed:
        logger.info(
            "submission_limit.allowed",
            extra={
                "identity_hash": hash_identifier(email),
                "remaining": decision.remaining,
                "limit": ledger.limit,
            },
        )
        return decision

    logger.warning(
        "submission_limit.exceeded",
        extra={
            "identity_hash": hash_identifier(email),
            "limit": ledger.limit,
            "hours_until_reset": decision.hours_until_reset,
        },
    )
    raise RateLimitAppError(
        code=EMAIL_LIMIT_EXCEEDED,
        message=build_limit_message(ledger.limit, decision.hours_until_reset, noun),
        details={"hoursUntilReset": decision.hours_until_reset},
    )

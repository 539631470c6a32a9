"""Operational endpoints over the submission ledger.

These endpoints are unauthenticated; deployments should keep them off the
public network.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from app.adapters.rate_limit.base import AbstractSubmissionLedger
from app.core.submission_limit import get_submission_ledger
from app.schemas.forms import EmailLimitStatusResponse, MessageResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Submission Limits"])


@router.get("/email-limit/{email}", response_model=EmailLimitStatusResponse)
def get_email_limit(
    email: str,
    ledger: AbstractSubmissionLedger = Depends(get_submission_ledger),
) -> EmailLimitStatusResponse:
    """Return the submission quota for one email address."""
    status = ledger.query(email)
    return EmailLimitStatusResponse(
        email=status.identity,
        submitted=status.submitted,
        remaining=status.remaining,
        limit=status.limit,
        can_submit=status.can_submit,
        hours_until_reset=status.hours_until_reset,
    )


@router.post("/reset-email-limits", response_model=MessageResponse)
def reset_email_limits(
    ledger: AbstractSubmissionLedger = Depends(get_submission_ledger),
) -> MessageResponse:
    """Clear every submission count."""
    ledger.reset_all()
    logger.warning("limits.reset_requested")
    return MessageResponse(message="Email submission counts reset successfully")


@router.get("/all-email-counts", response_model=dict[str, int])
def get_all_email_counts(
    ledger: AbstractSubmissionLedger = Depends(get_submission_ledger),
) -> dict[str, int]:
    """Return the current submission count for every tracked email address."""
    return ledger.snapshot()

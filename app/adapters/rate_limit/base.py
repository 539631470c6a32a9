"""Submission ledger interfaces.

Form handlers depend on this abstraction (not the concrete implementation)
so the storage backend can change without touching the API layer.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class SubmissionDecision:
    """Outcome of a check-and-record call.

    Attributes:
        allowed: Whether the submission may proceed.
        remaining: Submissions left in the current window (0 when blocked).
        hours_until_reset: Whole hours until the window reopens; only set
            when blocked.
    """

    allowed: bool
    remaining: int
    hours_until_reset: int | None = None


@dataclass(frozen=True)
class SubmissionStatus:
    """Read-only view of one submitter's quota."""

    identity: str
    submitted: int
    remaining: int
    limit: int
    can_submit: bool
    hours_until_reset: int | None


class AbstractSubmissionLedger(ABC):
    """Interface for per-submitter submission counters."""

    @property
    @abstractmethod
    def limit(self) -> int:
        """Maximum accepted submissions per window."""
        raise NotImplementedError

    @abstractmethod
    def check_and_record(self, identity: str, now: float | None = None) -> SubmissionDecision:
        """Check the quota for ``identity`` and record the submission if allowed.

        Check and record form one indivisible step: implementations must not
        yield control between reading the count and writing it back.

        Args:
            identity: Submitter identity (email address as supplied).
            now: UNIX time in seconds; defaults to the ledger clock.

        Returns:
            SubmissionDecision for this submission.
        """
        raise NotImplementedError

    @abstractmethod
    def query(self, identity: str, now: float | None = None) -> SubmissionStatus:
        """Report the quota for ``identity`` without recording a submission."""
        raise NotImplementedError

    @abstractmethod
    def reset_all(self) -> None:
        """Forget every submitter."""
        raise NotImplementedError

    @abstractmethod
    def snapshot(self) -> dict[str, int]:
        """Return current counts keyed by identity."""
        raise NotImplementedError

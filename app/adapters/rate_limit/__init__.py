"""Submission ledger adapters.

The API layer talks to ``AbstractSubmissionLedger``; the in-memory ledger is
the only backend, constructed by the application factory.
"""

from app.adapters.rate_limit.base import (
    AbstractSubmissionLedger,
    SubmissionDecision,
    SubmissionStatus,
)
from app.adapters.rate_limit.in_memory import InMemorySubmissionLedger

__all__ = [
    "AbstractSubmissionLedger",
    "InMemorySubmissionLedger",
    "SubmissionDecision",
    "SubmissionStatus",
]

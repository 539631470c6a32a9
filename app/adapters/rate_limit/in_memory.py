"""In-memory rolling-window submission ledger.

Notes:
- Per-process only: state is lost on restart and not shared between workers.
- Thread-safe: uses a lock around shared state, so sync admin endpoints
  running in the threadpool can't interleave with form handlers.
"""

from __future__ import annotations

import logging
import math
import threading
import time
from dataclasses import dataclass
from typing import Callable

from app.adapters.rate_limit.base import (
    AbstractSubmissionLedger,
    SubmissionDecision,
    SubmissionStatus,
)
from app.core.logging import hash_identifier

logger = logging.getLogger(__name__)

SECONDS_PER_HOUR = 3600


@dataclass
class _SubmissionRecord:
    count: int
    window_start: float


class InMemorySubmissionLedger(AbstractSubmissionLedger):
    """Counts accepted submissions per identity over a rolling window.

    The window is anchored at the first submission of each identity, not at a
    calendar boundary: an identity that first submits at 15:00 may submit
    again once 24 hours have passed since that moment, regardless of any
    later submissions in between.
    """

    def __init__(
        self,
        *,
        limit: int = 3,
        window_seconds: int = 24 * SECONDS_PER_HOUR,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the ledger.

        Args:
            limit: Maximum accepted submissions per window.
            window_seconds: Window length in seconds.
            clock: Time source function returning UNIX time in seconds.

        Raises:
            ValueError: If limit or window_seconds are invalid.
        """
        if limit < 1:
            raise ValueError("limit must be >= 1")
        if window_seconds < 1:
            raise ValueError("window_seconds must be >= 1")

        self._limit = limit
        self._window_seconds = window_seconds
        self._clock = clock
        self._lock = threading.RLock()
        self._records: dict[str, _SubmissionRecord] = {}

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def window_seconds(self) -> int:
        return self._window_seconds

    def _is_expired(self, record: _SubmissionRecord, now: float) -> bool:
        return now - record.window_start > self._window_seconds

    def _has_no_time_left(self, record: _SubmissionRecord, now: float) -> bool:
        # Reporting side: a window with zero seconds left is already over.
        return now - record.window_start >= self._window_seconds

    def _hours_until_reset(self, record: _SubmissionRecord, now: float) -> int:
        seconds_left = record.window_start + self._window_seconds - now
        # A window that is still open never reports 0 hours.
        return max(1, math.ceil(seconds_left / SECONDS_PER_HOUR))

    @staticmethod
    def _validate_identity(identity: str) -> None:
        if not identity:
            raise ValueError("identity must be a non-empty string")

    def check_and_record(self, identity: str, now: float | None = None) -> SubmissionDecision:
        """Check the quota for ``identity`` and record the submission if allowed.

        1. Unknown identity or expired window: start a new window with count 1.
        2. Count already at the limit: reject without touching the record.
        3. Otherwise: increment the count.

        Raises:
            ValueError: If identity is empty.
        """
        self._validate_identity(identity)
        if now is None:
            now = self._clock()
        identity_hash = hash_identifier(identity)

        with self._lock:
            record = self._records.get(identity)

            if record is None or self._is_expired(record, now):
                self._records[identity] = _SubmissionRecord(count=1, window_start=now)
                logger.info(
                    "submission_ledger.window_started",
                    extra={
                        "identity_hash": identity_hash,
                        "count": 1,
                        "limit": self._limit,
                        "replaced_expired": record is not None,
                    },
                )
                return SubmissionDecision(allowed=True, remaining=self._limit - 1)

            if record.count >= self._limit:
                hours = self._hours_until_reset(record, now)
                logger.warning(
                    "submission_ledger.limit_exceeded",
                    extra={
                        "identity_hash": identity_hash,
                        "count": record.count,
                        "limit": self._limit,
                        "hours_until_reset": hours,
                    },
                )
                return SubmissionDecision(allowed=False, remaining=0, hours_until_reset=hours)

            record.count += 1
            logger.info(
                "submission_ledger.recorded",
                extra={
                    "identity_hash": identity_hash,
                    "count": record.count,
                    "limit": self._limit,
                },
            )
            return SubmissionDecision(allowed=True, remaining=self._limit - record.count)

    def query(self, identity: str, now: float | None = None) -> SubmissionStatus:
        """Report the quota for ``identity``.

        A record whose window has run out (zero or fewer seconds left) is
        evicted and reported the same way as an identity that was never seen.
        """
        self._validate_identity(identity)
        if now is None:
            now = self._clock()

        with self._lock:
            record = self._records.get(identity)
            if record is not None and self._has_no_time_left(record, now):
                del self._records[identity]
                logger.debug(
                    "submission_ledger.evicted",
                    extra={"identity_hash": hash_identifier(identity)},
                )
                record = None

            if record is None:
                return SubmissionStatus(
                    identity=identity,
                    submitted=0,
                    remaining=self._limit,
                    limit=self._limit,
                    can_submit=True,
                    hours_until_reset=None,
                )

            remaining = max(0, self._limit - record.count)
            return SubmissionStatus(
                identity=identity,
                submitted=record.count,
                remaining=remaining,
                limit=self._limit,
                can_submit=remaining > 0,
                hours_until_reset=self._hours_until_reset(record, now),
            )

    def reset_all(self) -> None:
        with self._lock:
            cleared = len(self._records)
            self._records.clear()
        logger.info("submission_ledger.reset", extra={"cleared_entries": cleared})

    def snapshot(self) -> dict[str, int]:
        with self._lock:
            return {identity: record.count for identity, record in self._records.items()}

"""Application-level exception types.

This module defines domain errors used across services/adapters, enabling
consistent error handling, logging, and API responses.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context merged into the response body.

    Keys are emitted as-is, so client-facing names keep the camelCase used by
    the public form API.
    """

    error: str
    hoursUntilReset: int | None
    file_name: str
    extension: str
    allowed_extensions: list[str]
    max_size_mb: int
    context: dict[str, Any]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details merged into the response body.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when input/config validation fails."""


class FileTooLargeAppError(ValidationAppError):
    """Raised when an uploaded file exceeds the configured size limit."""


class RateLimitAppError(AppError):
    """Raised when a submitter has used up their submission quota."""


class DeliveryAppError(AppError):
    """Raised when the mail provider rejects or fails to deliver a message."""

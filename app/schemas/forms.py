"""Pydantic schemas for form submissions and submission-limit responses."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class SubmissionForm(BaseModel):
    """Fields shared by the career and contact forms.

    All fields are optional strings; values are relayed as submitted.
    """

    name: str | None = Field(default=None, description="Submitter's name.")
    email: str | None = Field(
        default=None,
        description="Submitter's email address; also the key for the submission limit.",
    )
    phone: str | None = Field(default=None, description="Submitter's phone number.")
    message: str | None = Field(default=None, description="Free-form message.")

    model_config = ConfigDict(extra="ignore")


class SubmissionResponse(BaseModel):
    """Successful submission acknowledgement."""

    message: str = Field(..., description="Human-readable confirmation.")


class RateLimitResponse(BaseModel):
    """Body returned with HTTP 429 when the submission limit is exhausted."""

    message: str
    error: str = Field("EMAIL_LIMIT_EXCEEDED")
    hours_until_reset: int | None = Field(default=None, alias="hoursUntilReset")

    model_config = ConfigDict(populate_by_name=True)


class EmailLimitStatusResponse(BaseModel):
    """Quota view for one email address."""

    email: str
    submitted: int = Field(..., description="Accepted submissions in the current window.")
    remaining: int = Field(..., description="Submissions left in the current window.")
    limit: int = Field(..., description="Maximum submissions per window.")
    can_submit: bool = Field(..., alias="canSubmit")
    hours_until_reset: int | None = Field(
        default=None,
        alias="hoursUntilReset",
        description="Whole hours until the window reopens; null when no window is open.",
    )

    model_config = ConfigDict(populate_by_name=True)


class MessageResponse(BaseModel):
    message: str

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile

from app.core.errors import ValidationAppError
from app.core.file_validation import temporary_upload
from app.schemas.forms import RateLimitResponse, SubmissionForm, SubmissionResponse
from app.services.relay_service import FormRelayService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Forms"])

_FORM_RESPONSES = {
    429: {"model": RateLimitResponse, "description": "Submission limit reached for this email"},
}


def get_relay_service(request: Request) -> FormRelayService:
    """FastAPI dependency returning the application's relay service."""
    return request.app.state.relay_service


async def read_submission_form(request: Request) -> SubmissionForm:
    """Read the contact form from a JSON or form-encoded body.

    Raises:
        ValidationAppError: If a JSON body is malformed or not an object.
    """
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/json"):
        try:
            payload = await request.json()
        except ValueError as exc:
            raise ValidationAppError(code="invalid_json", message="Request body is not valid JSON.") from exc
        if not isinstance(payload, dict):
            raise ValidationAppError(code="invalid_json", message="Request body must be a JSON object.")
    else:
        submitted = await request.form()
        payload = {key: value for key, value in submitted.items() if isinstance(value, str)}

    values = {
        field: None if payload.get(field) is None else str(payload[field])
        for field in SubmissionForm.model_fields
    }
    return SubmissionForm(**values)


@router.post(
    "/api/career-form",
    response_model=SubmissionResponse,
    responses=_FORM_RESPONSES,
)
@router.post(
    "/career-form",
    response_model=SubmissionResponse,
    include_in_schema=False,
)
async def submit_career_form(
    request: Request,
    name: str | None = Form(None),
    email: str | None = Form(None),
    phone: str | None = Form(None),
    message: str | None = Form(None),
    resume: UploadFile | None = File(None, description="Resume in PDF, DOC or DOCX format"),
    service: FormRelayService = Depends(get_relay_service),
) -> SubmissionResponse:
    """Relay a career application (with optional resume) to HR.

    The resume is validated and stored before the submission limit is
    consulted, and removed again however the request ends.
    """
    form = SubmissionForm(name=name, email=email, phone=phone, message=message)
    logger.info(
        "forms.career_received",
        extra={"has_resume": bool(resume and resume.filename), "route": request.url.path},
    )

    upload_policy = request.app.state.settings.app
    async with temporary_upload(
        resume,
        request.app.state.upload_dir,
        max_bytes=upload_policy.max_upload_bytes,
        allowed_extensions=upload_policy.allowed_extensions,
        verify_signature=upload_policy.verify_file_signature,
    ) as resume_path:
        confirmation = await service.submit_career(form, resume_path)

    return SubmissionResponse(message=confirmation)


@router.post(
    "/api/blog-form",
    response_model=SubmissionResponse,
    responses=_FORM_RESPONSES,
)
async def submit_blog_form(
    form: SubmissionForm = Depends(read_submission_form),
    service: FormRelayService = Depends(get_relay_service),
) -> SubmissionResponse:
    """Relay a contact/blog inquiry to the admin mailbox."""
    logger.info("forms.contact_received")
    confirmation = await service.submit_contact(form)
    return SubmissionResponse(message=confirmation)

"""Upload intake: validation, temporary storage and guaranteed cleanup."""
from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from pathlib import Path, PurePosixPath
from typing import AsyncIterator

from fastapi import UploadFile

from app.core.config import settings
from app.core.errors import FileTooLargeAppError, ValidationAppError
from app.utils.file_validators import (
    SIGNATURE_PROBE_BYTES,
    get_extension,
    is_allowed_extension,
    validate_file_signature,
)

logger = logging.getLogger(__name__)

CHUNK_SIZE = 8192


def _stored_name(original_name: str) -> str:
    # Keep only the basename so client-supplied paths can't escape upload_dir.
    basename = PurePosixPath(original_name.replace("\\", "/")).name or "upload"
    return f"{int(time.time() * 1000)}-{basename}"


def _invalid_type_error(filename: str, allowed: set[str]) -> ValidationAppError:
    return ValidationAppError(
        code="invalid_file_type",
        message="Invalid file type. Only PDF, DOC, and DOCX files are allowed.",
        details={
            "file_name": filename,
            "extension": get_extension(filename),
            "allowed_extensions": sorted(allowed),
        },
    )


def remove_file_quietly(path: Path | None) -> None:
    """Best-effort delete of a temporary file; failures are logged only."""
    if path is None:
        return
    try:
        path.unlink(missing_ok=True)
        logger.debug("upload.removed", extra={"path": str(path)})
    except OSError as exc:
        logger.error(
            "upload.remove_failed",
            extra={"path": str(path), "error": str(exc)},
        )


async def store_upload_limited(
    file: UploadFile,
    upload_dir: Path | str | None = None,
    *,
    max_bytes: int | None = None,
    allowed_extensions: set[str] | None = None,
    verify_signature: bool | None = None,
) -> Path:
    """Stream an uploaded file to ``upload_dir`` enforcing type and size limits.

    Checks the extension first, then the multipart size header when present,
    then streams in chunks with a running size check. The leading bytes are
    matched against the extension's signature. A partially written file is
    removed before any error propagates.

    Args:
        file: FastAPI upload file instance.
        upload_dir: Target directory (defaults to settings).
        max_bytes: Size cap in bytes (defaults to settings).
        allowed_extensions: Accepted lower-cased extensions (defaults to settings).
        verify_signature: Whether to check magic numbers (defaults to settings).

    Returns:
        Path of the stored file.

    Raises:
        ValidationAppError: If the extension or signature is not accepted.
        FileTooLargeAppError: If the file exceeds the size limit.
    """
    directory = Path(upload_dir or settings.app.upload_dir)
    limit = max_bytes if max_bytes is not None else settings.app.max_upload_bytes
    allowed = allowed_extensions if allowed_extensions is not None else settings.app.allowed_extensions
    check_signature = (
        verify_signature if verify_signature is not None else settings.app.verify_file_signature
    )
    filename = file.filename or ""
    extension = get_extension(filename)

    if not is_allowed_extension(filename, allowed):
        logger.warning(
            "upload.rejected_type",
            extra={"extension": extension},
        )
        raise _invalid_type_error(filename, allowed)

    too_large = FileTooLargeAppError(
        code="file_too_large",
        message=f"File too large. Maximum size: {limit // (1024 * 1024)}MB",
        details={"file_name": filename, "max_size_mb": limit // (1024 * 1024)},
    )

    # Check size from multipart headers if available
    file_size = getattr(file, "size", None)
    if file_size is not None and file_size > limit:
        logger.warning(
            "upload.rejected_by_header",
            extra={"file_size": file_size, "max_bytes": limit},
        )
        raise too_large

    directory.mkdir(parents=True, exist_ok=True)
    target = directory / _stored_name(filename)

    size = 0
    head = b""
    try:
        with target.open("wb") as out:
            while True:
                chunk = await file.read(CHUNK_SIZE)
                if not chunk:
                    break

                size += len(chunk)
                if size > limit:
                    logger.warning(
                        "upload.rejected_by_chunked_read",
                        extra={"size": size, "max_bytes": limit},
                    )
                    raise too_large
                if len(head) < SIGNATURE_PROBE_BYTES:
                    head += chunk[: SIGNATURE_PROBE_BYTES - len(head)]
                out.write(chunk)

        if check_signature and not validate_file_signature(head, extension):
            raise ValidationAppError(
                code="invalid_file_signature",
                message=f"File content doesn't match its extension. Expected {extension.lstrip('.').upper()}.",
                details={"file_name": filename, "extension": extension},
            )
    except BaseException:
        remove_file_quietly(target)
        raise

    logger.info(
        "upload.stored",
        extra={"extension": extension, "size": size, "path": str(target)},
    )
    return target


@asynccontextmanager
async def temporary_upload(
    file: UploadFile | None,
    upload_dir: Path | str | None = None,
    *,
    max_bytes: int | None = None,
    allowed_extensions: set[str] | None = None,
    verify_signature: bool | None = None,
) -> AsyncIterator[Path | None]:
    """Store ``file`` for the duration of the block and delete it afterwards.

    Yields None when no file (or an empty file field) was submitted. The
    stored file is removed on every exit path: normal return, early
    rejection and exceptions alike. Limits are forwarded to
    ``store_upload_limited``.
    """
    if file is None or not file.filename:
        yield None
        return

    path = await store_upload_limited(
        file,
        upload_dir,
        max_bytes=max_bytes,
        allowed_extensions=allowed_extensions,
        verify_signature=verify_signature,
    )
    try:
        yield path
    finally:
        remove_file_quietly(path)

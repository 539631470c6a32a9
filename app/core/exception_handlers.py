"""Global exception handlers for consistent error responses.

This module provides FastAPI exception handlers that intercept all errors
(domain and unexpected) and return consistent JSON responses with proper
HTTP status codes and traceability.

Design:
- AppError subclasses → appropriate HTTP status (400, 413, 429, 500)
- Unexpected Exception → generic 500 (safety net)
- All responses use the flat ``{"message", "error"}`` shape of the form API
  and carry the request_id for log correlation
"""

import logging
from fastapi import Request
from fastapi.responses import JSONResponse

from app.core.errors import (
    AppError,
    DeliveryAppError,
    FileTooLargeAppError,
    RateLimitAppError,
)
from app.core.logging import get_request_id

logger = logging.getLogger(__name__)


def status_code_for(exc: AppError) -> int:
    """Map a domain error to its HTTP status code.

    - FileTooLargeAppError → 413 Payload Too Large
    - ValidationAppError → 400 Bad Request (client fault)
    - RateLimitAppError → 429 Too Many Requests
    - DeliveryAppError → 500 Internal Server Error (provider fault)
    """
    if isinstance(exc, FileTooLargeAppError):
        return 413
    if isinstance(exc, RateLimitAppError):
        return 429
    if isinstance(exc, DeliveryAppError):
        return 500
    return 400


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Handle domain application errors with consistent JSON format.

    The body always contains:
    - message: Human-readable message
    - error: Machine-readable code, unless details override it (delivery
      errors pass the provider message through)
    - request_id: For log correlation

    Any remaining ``details`` entries are merged at the top level, which is
    how ``hoursUntilReset`` reaches rate-limited clients.

    Args:
        request: FastAPI request object.
        exc: AppError instance (or subclass).

    Returns:
        JSONResponse with appropriate status code and error details.
    """
    status_code = status_code_for(exc)

    logger.warning(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "error_message": exc.message,
            "status_code": status_code,
            "has_details": bool(exc.details),
            "request_path": request.url.path,
        },
    )

    content = {
        "message": exc.message,
        "error": exc.code,
        "request_id": get_request_id(),
    }
    if exc.details:
        content.update(exc.details)

    headers = None
    if isinstance(exc, RateLimitAppError) and exc.details and exc.details.get("hoursUntilReset"):
        headers = {"Retry-After": str(int(exc.details["hoursUntilReset"]) * 3600)}

    return JSONResponse(
        status_code=status_code,
        content=content,
        headers=headers,
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback handler for unexpected errors (safety net).

    Logs detailed information for debugging while returning a generic
    message. No stack traces or exception text reach the client.
    """
    logger.error(
        "unhandled_exception",
        extra={
            "error_type": type(exc).__name__,
            "error_msg": str(exc),
            "request_path": request.url.path,
            "request_method": request.method,
        },
    )

    return JSONResponse(
        status_code=500,
        content={
            "message": "An unexpected error occurred. Please try again later.",
            "error": "internal_server_error",
            "request_id": get_request_id(),
        },
    )


def setup_exception_handlers(app) -> None:
    """Register all exception handlers with FastAPI app.

    Args:
        app: FastAPI application instance.
    """
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(Exception)(general_exception_handler)

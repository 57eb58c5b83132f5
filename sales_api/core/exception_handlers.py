"""Global exception handlers for consistent error responses.

Design:
- AppError subclasses -> HTTP status from the admission-pipeline taxonomy
- Server-side failures never expose details; they are logged instead
- Unexpected Exception -> generic 500 (safety net)
- All responses include request_id for log correlation
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from sales_api.core.config import settings
from sales_api.core.errors import (
    AppError,
    InfrastructureAppError,
    InvalidCredentialsError,
    InvalidTokenError,
    LimiterUnavailableError,
    RateLimitedError,
    StoreError,
    UnauthenticatedError,
    ValidationAppError,
)
from sales_api.core.logging import get_request_id

logger = logging.getLogger(__name__)

# Checked in order; first match wins.
_STATUS_BY_ERROR: tuple[tuple[type[AppError], int], ...] = (
    (ValidationAppError, 400),
    (InvalidCredentialsError, 401),
    (UnauthenticatedError, 401),
    (InvalidTokenError, 403),
    (RateLimitedError, 429),
    (LimiterUnavailableError, 503),
    (StoreError, 500),
    (InfrastructureAppError, 500),
)


def status_for(exc: AppError) -> int:
    """Map an AppError to its HTTP status code (400 when unmapped)."""
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status_code
    return 400


def _rate_limit_headers(exc: RateLimitedError) -> dict[str, str]:
    details = exc.details or {}
    headers = {"Retry-After": str(details.get("retry_after", ""))}
    if settings.rate_limit.rate_limit_include_headers:
        headers["X-RateLimit-Limit"] = str(details.get("limit", ""))
        headers["X-RateLimit-Remaining"] = str(details.get("remaining", 0))
        headers["X-RateLimit-Reset"] = str(details.get("reset_at", ""))
    return headers


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Handle domain application errors with consistent JSON format.

    All responses include:
    - error.code: Machine-readable error code
    - error.message: Human-readable message
    - error.request_id: For log correlation
    - error.details: Structured context, client errors only

    Rate-limit rejections additionally carry a top-level ``retryAfter`` and a
    ``Retry-After`` header.
    """
    status_code = status_for(exc)
    request_id = get_request_id()

    log = logger.error if status_code >= 500 else logger.warning
    log(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "error_message": exc.message,
            "status_code": status_code,
            "request_path": request.url.path,
            "request_id": request_id,
        },
    )

    error_content: dict = {
        "code": exc.code,
        "message": exc.message,
        "request_id": request_id,
    }
    if exc.details and status_code < 500 and not isinstance(exc, RateLimitedError):
        error_content["details"] = exc.details

    content: dict = {"error": error_content}
    headers: dict[str, str] | None = None

    if isinstance(exc, RateLimitedError):
        content["retryAfter"] = exc.retry_after
        headers = _rate_limit_headers(exc)
    elif isinstance(exc, UnauthenticatedError):
        headers = {"WWW-Authenticate": "Bearer"}

    return JSONResponse(status_code=status_code, content=content, headers=headers)


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback handler for unexpected errors (safety net).

    Logs detailed information for debugging while returning a generic message;
    no stack traces or exception text reach the client.
    """
    logger.error(
        "unhandled_exception",
        exc_info=exc,
        extra={
            "error_type": type(exc).__name__,
            "error_msg": str(exc),
            "request_path": request.url.path,
            "request_method": request.method,
            "request_id": get_request_id(),
        },
    )

    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "internal_server_error",
                "message": "Internal Server Error",
                "request_id": get_request_id(),
            }
        },
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app.

    Specific handlers are registered before the general fallback.
    """
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(Exception)(general_exception_handler)

"""Application-level exception types.

This module defines the admission-pipeline errors used across services and
adapters, enabling consistent error handling, logging, and API responses.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients.

    Fields are optional to keep shapes consistent across the codebase
    without forcing every error to fill them all.
    """

    code: str
    message: str
    hint: str
    field: str
    value: str
    retry_after: int
    limit: int
    remaining: int
    reset_at: int
    limiter: str
    request_id: str
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when client input validation fails."""


class AuthenticationAppError(AppError):
    """Raised when authentication fails."""


class InfrastructureAppError(AppError):
    """Raised when a backing service (counter store, analytical store) fails."""


class InvalidFilterError(ValidationAppError):
    """Sales query parameters are malformed."""


class InvalidCredentialsError(AuthenticationAppError):
    """Unknown username or wrong password (deliberately indistinguishable)."""


class UnauthenticatedError(AuthenticationAppError):
    """No session token was supplied."""


class InvalidTokenError(AuthenticationAppError):
    """Session token is malformed, expired, or carries a bad signature."""


class RateLimitedError(AppError):
    """Caller exhausted its quota for the current window.

    ``details["retry_after"]`` carries the advisory wait in seconds.
    """

    @property
    def retry_after(self) -> int | None:
        return (self.details or {}).get("retry_after")


class LimiterUnavailableError(InfrastructureAppError):
    """The shared counter store could not be reached; requests are rejected."""


class StoreError(InfrastructureAppError):
    """The analytical store failed (connection, query, schema, timeout)."""

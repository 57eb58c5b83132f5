"""Login route: exchange credentials for a session token."""

from __future__ import annotations

import logging
from typing import Annotated, Any, Callable, Coroutine

from fastapi import APIRouter, Depends, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.routing import APIRoute

from sales_api.core.auth import get_credential_store, get_token_codec
from sales_api.core.credentials import CredentialStore, verify_credentials
from sales_api.core.errors import InvalidCredentialsError
from sales_api.core.rate_limit import enforce_login_rate_limit
from sales_api.core.tokens import SessionTokenCodec
from sales_api.schemas.auth import LoginRequest, LoginResponse

logger = logging.getLogger(__name__)


class CredentialsRoute(APIRoute):
    """Route class reporting malformed login bodies as invalid credentials.

    A missing, non-string or unparseable ``username``/``password`` is
    answered exactly like a wrong password (401 in the standard error
    envelope) instead of FastAPI's default 422 body.
    """

    def get_route_handler(self) -> Callable[[Request], Coroutine[Any, Any, Response]]:
        handler = super().get_route_handler()

        async def credentials_route_handler(request: Request) -> Response:
            try:
                return await handler(request)
            except RequestValidationError as exc:
                logger.warning(
                    "auth.login_malformed",
                    extra={"error_locations": [list(err.get("loc", ())) for err in exc.errors()]},
                )
                raise InvalidCredentialsError(
                    code="invalid_credentials",
                    message="Invalid password or user",
                ) from exc

        return credentials_route_handler


router = APIRouter(tags=["Authentication"], route_class=CredentialsRoute)


@router.post(
    "/login",
    response_model=LoginResponse,
    dependencies=[Depends(enforce_login_rate_limit)],
    responses={
        401: {"description": "Invalid credentials or malformed body"},
        429: {"description": "Too many login attempts"},
        503: {"description": "Rate limiter unavailable"},
    },
)
async def login(
    body: LoginRequest,
    store: Annotated[CredentialStore, Depends(get_credential_store)],
    codec: Annotated[SessionTokenCodec, Depends(get_token_codec)],
) -> LoginResponse:
    """Exchange a username and password for a one-hour session token.

    Attempts are throttled per client IP before credentials are checked.

    Args:
        body: JSON body with ``username`` and ``password``.
        store: Credential store loaded at startup.
        codec: Session token codec.

    Returns:
        LoginResponse: ``{"token": "<jwt>"}``.

    Raises:
        InvalidCredentialsError: Unknown user, wrong password or malformed
            body (401).
        RateLimitedError: Too many attempts from this IP (429).
        LimiterUnavailableError: Counter store unreachable (503).

    Example:
        curl -X POST http://localhost:3000/login \\
            -H "Content-Type: application/json" \\
            -d '{"username": "admin", "password": "..."}'
    """
    identity = await verify_credentials(store, body.username, body.password)
    return LoginResponse(token=codec.issue(identity))

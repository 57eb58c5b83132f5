"""Session-token authentication wiring for FastAPI routes.

Design principles:
- Single Responsibility: credential checks live in ``credentials``, token
  signing in ``tokens``; this module only adapts them to the HTTP layer
- Dependency Injection: used via FastAPI Depends() so tests can override the
  credential store and codec
- Configuration-driven: secret and users file come from settings
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from sales_api.core.config import settings
from sales_api.core.credentials import CredentialStore
from sales_api.core.tokens import SessionTokenCodec

logger = logging.getLogger(__name__)

# auto_error=False: a missing header must surface as UnauthenticatedError (401), not FastAPI's 403.
bearer_scheme = HTTPBearer(auto_error=False, description="Session token from POST /login")


@lru_cache(maxsize=1)
def get_credential_store() -> CredentialStore:
    """Return the process-wide credential store, loading it on first use."""
    return CredentialStore.from_file(settings.auth.users_file)


@lru_cache(maxsize=1)
def get_token_codec() -> SessionTokenCodec:
    """Return the process-wide session token codec."""
    return SessionTokenCodec(settings.auth.jwt_secret)


async def require_identity(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    codec: Annotated[SessionTokenCodec, Depends(get_token_codec)],
) -> str:
    """FastAPI dependency resolving the caller identity from a bearer token.

    Usage:
        @router.get("/protected")
        async def protected(identity: Annotated[str, Depends(require_identity)]):
            ...

    Raises:
        UnauthenticatedError: No bearer token on the request (401).
        InvalidTokenError: Token rejected by the codec (403).
    """
    token = credentials.credentials if credentials else None
    identity = codec.verify(token)
    logger.debug("auth.token_accepted", extra={"identity": identity})
    return identity

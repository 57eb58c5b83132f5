"""Stateless session tokens (HS256 JWT).

Tokens carry the identity claim and a fixed one-hour lifetime. Nothing is
stored server-side: a token is valid while its signature checks out and its
expiry has not been reached, and cannot be revoked earlier.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

import jwt

from sales_api.core.errors import InvalidTokenError, UnauthenticatedError

logger = logging.getLogger(__name__)

TOKEN_LIFETIME = timedelta(hours=1)
ALGORITHM = "HS256"
IDENTITY_CLAIM = "username"


class SessionTokenCodec:
    """Issue and verify signed session tokens."""

    def __init__(self, secret: str) -> None:
        if not secret:
            raise ValueError("secret must be a non-empty string")
        self._secret = secret

    def issue(self, identity: str, *, now: datetime | None = None) -> str:
        """Sign a token for ``identity`` expiring exactly one hour after ``now``."""
        issued_at = (now or datetime.now(tz=timezone.utc)).replace(microsecond=0)
        payload = {
            IDENTITY_CLAIM: identity,
            "iat": issued_at,
            "exp": issued_at + TOKEN_LIFETIME,
        }
        return jwt.encode(payload, self._secret, algorithm=ALGORITHM)

    def verify(self, token: str | None) -> str:
        """Return the identity carried by ``token``.

        Raises:
            UnauthenticatedError: No token supplied.
            InvalidTokenError: Malformed, tampered, or expired token.
        """
        if not token:
            raise UnauthenticatedError(
                code="authentication_required",
                message="Authentication token required",
            )

        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[ALGORITHM],
                options={"require": ["exp", "iat", IDENTITY_CLAIM]},
            )
        except jwt.ExpiredSignatureError as exc:
            logger.info("auth.token_expired")
            raise InvalidTokenError(code="token_expired", message="Invalid or expired token") from exc
        except jwt.InvalidTokenError as exc:
            logger.warning("auth.token_rejected", extra={"reason": type(exc).__name__})
            raise InvalidTokenError(code="invalid_token", message="Invalid or expired token") from exc

        identity = payload[IDENTITY_CLAIM]
        if not isinstance(identity, str) or not identity:
            logger.warning("auth.token_rejected", extra={"reason": "bad_identity_claim"})
            raise InvalidTokenError(code="invalid_token", message="Invalid or expired token")
        return identity

"""Rate limiting dependencies for FastAPI routes.

This module wires the rate limiting adapters into the HTTP layer.

Two independently configured limiter classes exist:
- ``login``: tight budget, keyed by client IP (identity unknown before auth)
- ``sales``: looser budget, keyed by ``<ip>_<identity>`` once authenticated

The counter store is shared (Redis) unless RATE_LIMIT_BACKEND=memory.
When the store is unreachable requests are rejected, never admitted.
"""

from __future__ import annotations

import hashlib
import logging
from typing import Annotated

from fastapi import Depends, Request
from redis.asyncio import Redis

from sales_api.adapters.rate_limit.base import AbstractRateLimiter
from sales_api.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter
from sales_api.adapters.rate_limit.redis_store import RedisFixedWindowRateLimiter
from sales_api.core.auth import require_identity
from sales_api.core.config import settings
from sales_api.core.errors import RateLimitedError

logger = logging.getLogger(__name__)

LOGIN_LIMITER = "login"
SALES_LIMITER = "sales"

_KEY_PREFIXES = {
    LOGIN_LIMITER: "login_limit",
    SALES_LIMITER: "sales_limit",
}

_redis_client: Redis | None = None
_limiters: dict[str, AbstractRateLimiter] = {}


def get_redis_client() -> Redis:
    """Return the process-wide Redis client, creating it on first use."""

    global _redis_client

    if _redis_client is None:
        cfg = settings.redis
        _redis_client = Redis(
            host=cfg.host,
            port=cfg.port,
            db=cfg.db,
            password=cfg.password,
            socket_timeout=cfg.socket_timeout_seconds,
            socket_connect_timeout=cfg.socket_timeout_seconds,
            retry_on_timeout=False,
            decode_responses=True,
        )
    return _redis_client


def _policy(limiter_class: str) -> tuple[int, int]:
    cfg = settings.rate_limit
    if limiter_class == LOGIN_LIMITER:
        return cfg.login_attempt, cfg.login_duration
    if limiter_class == SALES_LIMITER:
        return cfg.sale_attempt, cfg.sale_duration
    raise ValueError(f"unknown limiter class: {limiter_class!r}")


def build_rate_limiter(limiter_class: str) -> AbstractRateLimiter:
    """Construct a limiter for ``limiter_class`` from current settings."""

    points, duration = _policy(limiter_class)
    key_prefix = _KEY_PREFIXES[limiter_class]

    if settings.rate_limit.rate_limit_backend == "memory":
        return InMemoryFixedWindowRateLimiter(key_prefix=key_prefix, points=points, duration=duration)

    return RedisFixedWindowRateLimiter(
        get_redis_client(),
        key_prefix=key_prefix,
        points=points,
        duration=duration,
    )


def get_rate_limiter(limiter_class: str) -> AbstractRateLimiter:
    """Return the cached limiter for a class, building it on first use.

    The configuration is fixed at startup, so instances live for the whole
    process.
    """

    limiter = _limiters.get(limiter_class)
    if limiter is None:
        limiter = build_rate_limiter(limiter_class)
        _limiters[limiter_class] = limiter
    return limiter


def get_login_limiter() -> AbstractRateLimiter:
    """FastAPI dependency returning the login limiter (keyed by client IP).

    Returns:
        The process-wide limiter built from LOGIN_ATTEMPT and LOGIN_DURATION.
    """

    return get_rate_limiter(LOGIN_LIMITER)


def get_sales_limiter() -> AbstractRateLimiter:
    """FastAPI dependency returning the sales limiter (keyed by IP and identity).

    Returns:
        The process-wide limiter built from SALE_ATTEMPT and SALE_DURATION.
    """

    return get_rate_limiter(SALES_LIMITER)


async def close_rate_limiters() -> None:
    """Close limiter backends and the shared Redis connection.

    Called from the application lifespan once in-flight requests have drained.
    """

    global _redis_client

    for limiter in _limiters.values():
        await limiter.close()
    _limiters.clear()

    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None
        logger.info("rate_limit.store_closed")


def client_ip(request: Request) -> str:
    """Best-effort caller IP used as the base of every client key."""

    if settings.rate_limit.rate_limit_trust_forwarded_for:
        forwarded = request.headers.get("x-forwarded-for", "")
        first_hop = forwarded.split(",")[0].strip()
        if first_hop:
            return first_hop

    return request.client.host if request.client else "unknown"


def _hash_limiter_key(key: str) -> str:
    """Hash the client key for logging without exposing IPs/usernames."""
    return hashlib.sha256(key.encode()).hexdigest()[:16]


async def _enforce(limiter: AbstractRateLimiter, client_key: str) -> None:
    """Consume one point for ``client_key`` or raise RateLimitedError."""

    result = await limiter.consume(client_key)
    key_hash = _hash_limiter_key(client_key)

    if result.allowed:
        logger.debug(
            "rate_limit.allowed",
            extra={
                "limiter": limiter.key_prefix,
                "key_hash": key_hash,
                "limit": result.limit,
                "remaining": result.remaining,
            },
        )
        return

    retry_after = result.retry_after_seconds or limiter.duration
    logger.warning(
        "rate_limit.exceeded",
        extra={
            "limiter": limiter.key_prefix,
            "key_hash": key_hash,
            "limit": result.limit,
            "window_s": limiter.duration,
            "retry_after_s": retry_after,
        },
    )
    raise RateLimitedError(
        code="rate_limited",
        message="Too Many Requests",
        details={
            "retry_after": retry_after,
            "limit": result.limit,
            "remaining": result.remaining,
            "reset_at": result.reset_at,
            "limiter": limiter.key_prefix,
        },
    )


async def enforce_login_rate_limit(
    request: Request,
    limiter: Annotated[AbstractRateLimiter, Depends(get_login_limiter)],
) -> None:
    """FastAPI dependency throttling login attempts per client IP.

    Args:
        request: Incoming request; its client address is the limiter key.
        limiter: Login limiter.

    Raises:
        RateLimitedError: The IP exhausted its login budget (429).
        LimiterUnavailableError: Counter store unreachable (503).

    Example:
        @router.post("/login", dependencies=[Depends(enforce_login_rate_limit)])
    """

    await _enforce(limiter, client_ip(request))


async def enforce_sales_rate_limit(
    request: Request,
    identity: Annotated[str, Depends(require_identity)],
    limiter: Annotated[AbstractRateLimiter, Depends(get_sales_limiter)],
) -> None:
    """FastAPI dependency throttling data requests per client IP and identity.

    Depends on ``require_identity`` so the token is verified first and the
    resolved identity is threaded explicitly into the client key.

    Raises:
        RateLimitedError: The IP and identity pair exhausted its budget (429).
        LimiterUnavailableError: Counter store unreachable (503).
    """

    await _enforce(limiter, f"{client_ip(request)}_{identity}")

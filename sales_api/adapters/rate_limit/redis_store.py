"""Redis-backed fixed-window rate limiter.

Each key holds the number of points consumed in its current window and
expires ``duration`` seconds after the first consumption. Increment, TTL
initialization and TTL read happen inside one Lua script, so concurrent
requests against the same key can never both observe spare budget.
"""

from __future__ import annotations

import logging
import math
import time
from typing import Callable

from redis.asyncio import Redis
from redis.exceptions import RedisError

from sales_api.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult
from sales_api.core.errors import LimiterUnavailableError

logger = logging.getLogger(__name__)

# KEYS[1] bucket key; ARGV[1] cost; ARGV[2] window in milliseconds.
# Returns {consumed, pttl_ms}.
CONSUME_SCRIPT = """
local consumed = redis.call('INCRBY', KEYS[1], ARGV[1])
local ttl = redis.call('PTTL', KEYS[1])
if ttl < 0 then
  redis.call('PEXPIRE', KEYS[1], ARGV[2])
  ttl = tonumber(ARGV[2])
end
return {consumed, ttl}
"""


class RedisFixedWindowRateLimiter(AbstractRateLimiter):
    """Limiter sharing its counters across every API process through Redis."""

    def __init__(
        self,
        client: Redis,
        *,
        key_prefix: str,
        points: int,
        duration: int,
        clock: Callable[[], float] = time.time,
    ) -> None:
        super().__init__(key_prefix=key_prefix, points=points, duration=duration)
        self._client = client
        self._clock = clock
        self._script = client.register_script(CONSUME_SCRIPT)

    async def _consume(self, storage_key: str, cost: int) -> RateLimitResult:
        try:
            consumed, ttl_ms = await self._script(
                keys=[storage_key],
                args=[cost, self.duration * 1000],
            )
        except (RedisError, OSError) as exc:
            logger.error(
                "rate_limit.store_unavailable",
                extra={
                    "limiter": self.key_prefix,
                    "error_type": type(exc).__name__,
                    "error_msg": str(exc),
                },
            )
            raise LimiterUnavailableError(
                code="rate_limiter_unavailable",
                message="Service temporarily unavailable",
            ) from exc

        consumed = int(consumed)
        ttl_ms = int(ttl_ms)
        now = self._clock()
        # PTTL has coarse resolution; fall back to the full window when unknown.
        retry_after = int(math.ceil(ttl_ms / 1000)) if ttl_ms > 0 else self.duration
        reset_at = int(math.ceil(now + retry_after))

        remaining = self.points - consumed
        if remaining >= 0:
            return RateLimitResult(
                allowed=True,
                limit=self.points,
                remaining=remaining,
                reset_at=reset_at,
                retry_after_seconds=None,
            )

        return RateLimitResult(
            allowed=False,
            limit=self.points,
            remaining=0,
            reset_at=reset_at,
            retry_after_seconds=max(1, retry_after),
        )

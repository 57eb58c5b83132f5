"""In-memory fixed-window rate limiter.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: uses a lock around shared state, and never awaits while holding it.
"""

from __future__ import annotations

import math
import threading
import time
from dataclasses import dataclass
from typing import Callable

from sales_api.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult


@dataclass
class _Bucket:
    consumed: int
    expires_at: float


class InMemoryFixedWindowRateLimiter(AbstractRateLimiter):
    """Counter-with-expiry limiter mirroring the Redis backend semantics.

    The window of a key opens on its first consumption and lasts ``duration``
    seconds, exactly like a Redis key created with a TTL.
    """

    def __init__(
        self,
        *,
        key_prefix: str,
        points: int,
        duration: int,
        clock: Callable[[], float] = time.time,
    ) -> None:
        super().__init__(key_prefix=key_prefix, points=points, duration=duration)
        self._clock = clock
        self._lock = threading.RLock()
        self._buckets: dict[str, _Bucket] = {}

    def _live_bucket(self, storage_key: str, now: float) -> _Bucket:
        bucket = self._buckets.get(storage_key)
        if bucket is None or bucket.expires_at <= now:
            bucket = _Bucket(consumed=0, expires_at=now + self.duration)
            self._buckets[storage_key] = bucket
        return bucket

    def _evict_expired(self, now: float) -> None:
        expired = [k for k, b in self._buckets.items() if b.expires_at <= now]
        for k in expired:
            del self._buckets[k]

    async def _consume(self, storage_key: str, cost: int) -> RateLimitResult:
        now = self._clock()

        with self._lock:
            if len(self._buckets) > 10_000:
                self._evict_expired(now)

            bucket = self._live_bucket(storage_key, now)
            bucket.consumed += cost
            remaining = self.points - bucket.consumed
            reset_at = int(math.ceil(bucket.expires_at))

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
                retry_after_seconds=max(1, int(math.ceil(bucket.expires_at - now))),
            )

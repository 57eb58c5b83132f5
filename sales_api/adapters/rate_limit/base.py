"""Rate limiter interfaces.

The API depends on this abstraction (not the concrete implementation) so the
counter store can be Redis in production and in-process memory in tests.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class RateLimitResult:
    """Result of a consume operation.

    Attributes:
        allowed: Whether the request is allowed to proceed.
        limit: Max points per window.
        remaining: Points left in the current window (0 when blocked).
        reset_at: UNIX epoch seconds when the current window resets.
        retry_after_seconds: Suggested wait time in seconds when blocked.
    """

    allowed: bool
    limit: int
    remaining: int
    reset_at: int
    retry_after_seconds: int | None


class AbstractRateLimiter(ABC):
    """Fixed-window limiter allotting ``points`` per ``duration`` seconds per key.

    Implementations must make check-and-consume a single atomic step.
    """

    def __init__(self, *, key_prefix: str, points: int, duration: int) -> None:
        if points < 1:
            raise ValueError("points must be >= 1")
        if duration < 1:
            raise ValueError("duration must be >= 1")
        if not key_prefix:
            raise ValueError("key_prefix must be a non-empty string")

        self.key_prefix = key_prefix
        self.points = points
        self.duration = duration

    def storage_key(self, key: str) -> str:
        return f"{self.key_prefix}:{key}"

    async def consume(self, key: str, *, cost: int = 1) -> RateLimitResult:
        """Consume rate limit budget for a given key.

        Args:
            key: Client key (IP, or IP plus identity).
            cost: Points to consume (default 1).

        Returns:
            RateLimitResult describing whether it was allowed.

        Raises:
            ValueError: If key is empty or cost is invalid.
            LimiterUnavailableError: If the counter store cannot be reached.
        """
        if cost < 1:
            raise ValueError("cost must be >= 1")
        if not key:
            raise ValueError("key must be a non-empty string")
        return await self._consume(self.storage_key(key), cost)

    @abstractmethod
    async def _consume(self, storage_key: str, cost: int) -> RateLimitResult:
        raise NotImplementedError

    async def close(self) -> None:
        """Release backend resources (no-op by default)."""

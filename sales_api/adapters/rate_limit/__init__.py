"""Rate limiting adapters.

A small abstraction layer so the API can run against Redis in production and
an in-process counter in development and tests without changing the HTTP layer.
"""

from sales_api.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult
from sales_api.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter
from sales_api.adapters.rate_limit.redis_store import RedisFixedWindowRateLimiter

__all__ = [
    "AbstractRateLimiter",
    "InMemoryFixedWindowRateLimiter",
    "RateLimitResult",
    "RedisFixedWindowRateLimiter",
]

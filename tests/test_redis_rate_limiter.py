"""Unit tests for the Redis-backed rate limiter.

A small stand-in client emulates the consume script (INCRBY + PTTL +
PEXPIRE on first hit) with a controllable clock, so the limiter logic is
exercised without a running Redis server.
"""

from unittest.mock import AsyncMock, Mock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError

from sales_api.adapters.rate_limit.redis_store import CONSUME_SCRIPT, RedisFixedWindowRateLimiter
from sales_api.core.errors import LimiterUnavailableError


class ScriptedRedis:
    """Minimal async Redis stand-in evaluating the consume script in-process."""

    def __init__(self, clock: Mock) -> None:
        self.clock = clock
        self.counters: dict[str, int] = {}
        self.expiry_ms: dict[str, float] = {}
        self.registered: list[str] = []

    def _expire_stale(self, key: str) -> None:
        deadline = self.expiry_ms.get(key)
        if deadline is not None and deadline <= self.clock() * 1000:
            self.counters.pop(key, None)
            self.expiry_ms.pop(key, None)

    def register_script(self, script: str):
        self.registered.append(script)

        async def run(keys, args):
            key = keys[0]
            cost, window_ms = int(args[0]), int(args[1])
            self._expire_stale(key)
            self.counters[key] = self.counters.get(key, 0) + cost
            if key not in self.expiry_ms:
                self.expiry_ms[key] = self.clock() * 1000 + window_ms
            ttl = int(self.expiry_ms[key] - self.clock() * 1000)
            return [self.counters[key], ttl]

        return run


@pytest.fixture
def clock() -> Mock:
    return Mock(return_value=1000.0)


@pytest.fixture
def redis_client(clock: Mock) -> ScriptedRedis:
    return ScriptedRedis(clock)


@pytest.fixture
def limiter(redis_client: ScriptedRedis, clock: Mock) -> RedisFixedWindowRateLimiter:
    return RedisFixedWindowRateLimiter(redis_client, key_prefix="login_limit", points=3, duration=60, clock=clock)


def test_registers_consume_script(limiter, redis_client: ScriptedRedis) -> None:
    assert redis_client.registered == [CONSUME_SCRIPT]


@pytest.mark.asyncio
async def test_three_allowed_fourth_blocked(limiter) -> None:
    results = [await limiter.consume("10.0.0.1") for _ in range(4)]

    assert [r.allowed for r in results] == [True, True, True, False]
    assert [r.remaining for r in results] == [2, 1, 0, 0]


@pytest.mark.asyncio
async def test_counter_key_uses_prefix(limiter, redis_client: ScriptedRedis) -> None:
    await limiter.consume("10.0.0.1_admin")
    assert "login_limit:10.0.0.1_admin" in redis_client.counters


@pytest.mark.asyncio
async def test_retry_after_derived_from_ttl(limiter, clock: Mock) -> None:
    for _ in range(3):
        await limiter.consume("ip")

    clock.return_value = 1020.5
    blocked = await limiter.consume("ip")

    assert blocked.allowed is False
    assert blocked.retry_after_seconds == 40


@pytest.mark.asyncio
async def test_retry_after_falls_back_to_duration_when_ttl_unknown(clock: Mock) -> None:
    client = Mock()
    client.register_script.return_value = AsyncMock(return_value=[5, -1])
    limiter = RedisFixedWindowRateLimiter(client, key_prefix="sales_limit", points=3, duration=60, clock=clock)

    blocked = await limiter.consume("ip")

    assert blocked.allowed is False
    assert blocked.retry_after_seconds == 60


@pytest.mark.asyncio
async def test_budget_returns_after_window(limiter, clock: Mock) -> None:
    for _ in range(4):
        await limiter.consume("ip")

    clock.return_value = 1061.0
    assert (await limiter.consume("ip")).allowed is True


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error",
    [RedisConnectionError("connection refused"), RedisTimeoutError("timed out"), OSError("network down")],
)
async def test_store_failure_rejects_instead_of_admitting(clock: Mock, error: Exception) -> None:
    client = Mock()
    client.register_script.return_value = AsyncMock(side_effect=error)
    limiter = RedisFixedWindowRateLimiter(client, key_prefix="login_limit", points=3, duration=60, clock=clock)

    with pytest.raises(LimiterUnavailableError) as exc_info:
        await limiter.consume("ip")

    assert exc_info.value.code == "rate_limiter_unavailable"
    assert "refused" not in exc_info.value.message

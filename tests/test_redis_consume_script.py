"""Runs the Redis limiter's Lua consume script on fakeredis (with Lua support).

These tests exercise the script itself: counter and TTL changes happen in
one atomic step, and the window is armed on the key's first hit.
"""

import asyncio

import fakeredis
import pytest

from sales_api.adapters.rate_limit.redis_store import RedisFixedWindowRateLimiter


def _client() -> fakeredis.FakeAsyncRedis:
    return fakeredis.FakeAsyncRedis(server=fakeredis.FakeServer(), decode_responses=True)


def _limiter(client, points: int = 3, duration: int = 60) -> RedisFixedWindowRateLimiter:
    return RedisFixedWindowRateLimiter(client, key_prefix="login_limit", points=points, duration=duration)


@pytest.mark.asyncio
async def test_concurrent_consumes_admit_exactly_points() -> None:
    client = _client()
    limiter = _limiter(client)

    results = await asyncio.gather(*(limiter.consume("10.0.0.1") for _ in range(10)))

    assert sum(r.allowed for r in results) == 3
    assert [r.retry_after_seconds for r in results if not r.allowed] == [60] * 7
    assert int(await client.get("login_limit:10.0.0.1")) == 10


@pytest.mark.asyncio
async def test_first_hit_arms_window_ttl() -> None:
    client = _client()
    limiter = _limiter(client)

    await limiter.consume("10.0.0.1")
    ttl_ms = await client.pttl("login_limit:10.0.0.1")

    assert 59_000 < ttl_ms <= 60_000


@pytest.mark.asyncio
async def test_later_hits_do_not_extend_window() -> None:
    client = _client()
    limiter = _limiter(client)

    await limiter.consume("10.0.0.1")
    await client.pexpire("login_limit:10.0.0.1", 5_000)
    await limiter.consume("10.0.0.1")

    assert await client.pttl("login_limit:10.0.0.1") <= 5_000


@pytest.mark.asyncio
async def test_key_without_ttl_is_rearmed() -> None:
    client = _client()
    limiter = _limiter(client)

    await client.set("login_limit:10.0.0.1", 7)
    result = await limiter.consume("10.0.0.1")

    assert result.allowed is False
    assert result.retry_after_seconds == 60
    assert 59_000 < await client.pttl("login_limit:10.0.0.1") <= 60_000


@pytest.mark.asyncio
async def test_expired_window_starts_fresh() -> None:
    client = _client()
    limiter = _limiter(client, points=1, duration=1)

    assert (await limiter.consume("ip")).allowed is True
    assert (await limiter.consume("ip")).allowed is False

    await client.pexpire("login_limit:ip", 1)
    await asyncio.sleep(0.05)

    assert (await limiter.consume("ip")).allowed is True


@pytest.mark.asyncio
async def test_cost_consumes_multiple_points() -> None:
    client = _client()
    limiter = _limiter(client, points=5)

    result = await limiter.consume("ip", cost=4)

    assert result.allowed is True
    assert result.remaining == 1
    assert (await limiter.consume("ip", cost=2)).allowed is False

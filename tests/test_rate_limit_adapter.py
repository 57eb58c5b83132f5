"""Unit tests for the in-memory fixed-window rate limiter."""

import asyncio
from unittest.mock import Mock

import pytest

from sales_api.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter


def _limiter(points: int = 3, duration: int = 60, now: float = 1000.0):
    clock = Mock(return_value=now)
    return InMemoryFixedWindowRateLimiter(key_prefix="test", points=points, duration=duration, clock=clock), clock


@pytest.mark.asyncio
async def test_allows_exactly_points_then_blocks() -> None:
    limiter, _ = _limiter(points=3, duration=60)

    results = [await limiter.consume("k") for _ in range(4)]

    assert [r.allowed for r in results] == [True, True, True, False]
    assert [r.remaining for r in results] == [2, 1, 0, 0]


@pytest.mark.asyncio
async def test_blocked_result_reports_retry_after() -> None:
    limiter, clock = _limiter(points=1, duration=60)

    assert (await limiter.consume("k")).allowed is True
    clock.return_value = 1015.0
    blocked = await limiter.consume("k")

    assert blocked.allowed is False
    assert blocked.retry_after_seconds == 45
    assert blocked.reset_at == 1060


@pytest.mark.asyncio
async def test_window_elapses_and_budget_returns() -> None:
    limiter, clock = _limiter(points=3, duration=60)

    for _ in range(3):
        assert (await limiter.consume("k")).allowed is True
    assert (await limiter.consume("k")).allowed is False

    clock.return_value = 1060.0
    result = await limiter.consume("k")
    assert result.allowed is True
    assert result.remaining == 2


@pytest.mark.asyncio
async def test_isolated_by_key() -> None:
    limiter, _ = _limiter(points=1)

    assert (await limiter.consume("k1")).allowed is True
    assert (await limiter.consume("k1")).allowed is False
    assert (await limiter.consume("k2")).allowed is True


@pytest.mark.asyncio
async def test_keys_are_namespaced_by_prefix() -> None:
    clock = Mock(return_value=1000.0)
    login = InMemoryFixedWindowRateLimiter(key_prefix="login_limit", points=1, duration=60, clock=clock)

    assert login.storage_key("1.2.3.4") == "login_limit:1.2.3.4"


@pytest.mark.asyncio
async def test_concurrent_consumers_never_exceed_points() -> None:
    limiter, _ = _limiter(points=5, duration=60)

    results = await asyncio.gather(*(limiter.consume("hot") for _ in range(50)))

    assert sum(r.allowed for r in results) == 5


@pytest.mark.parametrize(
    "kwargs",
    [
        {"key_prefix": "p", "points": 0, "duration": 60},
        {"key_prefix": "p", "points": 1, "duration": 0},
        {"key_prefix": "", "points": 1, "duration": 60},
    ],
)
def test_invalid_constructor_args(kwargs: dict) -> None:
    with pytest.raises(ValueError):
        InMemoryFixedWindowRateLimiter(**kwargs)


@pytest.mark.asyncio
async def test_invalid_consume_args() -> None:
    limiter, _ = _limiter()

    with pytest.raises(ValueError):
        await limiter.consume("")

    with pytest.raises(ValueError):
        await limiter.consume("k", cost=0)

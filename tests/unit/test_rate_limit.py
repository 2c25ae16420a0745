import asyncio

import pytest

from pulse.core.rate_limit import InMemoryRateLimiter, RateLimitRule


@pytest.mark.asyncio
async def test_rate_limiter_blocks_after_limit() -> None:
    limiter = InMemoryRateLimiter()
    rule = RateLimitRule(limit=2, window_seconds=60)

    assert await limiter.allow("asha@pulse.local", rule)
    assert await limiter.allow("asha@pulse.local", rule)
    assert not await limiter.allow("asha@pulse.local", rule)


@pytest.mark.asyncio
async def test_rate_limiter_resets_after_window() -> None:
    limiter = InMemoryRateLimiter()
    rule = RateLimitRule(limit=1, window_seconds=1)

    assert await limiter.allow("rohan@pulse.local", rule)
    assert not await limiter.allow("rohan@pulse.local", rule)

    await asyncio.sleep(1.05)
    assert await limiter.allow("rohan@pulse.local", rule)


@pytest.mark.asyncio
async def test_reset_clears_only_the_given_key() -> None:
    limiter = InMemoryRateLimiter()
    rule = RateLimitRule(limit=1, window_seconds=60)

    assert await limiter.allow("a", rule)
    assert await limiter.allow("b", rule)

    await limiter.reset("a")

    assert await limiter.allow("a", rule)
    assert not await limiter.allow("b", rule)


@pytest.mark.asyncio
async def test_expired_keys_are_dropped() -> None:
    limiter = InMemoryRateLimiter()
    rule = RateLimitRule(limit=5, window_seconds=1)

    for index in range(10):
        assert await limiter.allow(f"user-{index}@pulse.local", rule)
    assert len(limiter) == 10

    await asyncio.sleep(1.05)
    assert await limiter.allow("late@pulse.local", rule)

    assert len(limiter) == 1

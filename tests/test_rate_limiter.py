"""Tests for the token bucket rate limiter."""
import pytest

from casework_sync.infrastructure.integrations.caseworker.rate_limiter import (
    TokenBucketRateLimiter,
)


class FakeClock:
    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def __call__(self):
        return self.now

    async def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


class TestTokenBucketRateLimiter:

    @pytest.mark.asyncio
    async def test_burst_up_to_capacity_without_waiting(self, clock):
        limiter = TokenBucketRateLimiter(5, clock=clock, sleep=clock.sleep)

        for _ in range(5):
            await limiter.acquire()

        assert clock.sleeps == []
        assert limiter.available == pytest.approx(0)

    @pytest.mark.asyncio
    async def test_waits_for_refill_when_empty(self, clock):
        limiter = TokenBucketRateLimiter(2, capacity=1, clock=clock, sleep=clock.sleep)

        await limiter.acquire()
        await limiter.acquire()

        assert clock.sleeps == [pytest.approx(0.5)]

    @pytest.mark.asyncio
    async def test_refill_is_capped(self, clock):
        limiter = TokenBucketRateLimiter(10, clock=clock, sleep=clock.sleep)
        await limiter.acquire()

        clock.now += 60

        assert limiter.available == pytest.approx(10)

    def test_rate_must_be_positive(self):
        with pytest.raises(ValueError):
            TokenBucketRateLimiter(0)

"""
Tests for the token bucket throttle
"""
import pytest

from utils.rate_limiter import TokenBucket


class FakeClock:
    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


class TestTokenBucket:
    """TokenBucket"""

    def test_first_call_is_free(self):
        clock = FakeClock()
        bucket = TokenBucket(rate=2.0, capacity=1, clock=clock, sleep=clock.sleep)
        assert bucket.acquire() == 0.0
        assert clock.sleeps == []

    def test_calls_are_spaced(self):
        """With no burst, calls are spaced 1/rate apart"""
        clock = FakeClock()
        bucket = TokenBucket(rate=2.0, capacity=1, clock=clock, sleep=clock.sleep)
        for _ in range(4):
            bucket.acquire()
        assert clock.now == pytest.approx(1.5)

    def test_refill_after_idle(self):
        clock = FakeClock()
        bucket = TokenBucket(rate=1.0, capacity=1, clock=clock, sleep=clock.sleep)
        bucket.acquire()
        clock.now += 5
        assert bucket.try_acquire()
        assert not bucket.try_acquire()

    def test_burst_capacity(self):
        clock = FakeClock()
        bucket = TokenBucket(rate=1.0, capacity=3, clock=clock, sleep=clock.sleep)
        assert [bucket.try_acquire() for _ in range(4)] == [True, True, True, False]

    def test_from_config(self, config):
        """120 requests per minute is two per second with no burst"""
        bucket = TokenBucket.from_config(config)
        assert bucket.rate == pytest.approx(2.0)
        assert bucket.capacity == 1.0

    @pytest.mark.parametrize("rate,capacity", [(0, 1), (-1, 1), (1, 0.5)])
    def test_invalid_settings(self, rate, capacity):
        with pytest.raises(ValueError):
            TokenBucket(rate=rate, capacity=capacity)

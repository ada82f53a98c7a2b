"""
Tests for the in-memory fixed-window rate limiter.
"""

from matching.logic.rate_limiter import RateLimiter


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def test_allows_up_to_limit_then_blocks():
    limiter = RateLimiter(max_requests=10, window_seconds=60, clock=FakeClock())

    results = [limiter.is_rate_limited("1.2.3.4") for _ in range(11)]

    assert results[:10] == [False] * 10
    assert results[10] is True


def test_window_expiry_resets_counter():
    clock = FakeClock()
    limiter = RateLimiter(max_requests=2, window_seconds=60, clock=clock)

    assert not limiter.is_rate_limited("ip")
    assert not limiter.is_rate_limited("ip")
    assert limiter.is_rate_limited("ip")

    clock.now += 60
    assert not limiter.is_rate_limited("ip")


def test_keys_are_independent():
    limiter = RateLimiter(max_requests=1, window_seconds=60, clock=FakeClock())

    assert not limiter.is_rate_limited("a")
    assert limiter.is_rate_limited("a")
    assert not limiter.is_rate_limited("b")


def test_reset_clears_state():
    limiter = RateLimiter(max_requests=1, window_seconds=60, clock=FakeClock())
    limiter.is_rate_limited("a")

    limiter.reset()

    assert not limiter.is_rate_limited("a")

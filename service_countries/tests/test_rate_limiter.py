"""
Unit tests for the fixed window rate limiter.
"""

import pytest

from service_countries.app.ratelimit.fixed_window import FixedWindowRateLimiter


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class TestFixedWindowRateLimiter:
    """Test cases for FixedWindowRateLimiter."""

    @pytest.fixture
    def clock(self):
        return FakeClock()

    @pytest.fixture
    def rate_limiter(self, clock):
        """Limiter allowing 3 requests per 60 second window."""
        return FixedWindowRateLimiter(max_requests=3, window_seconds=60, clock=clock)

    def test_allows_exactly_max_requests(self, rate_limiter):
        """The first ``max`` requests pass and the next one is rejected."""
        decisions = [rate_limiter.check("10.0.0.1") for _ in range(4)]

        assert [d.allowed for d in decisions] == [True, True, True, False]
        assert [d.count for d in decisions] == [1, 2, 3, 4]
        assert decisions[2].remaining == 0
        assert decisions[3].remaining == 0

    def test_rejection_reports_retry_after(self, rate_limiter, clock):
        """Rejected requests learn when the window resets."""
        for _ in range(3):
            rate_limiter.check("10.0.0.1")
        clock.advance(20)

        decision = rate_limiter.check("10.0.0.1")

        assert decision.allowed is False
        assert decision.retry_after_seconds == 40
        assert decision.limit == 3

    def test_window_elapsed_resets_count(self, rate_limiter, clock):
        """After the window elapses the next request starts a fresh bucket."""
        for _ in range(4):
            rate_limiter.check("10.0.0.1")

        clock.advance(61)
        decision = rate_limiter.check("10.0.0.1")

        assert decision.allowed is True
        assert decision.count == 1
        assert decision.remaining == 2

    def test_window_boundary_is_still_inside(self, rate_limiter, clock):
        """The bucket resets only once the window end has been passed."""
        for _ in range(3):
            rate_limiter.check("10.0.0.1")

        clock.advance(60)
        at_boundary = rate_limiter.check("10.0.0.1")
        clock.advance(0.5)
        after_boundary = rate_limiter.check("10.0.0.1")

        assert at_boundary.allowed is False
        assert at_boundary.count == 4
        assert after_boundary.allowed is True
        assert after_boundary.count == 1

    def test_identities_are_independent(self, rate_limiter):
        """Each client identity has its own bucket."""
        for _ in range(3):
            rate_limiter.check("10.0.0.1")

        assert rate_limiter.check("10.0.0.1").allowed is False
        assert rate_limiter.check("10.0.0.2").allowed is True
        assert len(rate_limiter) == 2

    def test_count_keeps_growing_within_window(self, rate_limiter, clock):
        """Rejected requests still count until the boundary is crossed."""
        for _ in range(5):
            rate_limiter.check("10.0.0.1")
        clock.advance(30)

        decision = rate_limiter.check("10.0.0.1")

        assert decision.allowed is False
        assert decision.count == 6

    def test_invalid_configuration(self):
        """Non-positive limits are rejected at construction."""
        with pytest.raises(ValueError):
            FixedWindowRateLimiter(max_requests=0)
        with pytest.raises(ValueError):
            FixedWindowRateLimiter(window_seconds=0)

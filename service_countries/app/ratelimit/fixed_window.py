"""
Fixed window rate limiter for the Countries gateway.
"""

import time
from dataclasses import dataclass
from typing import Callable, Dict

from shared.logging import get_logger


@dataclass
class RateLimitBucket:
    """Request count for one identity inside the current window."""

    identity: str
    window_start: float
    count: int


@dataclass(frozen=True)
class RateLimitDecision:
    """Outcome of a single rate limit check."""

    allowed: bool
    limit: int
    count: int
    remaining: int
    retry_after_seconds: int


class FixedWindowRateLimiter:
    """In-process fixed window counter keyed by client identity.

    The bucket map lives for the process lifetime. Access happens on the event
    loop thread only, so no locking is needed.
    """

    def __init__(self,
                 max_requests: int = 100,
                 window_seconds: float = 15 * 60,
                 clock: Callable[[], float] = time.monotonic):
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._buckets: Dict[str, RateLimitBucket] = {}
        self.logger = get_logger("countries.rate_limiter")

    def check(self, identity: str) -> RateLimitDecision:
        """Count one request for ``identity`` and decide whether it may proceed."""
        now = self._clock()
        bucket = self._buckets.get(identity)

        if bucket is None or now - bucket.window_start > self.window_seconds:
            bucket = RateLimitBucket(identity=identity, window_start=now, count=1)
            self._buckets[identity] = bucket
        else:
            bucket.count += 1

        reset_in = max(0, int(round(bucket.window_start + self.window_seconds - now)))

        if bucket.count > self.max_requests:
            self.logger.warning(
                "Rate limit exceeded",
                client_id=identity,
                current_count=bucket.count,
                limit=self.max_requests
            )
            return RateLimitDecision(
                allowed=False,
                limit=self.max_requests,
                count=bucket.count,
                remaining=0,
                retry_after_seconds=max(1, reset_in)
            )

        return RateLimitDecision(
            allowed=True,
            limit=self.max_requests,
            count=bucket.count,
            remaining=self.max_requests - bucket.count,
            retry_after_seconds=reset_in
        )

    def __len__(self) -> int:
        return len(self._buckets)

"""
Rate limiting package for the Countries gateway.

Holds the fixed window counter that enforces a per-identity request budget.
"""

from .fixed_window import FixedWindowRateLimiter, RateLimitDecision

__all__ = [
    "FixedWindowRateLimiter",
    "RateLimitDecision",
]

"""
Gateway caching package.

Provides the in-process response cache used to shield the upstream countries
provider from repeated identical queries. Entries are short-lived and expire
by TTL; there is no explicit invalidation.
"""

from .cache_store import CacheEntry, CacheStore, make_cache_key

__all__ = [
    "CacheEntry",
    "CacheStore",
    "make_cache_key",
]

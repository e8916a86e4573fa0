"""
In-process response cache for the Countries gateway.
"""

import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional
from urllib.parse import urlencode

from shared.logging import get_logger


@dataclass(frozen=True)
class CacheEntry:
    """A cached response body and its expiry parameters."""

    key: str
    value: bytes
    created_at: float
    ttl_seconds: int

    def is_expired(self, now: float) -> bool:
        return now - self.created_at > self.ttl_seconds


def make_cache_key(method: str, path: str, params: Optional[Mapping[str, Any]] = None) -> str:
    """Build the request fingerprint used as cache key.

    Parameter names are lower-cased and sorted; empty values are dropped so
    ``?search=`` and no ``search`` at all share an entry. Values are taken
    verbatim, callers pass them already normalized.
    """
    normalized = []
    for name, value in (params or {}).items():
        if value is None:
            continue
        text = str(value).strip()
        if not text:
            continue
        normalized.append((str(name).strip().lower(), text))
    normalized.sort()

    normalized_path = path.rstrip("/").lower() or "/"
    return f"{method.upper()} {normalized_path}?{urlencode(normalized)}"


class CacheStore:
    """TTL cache mapping request fingerprints to serialized response bodies.

    Expiry is checked lazily on ``get``. Once ``max_entries`` is exceeded,
    ``put`` sweeps expired entries and then evicts the oldest ones.
    """

    def __init__(self, max_entries: Optional[int] = 1000, clock: Callable[[], float] = time.monotonic):
        self.max_entries = max_entries
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._hits = 0
        self._misses = 0
        self.logger = get_logger("countries.cache")

    def get(self, key: str) -> Optional[bytes]:
        """Return the cached body for ``key``, or None when absent or expired."""
        entry = self._entries.get(key)
        if entry is None:
            self._misses += 1
            return None

        if entry.is_expired(self._clock()):
            del self._entries[key]
            self._misses += 1
            self.logger.debug("Cache entry expired", key=key)
            return None

        self._hits += 1
        return entry.value

    def put(self, key: str, value: bytes, ttl_seconds: int) -> None:
        """Store ``value`` under ``key``, replacing any previous entry."""
        # Re-inserting moves the key to the end of the eviction order.
        self._entries.pop(key, None)
        self._entries[key] = CacheEntry(
            key=key,
            value=bytes(value),
            created_at=self._clock(),
            ttl_seconds=ttl_seconds
        )

        if self.max_entries is not None and len(self._entries) > self.max_entries:
            self.sweep()
            while len(self._entries) > self.max_entries:
                oldest = next(iter(self._entries))
                del self._entries[oldest]
                self.logger.debug("Cache entry evicted", key=oldest)

    def sweep(self) -> int:
        """Drop every expired entry and return how many were removed."""
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
        for key in expired:
            del self._entries[key]
        if expired:
            self.logger.debug("Cache sweep", removed=len(expired))
        return len(expired)

    def stats(self) -> Dict[str, int]:
        return {
            "size": len(self._entries),
            "hits": self._hits,
            "misses": self._misses,
        }

    def __len__(self) -> int:
        return len(self._entries)

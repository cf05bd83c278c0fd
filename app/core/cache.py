"""
Process-local TTL cache for hot, rarely-changing reads.

Three kinds of entries live here, keyed by company:

- ``company_config:{company_id}``: the validated check-in rules, read by every check-in
- ``leaderboard:{company_id}:{limit}``: ranked employees, polled by dashboards
- ``activity:{company_id}``: the admin live snapshot, polled by each SSE connection

Writers invalidate the affected keys explicitly (settings updates drop the
config entry, point changes drop the company's leaderboards), so the TTL only
bounds staleness for changes made outside this process.
"""

import threading
import time
from collections import OrderedDict
from datetime import datetime
from typing import Any, Callable, Dict, NamedTuple, Optional, Tuple


class CacheEntry(NamedTuple):
    value: Any
    stored_at: float

    def age(self) -> float:
        return time.time() - self.stored_at


class TTLCache:
    """LRU-bounded mapping of key to (value, stored_at), guarded by a reentrant lock."""

    def __init__(self, max_size: int = 100):
        self.lock = threading.RLock()
        self._entries: "OrderedDict[str, CacheEntry]" = OrderedDict()
        self._max_size = max_size
        self._hits = 0
        self._misses = 0

    def get(self, key: str) -> Optional[Any]:
        """Value for ``key`` regardless of age, or None. Marks the entry recently used."""
        with self.lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            self._entries.move_to_end(key)
            return entry.value

    def set(self, key: str, value: Any) -> None:
        with self.lock:
            self._entries.pop(key, None)
            self._entries[key] = CacheEntry(value, time.time())
            while len(self._entries) > self._max_size:
                self._entries.popitem(last=False)

    def is_expired(self, key: str, ttl_seconds: float) -> bool:
        """True when ``key`` is absent or older than ``ttl_seconds``."""
        with self.lock:
            entry = self._entries.get(key)
            return entry is None or entry.age() > ttl_seconds

    def fresh(self, key: str, ttl_seconds: float) -> Tuple[bool, Any]:
        """(True, value) for an unexpired entry, otherwise (False, None)."""
        with self.lock:
            if self.is_expired(key, ttl_seconds):
                return False, None
            return True, self.get(key)

    def record(self, hit: bool) -> None:
        with self.lock:
            if hit:
                self._hits += 1
            else:
                self._misses += 1

    def invalidate(self, key: str) -> None:
        with self.lock:
            self._entries.pop(key, None)

    def invalidate_prefix(self, prefix: str) -> int:
        """Drop every key starting with ``prefix``. Returns how many were dropped."""
        with self.lock:
            doomed = [key for key in self._entries if key.startswith(prefix)]
            for key in doomed:
                del self._entries[key]
            return len(doomed)

    def clear(self) -> None:
        """Drop all entries and reset the hit/miss counters."""
        with self.lock:
            self._entries.clear()
            self._hits = self._misses = 0

    def get_stats(self) -> Dict[str, Any]:
        """Size, hit rate and the age of each entry, for /health and the admin cache endpoint."""
        with self.lock:
            lookups = self._hits + self._misses
            return {
                "size": len(self._entries),
                "max_size": self._max_size,
                "hits": self._hits,
                "misses": self._misses,
                "hit_rate_percent": round(self._hits / lookups * 100, 2) if lookups else 0,
                "entries": {
                    key: {
                        "age_seconds": round(entry.age(), 2),
                        "cached_at": datetime.fromtimestamp(entry.stored_at).isoformat(),
                    }
                    for key, entry in self._entries.items()
                },
            }


def get_or_fetch(
    cache: TTLCache,
    cache_key: str,
    fetch_func: Callable[[], Any],
    ttl_seconds: float = 3.0
) -> Any:
    """
    Return the cached value for ``cache_key`` or refresh it with ``fetch_func``.

    Fresh entries are served without taking the lock for the fetch. On a miss
    the freshness check is repeated under the lock, so concurrent callers wait
    for a single fetch instead of each querying the database. If ``fetch_func``
    raises, the exception propagates and the previous entry is left in place.
    """
    found, value = cache.fresh(cache_key, ttl_seconds)
    if found:
        cache.record(hit=True)
        return value

    with cache.lock:
        found, value = cache.fresh(cache_key, ttl_seconds)
        if found:
            cache.record(hit=True)
            return value

        cache.record(hit=False)
        value = fetch_func()
        cache.set(cache_key, value)
        return value


# Shared by all requests and SSE connections in this process
global_cache = TTLCache()

import threading
import time
from typing import Any, Callable, Dict, Hashable, List, Optional, Tuple

from erp_admin.utils.log import get_logger

log = get_logger("query_cache")

QueryKey = Tuple[Hashable, ...]


class CacheEntry:
    __slots__ = ("data", "fetched_at", "last_access")

    def __init__(self, data: Any, now: float):
        self.data = data
        self.fetched_at = now
        self.last_access = now


class QueryCache:
    """
    Results of read queries keyed by tuples such as ("products", "list", search, page, limit).
    A key is served from cache until it is older than stale_seconds or invalidated;
    invalidation works on key prefixes so ("products", "list") drops every list page.
    """

    def __init__(self, stale_seconds: float = 30, clock: Callable[[], float] = time.monotonic):
        self.stale_seconds = stale_seconds
        self._clock = clock
        self._entries: Dict[QueryKey, CacheEntry] = {}
        self._lock = threading.Lock()

    def __len__(self):
        return len(self._entries)

    def __contains__(self, key: QueryKey) -> bool:
        return key in self._entries

    def get(self, key: QueryKey) -> Optional[Any]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            entry.last_access = self._clock()
            return entry.data

    def set(self, key: QueryKey, data: Any) -> None:
        with self._lock:
            self._entries[key] = CacheEntry(data, self._clock())

    def fetch(self, key: QueryKey, loader: Callable[[], Any]) -> Any:
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and now - entry.fetched_at < self.stale_seconds:
                entry.last_access = now
                return entry.data
        # the loader runs outside the lock; two concurrent misses both fetch and the later one wins
        data = loader()
        self.set(key, data)
        return data

    def invalidate(self, prefix: QueryKey) -> List[QueryKey]:
        n = len(prefix)
        with self._lock:
            dropped = [k for k in self._entries if k[:n] == tuple(prefix)]
            for k in dropped:
                del self._entries[k]
        if dropped:
            log.debug(f"invalidated {len(dropped)} entries under {prefix!r}")
        return dropped

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def collect_garbage(self, max_idle_seconds: float) -> int:
        now = self._clock()
        with self._lock:
            idle = [k for k, e in self._entries.items() if now - e.last_access >= max_idle_seconds]
            for k in idle:
                del self._entries[k]
        return len(idle)


class QueryCacheRegistry:
    """One QueryCache per access token so users never see each other's cached data."""

    def __init__(self, stale_seconds: float = 30, clock: Callable[[], float] = time.monotonic):
        self.stale_seconds = stale_seconds
        self._clock = clock
        self._caches: Dict[str, QueryCache] = {}
        self._lock = threading.Lock()

    def __len__(self):
        return len(self._caches)

    def for_token(self, token: Optional[str]) -> QueryCache:
        key = token or ""
        with self._lock:
            cache = self._caches.get(key)
            if cache is None:
                cache = QueryCache(self.stale_seconds, clock=self._clock)
                self._caches[key] = cache
            return cache

    def drop(self, token: Optional[str]) -> None:
        with self._lock:
            self._caches.pop(token or "", None)

    def collect_garbage(self, max_idle_seconds: float) -> int:
        """Drop idle entries, then caches left empty. Returns the number of entries removed."""
        with self._lock:
            caches = list(self._caches.items())
        removed = 0
        empty = []
        for token, cache in caches:
            removed += cache.collect_garbage(max_idle_seconds)
            if len(cache) == 0:
                empty.append(token)
        with self._lock:
            for token in empty:
                if token in self._caches and len(self._caches[token]) == 0:
                    del self._caches[token]
        if removed:
            log.info(f"gc: removed {removed} idle entries, {len(empty)} empty caches")
        return removed

# wdtp/services/cache.py
"""
Key-value cache used to memoize statistics.

Entries are replaced wholesale, never mutated in place. One lock guards
the TTLCache.
"""
import threading
import time
from typing import Any, Protocol

from cachetools import TTLCache


class StatsCache(Protocol):
    def get(self, key: str) -> Any | None: ...

    def set(self, key: str, value: Any, ttl: float) -> None: ...

    def delete(self, key: str) -> None: ...

    def delete_prefix(self, prefix: str) -> int: ...


class MemoryCache:
    """
    In-process cache on cachetools.TTLCache.

    TTLCache has a single TTL per cache, so each entry also stores its own
    deadline; ``set`` with a shorter ttl than the cache default still expires
    on time.
    """

    def __init__(self, maxsize: int = 1024, ttl: float = 900.0):
        self._cache: TTLCache[str, tuple[float, Any]] = TTLCache(maxsize=maxsize, ttl=ttl)
        self._lock = threading.Lock()

    def get(self, key: str) -> Any | None:
        with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                return None
            deadline, value = entry
            if deadline < time.monotonic():
                self._cache.pop(key, None)
                return None
            return value

    def set(self, key: str, value: Any, ttl: float) -> None:
        with self._lock:
            self._cache[key] = (time.monotonic() + ttl, value)

    def delete(self, key: str) -> None:
        with self._lock:
            self._cache.pop(key, None)

    def delete_prefix(self, prefix: str) -> int:
        with self._lock:
            doomed = [k for k in self._cache.keys() if k.startswith(prefix)]
            for k in doomed:
                self._cache.pop(k, None)
            return len(doomed)

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)

import threading
import time
from typing import Callable

from log_config import log_manager
from utils.cache_manager.cache_backend import CacheBackend, CacheEntry


class MemoryCacheBackend(CacheBackend):
    """
    Thread-safe in-process cache backend storing string maps with their write time.

    Args:
        clock (Callable[[], float]): Monotonic time source in seconds, replaceable in tests.
    """

    _logger = log_manager.get_logger("MemoryCacheBackend")

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def load(self, key: str, ttl_seconds: float) -> dict[str, str] | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._clock() - entry.written_at > ttl_seconds:
                del self._entries[key]
                return None
            return dict(entry.payload)

    def save(self, key: str, payload: dict[str, str]):
        entry = CacheEntry(key=key, payload=dict(payload), written_at=self._clock())
        with self._lock:
            self._entries[key] = entry

    def invalidate(self, key: str):
        with self._lock:
            if self._entries.pop(key, None) is None:
                self._logger.debug(f"Cache key '{key}' not found for invalidation.")

    def evict_expired(self, ttl_seconds: float) -> int:
        with self._lock:
            now = self._clock()
            expired = [key for key, entry in self._entries.items() if now - entry.written_at > ttl_seconds]
            for key in expired:
                del self._entries[key]
        for key in expired:
            self._logger.debug(f"Evicted expired cache entry: {key}")
        return len(expired)

    def clear_all(self):
        with self._lock:
            self._entries.clear()

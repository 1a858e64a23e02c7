import threading
import time
from typing import Callable

from log_config import log_manager
from utils.cache_manager.cache_backend import CacheBackend
from utils.cache_manager.error import CacheManagerError, CacheSweeperError
from utils.cache_manager.memory_cache import MemoryCacheBackend

DEFAULT_TTL_SECONDS = 15 * 60
DEFAULT_SWEEP_INTERVAL_SECONDS = 30 * 60


class EnrichmentCache:
    """TTL cache service for enrichment lookups, with an owned background sweeper.

    Construct one instance per enrichment domain at startup and pass it by reference to the
    components that need it. `get` never returns an entry older than the TTL; the sweeper only
    bounds memory by dropping entries nobody asked for again.

    Example:
        >>> cache = EnrichmentCache("inventory")
        >>> cache.set(cache.build_key("id", "vm-1"), {"name": "web-1"})
        >>> cache.get("id:vm-1")
        ({'name': 'web-1'}, True)
    """

    def __init__(
        self,
        name: str,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        sweep_interval_seconds: float = DEFAULT_SWEEP_INTERVAL_SECONDS,
        backend: CacheBackend | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            name (str): Enrichment domain name, used in logs and the sweeper thread name.
            ttl_seconds (float): Maximum age of an entry that may still be returned.
            sweep_interval_seconds (float): Period of the background sweeper.
            backend (Optional[CacheBackend]): Storage backend. Defaults to an in-memory backend.
            clock (Callable[[], float]): Time source handed to the default backend.

        Raises:
            CacheManagerError: If the TTL or sweep interval is not positive.
        """
        if ttl_seconds <= 0:
            raise CacheManagerError("TTL must be positive", cache=name, ttl_seconds=ttl_seconds)
        if sweep_interval_seconds <= 0:
            raise CacheManagerError(
                "Sweep interval must be positive", cache=name, sweep_interval_seconds=sweep_interval_seconds
            )

        self.name = name
        self.ttl_seconds = ttl_seconds
        self.sweep_interval_seconds = sweep_interval_seconds
        self._backend = backend if backend is not None else MemoryCacheBackend(clock=clock)
        self._logger = log_manager.get_logger("EnrichmentCache", module_name=name)

        self._stop_event = threading.Event()
        self._sweeper: threading.Thread | None = None
        self._lifecycle_lock = threading.Lock()

    def __enter__(self) -> "EnrichmentCache":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.stop()

    @staticmethod
    def build_key(kind: str, value: str) -> str:
        """Builds an explicitly prefixed key such as "id:vm-1" or "bucket-tags:logs"."""
        return f"{kind}:{value}"

    def get(self, key: str) -> tuple[dict[str, str] | None, bool]:
        """Returns (payload, True) for a fresh entry, (None, False) for a missing or stale one."""
        payload = self._backend.load(key, self.ttl_seconds)
        if payload is None:
            self._logger.debug(f"Cache miss for {key}")
            return None, False
        self._logger.debug(f"Cache hit for {key}")
        return payload, True

    def set(self, key: str, payload: dict[str, str]):
        """Stores a payload, overwriting any previous entry and resetting its age."""
        self._backend.save(key, payload)

    def invalidate(self, key: str):
        self._backend.invalidate(key)

    def clear_all(self):
        self._backend.clear_all()

    def sweep(self) -> int:
        """Removes every entry older than the TTL and returns how many were evicted."""
        evicted = self._backend.evict_expired(self.ttl_seconds)
        if evicted:
            self._logger.info(f"Evicted {evicted} expired entries")
        return evicted

    @property
    def is_running(self) -> bool:
        return self._sweeper is not None and self._sweeper.is_alive()

    def start(self):
        """Starts the background sweeper. Calling it again while running is a no-op.

        Raises:
            CacheSweeperError: If the sweeper was already stopped; a stopped cache is not restarted.
        """
        with self._lifecycle_lock:
            if self._sweeper is not None:
                if self._stop_event.is_set():
                    raise CacheSweeperError("Cache sweeper was stopped and cannot be restarted", cache=self.name)
                return
            self._sweeper = threading.Thread(
                target=self._run_sweeper, name=f"cache-sweeper-{self.name}", daemon=True
            )
            self._sweeper.start()
            self._logger.info(
                f"Started cache sweeper (ttl={self.ttl_seconds}s, interval={self.sweep_interval_seconds}s)"
            )

    def stop(self, timeout: float | None = 5.0):
        """Cancels the background sweeper and waits for it to finish."""
        with self._lifecycle_lock:
            self._stop_event.set()
            sweeper = self._sweeper
        if sweeper is not None and sweeper.is_alive():
            sweeper.join(timeout)
            self._logger.info("Stopped cache sweeper")

    def _run_sweeper(self):
        while not self._stop_event.wait(self.sweep_interval_seconds):
            try:
                self.sweep()
            except Exception as e:
                self._logger.error(f"Cache sweep failed: {e}", exc_info=True)

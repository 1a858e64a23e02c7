from .cache_backend import CacheBackend, CacheEntry
from .cache_manager import EnrichmentCache
from .error import CacheManagerError, CacheSweeperError
from .memory_cache import MemoryCacheBackend

__all__ = [
    "CacheBackend",
    "CacheEntry",
    "CacheManagerError",
    "CacheSweeperError",
    "EnrichmentCache",
    "MemoryCacheBackend",
]

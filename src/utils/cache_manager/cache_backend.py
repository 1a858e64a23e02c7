from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class CacheEntry:
    key: str
    payload: dict[str, str]
    written_at: float


class CacheBackend(ABC):
    @abstractmethod
    def load(self, key: str, ttl_seconds: float) -> dict[str, str] | None:
        pass

    @abstractmethod
    def save(self, key: str, payload: dict[str, str]):
        pass

    @abstractmethod
    def invalidate(self, key: str):
        pass

    @abstractmethod
    def evict_expired(self, ttl_seconds: float) -> int:
        pass

    @abstractmethod
    def clear_all(self):
        pass

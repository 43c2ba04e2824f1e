from __future__ import annotations

from abc import ABC, abstractmethod

from storebot.domain.entities.cache_entry import CacheEntry
from storebot.domain.entities.tab_dataset import CacheKey, TabDataset


class CachePort(ABC):
    """Keyed TTL cache of tab datasets. Implementations must be safe under concurrent use."""

    name: str = "cache"

    def get(self, key: CacheKey) -> TabDataset | None:
        entry = self.get_entry(key)
        if entry is None:
            return None
        return entry.payload

    @abstractmethod
    def get_entry(self, key: CacheKey) -> CacheEntry | None:
        """Return the entry only while it is still valid (now < expiry)."""
        raise NotImplementedError

    @abstractmethod
    def set(self, key: CacheKey, payload: TabDataset, ttl_seconds: float | None = None) -> CacheEntry:
        raise NotImplementedError

    @abstractmethod
    def invalidate(self, key: CacheKey) -> None:
        raise NotImplementedError

    @abstractmethod
    def invalidate_store(self, store_id: str) -> int:
        """Drop every entry for a store. Returns number of entries removed."""
        raise NotImplementedError

    @abstractmethod
    def entries(self, store_id: str) -> list[CacheEntry]:
        """Valid entries for a store, for cache statistics."""
        raise NotImplementedError

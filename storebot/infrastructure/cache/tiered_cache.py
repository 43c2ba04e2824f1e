from __future__ import annotations

import logging

from storebot.application.ports.cache import CachePort
from storebot.domain.entities.cache_entry import CacheEntry
from storebot.domain.entities.tab_dataset import CacheKey, TabDataset
from storebot.infrastructure.cache.database_cache import DatabaseCache
from storebot.infrastructure.cache.memory_cache import MemoryCache


class TieredCache(CachePort):
    """
    In-process tier in front of the persistent tier.

    A persistent hit is promoted into the memory tier for at most the entry's
    remaining lifetime, so later reads in this process are memory hits.
    """

    name = "tiered"

    def __init__(self, memory: MemoryCache, persistent: DatabaseCache, memory_ttl_seconds: float | None = None) -> None:
        self._memory = memory
        self._persistent = persistent
        self._memory_ttl = memory_ttl_seconds or memory.default_ttl_seconds
        self._clock = memory.clock
        self._logger = logging.getLogger(__name__)

    def get_entry(self, key: CacheKey) -> CacheEntry | None:
        entry = self._memory.get_entry(key)
        if entry is not None:
            return entry

        entry = self._persistent.get_entry(key)
        if entry is None:
            return None

        remaining = entry.remaining_seconds(self._clock())
        ttl = min(self._memory_ttl, remaining)
        if ttl > 0:
            self._memory.set(key, entry.payload, ttl_seconds=ttl)
            self._logger.debug("Promoted cache entry to memory", extra={"cache": key.as_string(), "ttl": ttl})
        return entry

    def set(self, key: CacheKey, payload: TabDataset, ttl_seconds: float | None = None) -> CacheEntry:
        entry = self._persistent.set(key, payload, ttl_seconds)
        memory_ttl = self._memory_ttl if ttl_seconds is None else min(self._memory_ttl, ttl_seconds)
        self._memory.set(key, payload, ttl_seconds=memory_ttl)
        return entry

    def invalidate(self, key: CacheKey) -> None:
        self._memory.invalidate(key)
        self._persistent.invalidate(key)

    def invalidate_store(self, store_id: str) -> int:
        removed = self._memory.invalidate_store(store_id)
        return max(removed, self._persistent.invalidate_store(store_id))

    def entries(self, store_id: str) -> list[CacheEntry]:
        return self._persistent.entries(store_id)

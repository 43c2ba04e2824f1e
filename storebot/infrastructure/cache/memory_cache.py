from __future__ import annotations

import logging
import threading
import time
from typing import Callable

from storebot.application.ports.cache import CachePort
from storebot.domain.entities.cache_entry import CacheEntry
from storebot.domain.entities.tab_dataset import CacheKey, TabDataset


class MemoryCache(CachePort):
    """In-process TTL cache. Entries are lost on restart."""

    name = "memory"

    def __init__(self, default_ttl_seconds: float = 300, clock: Callable[[], float] = time.time) -> None:
        self._entries: dict[CacheKey, CacheEntry] = {}
        self._lock = threading.Lock()
        self._default_ttl = default_ttl_seconds
        self._clock = clock
        self._logger = logging.getLogger(__name__)

    @property
    def default_ttl_seconds(self) -> float:
        return self._default_ttl

    @property
    def clock(self) -> Callable[[], float]:
        return self._clock

    def get_entry(self, key: CacheKey) -> CacheEntry | None:
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._logger.debug("Memory cache miss", extra={"cache": key.as_string()})
                return None
            if not entry.is_valid(now):
                del self._entries[key]
                self._logger.debug("Memory cache expired", extra={"cache": key.as_string()})
                return None
        self._logger.debug("Memory cache hit", extra={"cache": key.as_string()})
        return entry

    def set(self, key: CacheKey, payload: TabDataset, ttl_seconds: float | None = None) -> CacheEntry:
        ttl = self._default_ttl if ttl_seconds is None else ttl_seconds
        if ttl <= 0:
            raise ValueError("ttl_seconds must be positive")
        now = self._clock()
        entry = CacheEntry(key=key, payload=[dict(r) for r in payload], cached_at=now, expiry=now + ttl)
        with self._lock:
            self._entries[key] = entry
        self._logger.debug("Memory cache set", extra={"cache": key.as_string(), "ttl": ttl})
        return entry

    def invalidate(self, key: CacheKey) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def invalidate_store(self, store_id: str) -> int:
        with self._lock:
            keys = [k for k in self._entries if k.store_id == store_id]
            for k in keys:
                del self._entries[k]
        return len(keys)

    def entries(self, store_id: str) -> list[CacheEntry]:
        now = self._clock()
        with self._lock:
            return [e for k, e in self._entries.items() if k.store_id == store_id and e.is_valid(now)]

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from contextlib import contextmanager, nullcontext
from dataclasses import dataclass
from typing import Any, Callable, Iterator, Mapping

from storebot.application.exceptions import CacheInvalidationError, InvalidDataError, StorebotError
from storebot.application.ports.cache import CachePort
from storebot.application.ports.sheet_source import SheetSourcePort
from storebot.domain.entities.tab_dataset import (
    HOURS_TAB,
    PRODUCTS_TAB,
    SERVICES_TAB,
    CacheKey,
    TabDataset,
    project_rows,
)

CACHE_TYPES = ("memory", "database", "tiered", "none")

PRECACHE_TABS = (SERVICES_TAB, PRODUCTS_TAB, HOURS_TAB)


@dataclass(frozen=True)
class WriteAck:
    store_id: str
    tab_name: str
    operation: str
    row_index: int | None = None


class DataGateway:
    """
    Read/append/update access to a store's spreadsheet tabs, fronted by a cache tier.

    Invariants:
    - A cache hit never touches the sheet source.
    - The full tab is cached; `columns` projection is applied on the way out.
    - After a successful append/update the tab's key is invalidated in every tier,
      and a per-key generation counter stops reads that began before the write
      from re-populating the cache with pre-write rows.
    - A key whose invalidation failed in any tier is dirty: reads bypass the cache
      for it until a retried invalidation succeeds.
    """

    def __init__(
        self,
        source: SheetSourcePort,
        caches: Mapping[str, CachePort] | None = None,
        default_cache_type: str = "tiered",
        single_flight: bool = True,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._source = source
        self._caches: dict[str, CachePort] = dict(caches or {})
        self._default_cache_type = default_cache_type
        self._single_flight = single_flight
        self._clock = clock
        self._generations: dict[CacheKey, int] = {}
        self._generation_lock = threading.Lock()
        self._dirty: set[CacheKey] = set()
        # key -> (lock, number of readers holding or waiting on it)
        self._flight_locks: dict[CacheKey, tuple[threading.Lock, int]] = {}
        self._flight_locks_lock = threading.Lock()
        self._logger = logging.getLogger(__name__)

    def read(
        self,
        store_id: str,
        tab_name: str,
        columns: list[str] | None = None,
        cache_type: str | None = None,
    ) -> TabDataset:
        self._validate_tab(store_id, tab_name)
        cache = self._select_cache(cache_type)
        key = CacheKey.for_tab(store_id, tab_name)

        if cache is not None and not self._ensure_clean(key):
            self._logger.warning(
                "Cache key still dirty after a failed invalidation, reading sheet",
                extra={"store_id": store_id, "tab": tab_name, "cache": cache.name},
            )
            cache = None

        if cache is not None:
            cached = cache.get(key)
            if cached is not None:
                self._logger.info("Cache hit", extra={"store_id": store_id, "tab": tab_name, "cache": cache.name})
                return project_rows(cached, columns)

        guard = self._flight(key) if (self._single_flight and cache is not None) else nullcontext()
        with guard:
            if cache is not None and self._single_flight:
                cached = cache.get(key)
                if cached is not None:
                    return project_rows(cached, columns)

            generation = self._generation(key)
            started = time.perf_counter()
            _, rows = self._source.fetch_tab(store_id, tab_name)
            self._logger.info(
                "Cache miss, fetched from sheet",
                extra={
                    "store_id": store_id,
                    "tab": tab_name,
                    "cache": cache.name if cache else "none",
                    "duration_ms": round((time.perf_counter() - started) * 1000, 1),
                },
            )

            if cache is not None:
                with self._generation_lock:
                    if self._generations.get(key, 0) == generation:
                        cache.set(key, rows)
                    else:
                        self._logger.info("Skipped caching rows superseded by a write", extra={"tab": tab_name})

        return project_rows(rows, columns)

    def headers(self, store_id: str, tab_name: str, cache_type: str | None = None) -> list[str]:
        """Column names of a tab. Falls back to the source header row when the tab has no data rows."""
        rows = self.read(store_id, tab_name, cache_type=cache_type)
        if rows:
            return list(rows[0].keys())
        headers, _ = self._source.fetch_tab(store_id, tab_name)
        return headers

    def append(self, store_id: str, tab_name: str, row: Mapping[str, Any]) -> WriteAck:
        """
        Append one row to the tab, then invalidate it in every cache tier.

        Raises CacheInvalidationError only after the row is in the sheet; the
        key is left dirty so later reads still see the new row.
        """
        self._validate_tab(store_id, tab_name)
        clean = self._validate_row(row)
        self._source.append_row(store_id, tab_name, clean)
        self._invalidate(CacheKey.for_tab(store_id, tab_name))
        self._logger.info("Row appended, cache invalidated", extra={"store_id": store_id, "tab": tab_name})
        return WriteAck(store_id=store_id, tab_name=tab_name, operation="append")

    def update(self, store_id: str, tab_name: str, row_index: int, row: Mapping[str, Any]) -> WriteAck:
        self._validate_tab(store_id, tab_name)
        if isinstance(row_index, bool) or not isinstance(row_index, int) or row_index < 0:
            raise InvalidDataError("row_index must be a non-negative integer")
        clean = self._validate_row(row)
        self._source.update_row(store_id, tab_name, row_index, clean)
        self._invalidate(CacheKey.for_tab(store_id, tab_name))
        self._logger.info(
            "Row updated, cache invalidated",
            extra={"store_id": store_id, "tab": tab_name, "row_index": row_index},
        )
        return WriteAck(store_id=store_id, tab_name=tab_name, operation="update", row_index=row_index)

    def clear_store(self, store_id: str) -> int:
        with self._generation_lock:
            for key in list(self._generations):
                if key.store_id == store_id:
                    self._generations[key] += 1
            removed = 0
            for cache in self._distinct_caches():
                removed = max(removed, cache.invalidate_store(store_id))
        self._logger.info("Cleared store cache", extra={"store_id": store_id, "removed": removed})
        return removed

    def precache(
        self,
        store_id: str,
        tabs: tuple[str, ...] = PRECACHE_TABS,
        cache_type: str | None = None,
        max_workers: int = 3,
    ) -> dict[str, Any]:
        """Warm the cache for a store session by reading the core tabs in parallel."""
        self._validate_store(store_id)
        self._select_cache(cache_type)
        started = time.perf_counter()
        counts: dict[str, int] = {}
        failed: dict[str, str] = {}
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            futures = {tab: pool.submit(self.read, store_id, tab, None, cache_type) for tab in tabs}
            for tab, future in futures.items():
                try:
                    counts[tab.lower()] = len(future.result())
                except StorebotError as e:
                    self._logger.warning(
                        "Precache tab failed",
                        extra={"store_id": store_id, "tab": tab, "error": e.message},
                    )
                    failed[tab.lower()] = e.message
        duration_ms = round((time.perf_counter() - started) * 1000, 1)
        self._logger.info(
            "Precache complete",
            extra={"store_id": store_id, "tabs": counts, "duration_ms": duration_ms},
        )
        return {"store_id": store_id, "rows": counts, "failed": failed, "duration_ms": duration_ms}

    def stats(self, store_id: str, cache_type: str | None = None) -> dict[str, dict[str, Any]]:
        cache = self._select_cache(cache_type)
        if cache is None:
            return {}
        now = self._clock()
        out: dict[str, dict[str, Any]] = {}
        for entry in cache.entries(store_id):
            out[entry.key.tab_name] = {
                "cached": True,
                "rows": len(entry.payload),
                "age_seconds": round(entry.age_seconds(now)),
                "expires_in_seconds": round(entry.remaining_seconds(now)),
            }
        return out

    def _invalidate(self, key: CacheKey) -> None:
        with self._generation_lock:
            self._generations[key] = self._generations.get(key, 0) + 1
            failures = self._invalidate_tiers(key)
            if failures:
                self._dirty.add(key)
            else:
                self._dirty.discard(key)
        if failures:
            raise CacheInvalidationError(
                f"Cache invalidation failed for {key.as_string()}: {'; '.join(failures)}"
            )

    def _invalidate_tiers(self, key: CacheKey) -> list[str]:
        failures: list[str] = []
        for cache in self._distinct_caches():
            try:
                cache.invalidate(key)
            except Exception as e:
                self._logger.error(
                    "Cache invalidate failed, key marked dirty",
                    extra={"cache": cache.name, "store_id": key.store_id, "tab": key.tab_name, "error": str(e)},
                )
                failures.append(f"{cache.name}: {e}")
        return failures

    def _ensure_clean(self, key: CacheKey) -> bool:
        """False while an earlier invalidation of `key` is still unconfirmed in some tier."""
        with self._generation_lock:
            if key not in self._dirty:
                return True
            if self._invalidate_tiers(key):
                return False
            self._dirty.discard(key)
            self._logger.info("Dirty cache key recovered", extra={"store_id": key.store_id, "tab": key.tab_name})
            return True

    def _generation(self, key: CacheKey) -> int:
        with self._generation_lock:
            return self._generations.get(key, 0)

    @contextmanager
    def _flight(self, key: CacheKey) -> Iterator[None]:
        with self._flight_locks_lock:
            lock, holders = self._flight_locks.get(key, (threading.Lock(), 0))
            self._flight_locks[key] = (lock, holders + 1)
        try:
            with lock:
                yield
        finally:
            with self._flight_locks_lock:
                lock, holders = self._flight_locks[key]
                if holders <= 1:
                    del self._flight_locks[key]
                else:
                    self._flight_locks[key] = (lock, holders - 1)

    def _distinct_caches(self) -> list[CachePort]:
        seen: list[CachePort] = []
        for cache in self._caches.values():
            if not any(cache is s for s in seen):
                seen.append(cache)
        return seen

    def _select_cache(self, cache_type: str | None) -> CachePort | None:
        name = (cache_type or self._default_cache_type).lower()
        if name not in CACHE_TYPES:
            raise InvalidDataError(f"Unknown cache type {name!r}")
        if name == "none":
            return None
        cache = self._caches.get(name)
        if cache is None:
            self._logger.warning("Cache tier not configured, reading uncached", extra={"cache": name})
        return cache

    @staticmethod
    def _validate_store(store_id: str) -> None:
        if not isinstance(store_id, str) or not store_id.strip():
            raise InvalidDataError("store_id is required")

    @classmethod
    def _validate_tab(cls, store_id: str, tab_name: str) -> None:
        cls._validate_store(store_id)
        if not isinstance(tab_name, str) or not tab_name.strip():
            raise InvalidDataError("tab_name is required")

    @staticmethod
    def _validate_row(row: Mapping[str, Any]) -> dict[str, str]:
        if not isinstance(row, Mapping) or not row:
            raise InvalidDataError("Row data must be a non-empty mapping of column name to value")
        clean: dict[str, str] = {}
        for key, value in row.items():
            if not isinstance(key, str) or not key.strip():
                raise InvalidDataError("Row column names must be non-empty strings")
            if isinstance(value, (dict, list, tuple, set)):
                raise InvalidDataError(f"Column {key!r} must hold a scalar value")
            clean[key] = "" if value is None else str(value)
        return clean

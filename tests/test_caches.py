from __future__ import annotations

import pytest

from storebot.domain.entities.tab_dataset import CacheKey
from storebot.infrastructure.cache.database_cache import DatabaseCache
from storebot.infrastructure.cache.memory_cache import MemoryCache
from storebot.infrastructure.cache.tiered_cache import TieredCache

from conftest import FakeClock

KEY = CacheKey.for_tab("s1", "Services")
ROWS = [{"serviceName": "Haircut", "price": "35"}]


def test_cache_key_is_case_insensitive_and_renders_store_prefix():
    """Test that cache keys ignore tab name case and whitespace."""
    assert CacheKey.for_tab("s1", "SERVICES") == CacheKey.for_tab("s1", " services ")
    assert KEY.as_string() == "store:s1:services"


def test_memory_cache_hits_only_before_expiry():
    """Test that the memory tier hits only while now < expiry."""
    clock = FakeClock()
    cache = MemoryCache(default_ttl_seconds=300, clock=clock)
    cache.set(KEY, ROWS)

    clock.advance(299)
    assert cache.get(KEY) == ROWS

    clock.advance(1)
    assert cache.get(KEY) is None


def test_memory_cache_rejects_non_positive_ttl():
    """Test that a zero TTL is refused."""
    cache = MemoryCache()
    with pytest.raises(ValueError):
        cache.set(KEY, ROWS, ttl_seconds=0)


def test_database_cache_round_trip_and_expiry():
    """Test that the database tier upserts payloads and expires them."""
    clock = FakeClock()
    cache = DatabaseCache(database_url="sqlite:///:memory:", default_ttl_seconds=3600, clock=clock)
    cache.set(KEY, ROWS)
    assert cache.get(KEY) == ROWS

    # Upsert replaces the previous payload.
    cache.set(KEY, [{"serviceName": "Color"}])
    assert cache.get(KEY) == [{"serviceName": "Color"}]

    clock.advance(3600)
    assert cache.get(KEY) is None


def test_database_cache_invalidate_store_only_touches_that_store():
    """Test that clearing one store leaves other stores cached."""
    cache = DatabaseCache(database_url="sqlite:///:memory:")
    cache.set(KEY, ROWS)
    cache.set(CacheKey.for_tab("s1", "Products"), ROWS)
    other = CacheKey.for_tab("s2", "Services")
    cache.set(other, ROWS)

    assert cache.invalidate_store("s1") == 2
    assert cache.get(KEY) is None
    assert cache.get(other) == ROWS


def test_tiered_cache_promotes_with_remaining_ttl():
    """Test that a persistent hit is promoted for no longer than its remaining TTL."""
    clock = FakeClock()
    memory = MemoryCache(default_ttl_seconds=300, clock=clock)
    database = DatabaseCache(database_url="sqlite:///:memory:", default_ttl_seconds=3600, clock=clock)
    tiered = TieredCache(memory=memory, persistent=database)

    database.set(KEY, ROWS, ttl_seconds=100)
    assert memory.get(KEY) is None

    assert tiered.get(KEY) == ROWS
    promoted = memory.get_entry(KEY)
    assert promoted is not None
    assert promoted.expiry == pytest.approx(clock() + 100)


def test_tiered_cache_invalidate_clears_both_tiers():
    """Test that tiered invalidation removes the key from both tiers."""
    clock = FakeClock()
    memory = MemoryCache(clock=clock)
    database = DatabaseCache(database_url="sqlite:///:memory:", clock=clock)
    tiered = TieredCache(memory=memory, persistent=database)

    tiered.set(KEY, ROWS)
    tiered.invalidate(KEY)

    assert memory.get(KEY) is None
    assert database.get(KEY) is None

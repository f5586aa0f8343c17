"""Unit tests for the GET response cache."""

import pytest

from dify_app.client import CacheConfig, ResponseCache
from tests.helpers import ManualClock

pytestmark = pytest.mark.unit


class TestCacheConfig:
    def test_negative_ttl_is_rejected(self):
        with pytest.raises(ValueError):
            CacheConfig(ttl_ms=-1)

    def test_zero_max_entries_is_rejected(self):
        with pytest.raises(ValueError):
            CacheConfig(max_entries=0)


class TestLookupAndExpiry:
    """Lazy TTL expiry."""

    def test_hit_within_ttl(self):
        clock = ManualClock()
        cache = ResponseCache(CacheConfig(ttl_ms=1000), clock=clock)
        cache.store("https://x/info", {"name": "app"})

        clock.advance(999)
        assert cache.lookup("https://x/info") == {"name": "app"}
        assert cache.metrics.hits == 1

    def test_entry_expires_exactly_at_ttl(self):
        clock = ManualClock()
        cache = ResponseCache(CacheConfig(ttl_ms=1000), clock=clock)
        cache.store("k", {"v": 1})

        clock.advance(1000)
        assert cache.lookup("k") is None
        assert "k" not in cache
        assert cache.metrics.expirations == 1

    def test_miss_is_counted(self):
        cache = ResponseCache(clock=ManualClock())
        assert cache.lookup("absent") is None
        assert cache.metrics.to_dict() == {
            "hits": 0,
            "misses": 1,
            "expirations": 0,
            "evictions": 0,
        }

    def test_default_distinguishes_miss_from_cached_none(self):
        clock = ManualClock()
        cache = ResponseCache(CacheConfig(ttl_ms=1000), clock=clock)
        missing = object()
        cache.store("null-body", None)

        assert cache.lookup("null-body", default=missing) is None
        assert cache.lookup("absent", default=missing) is missing
        clock.advance(1000)
        assert cache.lookup("null-body", default=missing) is missing

    def test_zero_ttl_never_hits(self):
        cache = ResponseCache(CacheConfig(ttl_ms=0), clock=ManualClock())
        cache.store("k", {"v": 1})
        assert cache.lookup("k") is None

    def test_store_replaces_and_refreshes_timestamp(self):
        clock = ManualClock()
        cache = ResponseCache(CacheConfig(ttl_ms=1000), clock=clock)
        cache.store("k", {"v": 1})
        clock.advance(800)
        cache.store("k", {"v": 2})
        clock.advance(800)

        assert cache.lookup("k") == {"v": 2}

    def test_purge_expired_removes_only_stale_entries(self):
        clock = ManualClock()
        cache = ResponseCache(CacheConfig(ttl_ms=1000), clock=clock)
        cache.store("old", 1)
        clock.advance(600)
        cache.store("new", 2)
        clock.advance(500)

        assert cache.purge_expired() == 1
        assert "old" not in cache
        assert "new" in cache

    def test_clear(self):
        cache = ResponseCache(clock=ManualClock())
        cache.store("a", 1)
        cache.store("b", 2)
        cache.clear()
        assert len(cache) == 0


class TestBoundedCache:
    """Least-recently-used eviction when ``max_entries`` is set."""

    def test_oldest_entry_is_evicted(self):
        cache = ResponseCache(CacheConfig(max_entries=2), clock=ManualClock())
        cache.store("a", 1)
        cache.store("b", 2)
        cache.store("c", 3)

        assert "a" not in cache
        assert len(cache) == 2
        assert cache.metrics.evictions == 1

    def test_lookup_marks_entry_as_recently_used(self):
        cache = ResponseCache(CacheConfig(max_entries=2), clock=ManualClock())
        cache.store("a", 1)
        cache.store("b", 2)
        cache.lookup("a")
        cache.store("c", 3)

        assert "a" in cache
        assert "b" not in cache

    def test_unbounded_by_default(self):
        cache = ResponseCache(clock=ManualClock())
        for i in range(500):
            cache.store(str(i), i)
        assert len(cache) == 500

"""
Unit tests for the duplicate-call cache.

Tests:
- Content-hash keys
- Time window expiry
- Size-bounded eviction
- Statistics
"""

import pytest

from calendar_assistant.core.cache import DuplicateCallCache


class FakeClock:
    def __init__(self, start: float = 1_000.0):
        self.value = start

    def __call__(self) -> float:
        return self.value

    def advance(self, seconds: float) -> None:
        self.value += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return DuplicateCallCache(window_seconds=10.0, max_size=5, clock=clock)


class TestMakeKey:
    """Tests for key hashing."""

    def test_key_ignores_dict_order(self):
        a = DuplicateCallCache.make_key("op", {"x": 1, "y": [1, 2]})
        b = DuplicateCallCache.make_key("op", {"y": [1, 2], "x": 1})
        assert a == b

    def test_key_depends_on_name_and_values(self):
        base = DuplicateCallCache.make_key("op", {"x": 1})
        assert base != DuplicateCallCache.make_key("other", {"x": 1})
        assert base != DuplicateCallCache.make_key("op", {"x": 2})


class TestDuplicateCallCache:
    """Tests for DuplicateCallCache behaviour."""

    def test_hit_returns_same_object(self, cache):
        result = object()
        cache.put("k", "op", {"x": 1}, result)

        entry = cache.get("k")
        assert entry is not None
        assert entry.cached_result is result
        assert entry.hit_count == 1

    def test_miss(self, cache):
        assert cache.get("missing") is None
        assert cache.stats.misses == 1

    def test_entry_expires_after_window(self, cache, clock):
        cache.put("k", "op", {}, "result")

        clock.advance(9.5)
        assert cache.get("k") is not None

        clock.advance(0.5)
        assert cache.get("k") is None
        assert cache.stats.expirations == 1

    def test_bounded_size_evicts_oldest(self, cache, clock):
        for i in range(6):
            cache.put(f"k{i}", "op", {"i": i}, i)
            clock.advance(0.5)

        assert cache.size == 5
        assert cache.get("k0") is None
        assert cache.get("k5") is not None
        assert cache.stats.evictions == 1

    def test_reput_refreshes_position(self, cache):
        for i in range(5):
            cache.put(f"k{i}", "op", {}, i)
        cache.put("k0", "op", {}, "again")
        cache.put("k5", "op", {}, 5)

        assert cache.get("k0").cached_result == "again"
        assert cache.get("k1") is None

    def test_stats_and_clear(self, cache):
        cache.put("k", "op", {}, 1)
        cache.get("k")
        cache.get("nope")

        stats = cache.stats.to_dict()
        assert stats["hits"] == 1
        assert stats["misses"] == 1
        assert stats["hit_ratio"] == 0.5

        assert cache.clear() == 1
        assert cache.size == 0

"""
Tests for the in-memory TTL cache.

This test suite covers:
- get/set and defaults
- TTL expiration driven by an injected clock
- LRU eviction at max_entries
- invalidate/clear and statistics
"""

from foreman.cache import TTLCache


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class TestTTLCache:
    """Test TTLCache behaviour."""

    def test_basic_get_set(self):
        """Values round-trip and missing keys return the default."""
        cache = TTLCache(name="test", ttl=60)

        assert cache.get("key1") is None
        cache.set("key1", "value1")
        assert cache.get("key1") == "value1"
        assert cache.get("nonexistent", "default") == "default"

    def test_ttl_expiration(self):
        """Entries expire once the TTL has elapsed."""
        clock = FakeClock()
        cache = TTLCache(name="test", ttl=60, clock=clock)

        cache.set("key1", "value1")
        clock.advance(59.9)
        assert cache.get("key1") == "value1"

        clock.advance(0.1)
        assert cache.get("key1") is None
        assert cache.get_stats()["expirations"] == 1

    def test_zero_ttl_never_expires(self):
        clock = FakeClock()
        cache = TTLCache(name="test", ttl=0, clock=clock)
        cache.set("key1", "value1")
        clock.advance(10 ** 6)
        assert cache.get("key1") == "value1"

    def test_lru_eviction(self):
        """The least recently used entry is evicted at capacity."""
        cache = TTLCache(name="test", ttl=0, max_entries=3)
        cache.set("key1", "value1")
        cache.set("key2", "value2")
        cache.set("key3", "value3")

        assert cache.get("key1") == "value1"
        cache.set("key4", "value4")

        assert cache.get("key1") == "value1"
        assert cache.get("key2") is None
        assert cache.get("key3") == "value3"
        assert cache.get("key4") == "value4"
        assert cache.get_stats()["evictions"] == 1

    def test_invalidate_and_clear(self):
        cache = TTLCache(name="test")
        cache.set("a", 1)
        cache.set("b", 2)

        assert cache.invalidate("a") is True
        assert cache.invalidate("a") is False
        assert len(cache) == 1

        cache.clear()
        assert len(cache) == 0
        assert cache.get("b") is None

    def test_stats_hit_rate(self):
        cache = TTLCache(name="stats")
        cache.set("a", 1)
        cache.get("a")
        cache.get("missing")

        stats = cache.get_stats()
        assert stats["name"] == "stats"
        assert stats["hits"] == 1
        assert stats["misses"] == 1
        assert stats["hit_rate"] == 50.0

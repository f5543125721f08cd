"""Tests for the TTL memo table."""

import pytest

from regime_watch.cache import TTLCache


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return TTLCache(default_ttl=60, clock=clock)


class TestTTLCache:
    def test_get_set(self, cache):
        assert cache.get("a") is None
        cache.set("a", 1)
        assert cache.get("a") == 1
        assert cache.has("a")

    def test_expiry(self, cache, clock):
        cache.set("a", 1)
        clock.now += 59
        assert cache.get("a") == 1
        clock.now += 1
        assert cache.get("a") is None
        assert not cache.has("a")

    def test_per_entry_ttl(self, cache, clock):
        cache.set("short", 1, ttl=5)
        cache.set("long", 2)
        clock.now += 10
        assert cache.keys() == ["long"]

    def test_delete(self, cache):
        cache.set("a", 1)
        assert cache.delete("a") is True
        assert cache.delete("a") is False

    def test_delete_prefix(self, cache):
        cache.set("cip_eurusd_5y_proxy:x", 1)
        cache.set("cip_eurusd_5y_proxy:y", 2)
        cache.set("cip_jpyusd_5y_proxy:x", 3)
        removed = cache.delete_prefix("cip_eurusd_")
        assert removed == ["cip_eurusd_5y_proxy:x", "cip_eurusd_5y_proxy:y"]
        assert cache.keys() == ["cip_jpyusd_5y_proxy:x"]
        assert cache.delete_prefix("nothing") == []

    def test_stats_and_flush(self, cache):
        cache.set("a", 1)
        cache.get("a")
        cache.get("b")
        assert cache.stats() == {"keys": 1, "hits": 1, "misses": 1}
        cache.flush()
        assert cache.keys() == []

    def test_set_purges_expired_entries(self, cache, clock):
        for i in range(1000):
            cache.set(f"k{i}", i)
        assert len(cache) == 1000
        clock.now += 61
        cache.set("fresh", 1)
        assert len(cache) == 1
        assert cache.keys() == ["fresh"]

    def test_purge_keeps_live_entries(self, cache, clock):
        cache.set("short", 1, ttl=5)
        cache.set("long", 2)
        clock.now += 10
        cache.set("other", 3)
        assert len(cache) == 2
        assert cache.get("long") == 2

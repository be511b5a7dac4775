"""
Tests for the clock-driven TTL cache.
"""

import pytest

from reporting.cache import TTLCache


@pytest.fixture
def cache(clock):
    return TTLCache(default_ttl_seconds=60, max_size=3, clock=clock)


class TestExpiry:

    def test_value_available_until_ttl(self, cache, clock):
        cache.set("a", 1)

        clock.advance(seconds=59)
        assert cache.get("a") == 1

        clock.advance(seconds=1)
        assert cache.get("a") is None
        assert cache.size() == 0

    def test_explicit_ttl_overrides_default(self, cache, clock):
        cache.set("a", 1, ttl_seconds=3600)

        clock.advance(minutes=30)

        assert "a" in cache

    def test_none_ttl_never_expires(self, clock):
        cache = TTLCache(default_ttl_seconds=None, clock=clock)
        cache.set("a", 1)

        clock.advance(days=365)

        assert cache.get("a") == 1

    def test_cleanup_expired(self, cache, clock):
        cache.set("short", 1, ttl_seconds=10)
        cache.set("long", 2, ttl_seconds=100)
        clock.advance(seconds=50)

        assert cache.cleanup_expired() == 1
        assert cache.size() == 1
        assert cache.get("long") == 2


class TestFetch:

    def test_computes_once_while_fresh(self, cache):
        calls = []

        def compute():
            calls.append(1)
            return "value"

        assert cache.fetch("k", compute) == "value"
        assert cache.fetch("k", compute) == "value"
        assert len(calls) == 1

    def test_recomputes_after_delete(self, cache):
        cache.fetch("k", lambda: "old")

        assert cache.delete("k") is True
        assert cache.delete("k") is False
        assert cache.fetch("k", lambda: "new") == "new"

    def test_falsy_values_are_cached(self, cache):
        cache.fetch("k", lambda: 0)

        assert cache.fetch("k", lambda: 99) == 0


class TestIncrement:

    def test_counts_up(self, cache):
        assert cache.increment("n") == 1
        assert cache.increment("n") == 2
        assert cache.get("n") == 2

    def test_expiry_runs_from_first_increment(self, cache, clock):
        cache.increment("n", ttl_seconds=100)
        clock.advance(seconds=90)
        cache.increment("n", ttl_seconds=100)

        clock.advance(seconds=10)

        assert cache.get("n") is None
        assert cache.increment("n", ttl_seconds=100) == 1


class TestEviction:

    def test_least_recently_used_is_evicted(self, cache):
        cache.set("a", 1)
        cache.set("b", 2)
        cache.set("c", 3)
        cache.get("a")

        cache.set("d", 4)

        assert "b" not in cache
        assert cache.get("a") == 1
        assert cache.size() == 3

    def test_overwrite_does_not_evict(self, cache):
        cache.set("a", 1)
        cache.set("b", 2)
        cache.set("c", 3)

        cache.set("a", 10)

        assert cache.size() == 3
        assert cache.get("a") == 10

    def test_clear(self, cache):
        cache.set("a", 1)
        cache.clear()
        assert cache.size() == 0

"""Tests for app.services.cache.TTLCache."""

import pytest

from app.services.cache import TTLCache


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


class TestTTLCache:
    def test_hit_before_expiry(self, clock):
        cache = TTLCache(ttl=10, clock=clock)
        cache.set("a", 1)
        clock.now = 9.9
        assert cache.get("a") == 1

    def test_expired_entry_is_dropped(self, clock):
        cache = TTLCache(ttl=10, clock=clock)
        cache.set("a", 1)
        clock.now = 10
        assert cache.get("a") is None
        assert len(cache) == 0

    def test_oldest_entry_evicted(self, clock):
        cache = TTLCache(ttl=10, max_entries=2, clock=clock)
        cache.set("a", 1)
        cache.set("b", 2)
        cache.set("c", 3)
        assert cache.get("a") is None
        assert cache.get("b") == 2
        assert cache.get("c") == 3

    def test_reset_moves_entry_to_newest(self, clock):
        cache = TTLCache(ttl=10, max_entries=2, clock=clock)
        cache.set("a", 1)
        cache.set("b", 2)
        cache.set("a", 10)
        cache.set("c", 3)
        assert cache.get("a") == 10
        assert cache.get("b") is None

    def test_invalidate_and_clear(self, clock):
        cache = TTLCache(clock=clock)
        cache.set("a", 1)
        cache.set("b", 2)
        cache.invalidate("a")
        cache.invalidate("missing")
        assert cache.get("a") is None
        cache.clear()
        assert len(cache) == 0

    @pytest.mark.parametrize("kwargs", [{"ttl": 0}, {"ttl": -1}, {"max_entries": 0}])
    def test_invalid_configuration(self, kwargs):
        with pytest.raises(ValueError):
            TTLCache(**kwargs)


class TestGetOrLoad:
    def test_loader_called_once_until_expiry(self, clock):
        cache = TTLCache(ttl=5, clock=clock)
        calls = []

        def loader():
            calls.append(1)
            return len(calls)

        assert cache.get_or_load("k", loader) == 1
        assert cache.get_or_load("k", loader) == 1
        clock.now = 6
        assert cache.get_or_load("k", loader) == 2

    def test_loader_errors_are_not_cached(self, clock):
        cache = TTLCache(clock=clock)

        def failing():
            raise LookupError("gone")

        with pytest.raises(LookupError):
            cache.get_or_load("k", failing)
        assert len(cache) == 0
        assert cache.get_or_load("k", lambda: "ok") == "ok"

from datetime import timedelta

from depot_tools.cache import TTLCache


class FakeClock:
    def __init__(self):
        self.now = 100.0

    def __call__(self):
        return self.now


def test_ttl_cache_expires_entries():
    clock = FakeClock()
    cache = TTLCache(timedelta(minutes=15), clock=clock)

    cache.set("url", {"section7": "x"})
    assert cache.get("url") == {"section7": "x"}

    clock.now += 899
    assert cache.get("url") == {"section7": "x"}

    clock.now += 2
    assert cache.get("url") is None
    assert len(cache) == 0


def test_ttl_cache_disabled_with_zero_ttl():
    cache = TTLCache(timedelta(0))
    cache.set("url", 1)
    assert cache.get("url") is None


def test_ttl_cache_sweeps_expired_entries_on_set():
    clock = FakeClock()
    cache = TTLCache(timedelta(seconds=10), max_entries=10_000, clock=clock)

    for index in range(500):
        cache.set(f"https://example.com/sds.pdf?v={index}", index)
        clock.now += 1

    assert len(cache) == 10
    assert cache.get("https://example.com/sds.pdf?v=0") is None
    assert cache.get("https://example.com/sds.pdf?v=499") == 499


def test_ttl_cache_evicts_oldest_when_full():
    cache = TTLCache(timedelta(minutes=15), max_entries=2, clock=FakeClock())
    cache.set("a", 1)
    cache.set("b", 2)
    cache.set("c", 3)

    assert len(cache) == 2
    assert cache.get("a") is None
    assert cache.get("b") == 2
    assert cache.get("c") == 3


def test_ttl_cache_overwrite_refreshes_position():
    cache = TTLCache(timedelta(minutes=15), max_entries=2, clock=FakeClock())
    cache.set("a", 1)
    cache.set("b", 2)
    cache.set("a", 10)
    cache.set("c", 3)

    assert cache.get("a") == 10
    assert cache.get("b") is None

from alphaview.cache.ttl_cache import TTLCache


class FakeClock:
    def __init__(self, now: float = 0.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


def test_entry_is_served_until_ttl_elapses() -> None:
    clock = FakeClock(100.0)
    cache = TTLCache(default_ttl_seconds=300, clock=clock)
    cache.set("chart:AAPL:1y:1d", {"close": [1.0]})

    clock.now = 399.9
    assert cache.get("chart:AAPL:1y:1d") == {"close": [1.0]}
    clock.now = 400.0
    assert cache.get("chart:AAPL:1y:1d") is None
    assert len(cache) == 0


def test_per_entry_ttl_and_clear() -> None:
    clock = FakeClock()
    cache = TTLCache(default_ttl_seconds=300, clock=clock)
    cache.set("short", 1, ttl_seconds=10)
    cache.set("long", 2)
    clock.now = 11
    assert cache.get("short") is None
    assert cache.get("long") == 2
    cache.clear()
    assert len(cache) == 0
    assert cache.get("missing") is None

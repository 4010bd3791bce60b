"""Tests for stats aggregation and its five minute cache window."""

from items_api.cache import InMemoryCache
from items_api.stats import StatsCache, compute_stats


class FakeClock:
    def __init__(self, now: float = 1_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


def test_compute_stats_averages_prices():
    records = [{"id": 1, "price": 10}, {"id": 2, "price": 20}, {"id": 3, "price": 30}]

    assert compute_stats(records) == {"total": 3, "averagePrice": 20}


def test_compute_stats_on_empty_set_is_zero():
    assert compute_stats([]) == {"total": 0, "averagePrice": 0}


def test_compute_stats_ignores_non_numeric_prices():
    records = [{"price": 10}, {"price": "n/a"}, {"price": True}, {}]

    assert compute_stats(records) == {"total": 4, "averagePrice": 10}


def test_reads_within_window_return_identical_entry():
    """A second read inside the window keeps the original computedAt."""

    clock = FakeClock()
    stats = StatsCache(ttl_seconds=300, clock=clock)
    first = stats.get([{"price": 10}])

    clock.now += 299
    second = stats.get([{"price": 10}, {"price": 50}])

    assert second == first
    assert second["computedAt"] == 1_000.0
    assert second["total"] == 1


def test_read_after_window_recomputes():
    clock = FakeClock()
    stats = StatsCache(ttl_seconds=300, clock=clock)
    stats.get([{"price": 10}])

    clock.now += 300
    refreshed = stats.get([{"price": 10}, {"price": 50}])

    assert refreshed == {"total": 2, "averagePrice": 30, "computedAt": 1_300.0}


def test_invalidate_forces_recompute():
    clock = FakeClock()
    backend = InMemoryCache()
    stats = StatsCache(backend=backend, ttl_seconds=300, clock=clock)
    stats.get([])

    stats.invalidate()

    assert stats.fresh() is None
    assert stats.get([{"price": 4}])["total"] == 1


def test_fresh_returns_none_before_first_compute():
    assert StatsCache(clock=FakeClock()).fresh() is None

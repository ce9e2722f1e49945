from tour_router.services.routing.cache import NullRouteCache, OptimizationCache, params_digest
from tour_router.services.routing.models import OptimizationConstraints, RouteResult


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def _result(score: int = 90) -> RouteResult:
    return RouteResult(stops=[], gaps=[], total_distance_km=0.0, total_travel_time_minutes=0, optimization_score=score)


def test_get_returns_stored_result_for_same_params():
    cache = OptimizationCache(ttl_seconds=60)
    result = _result()

    cache.set(1, {"constraints": {"a": 1}}, result)

    assert cache.get(1, {"constraints": {"a": 1}}) is result
    assert cache.get(1, {"constraints": {"a": 2}}) is None
    assert cache.get(2, {"constraints": {"a": 1}}) is None


def test_params_digest_ignores_key_order_and_accepts_dataclasses():
    assert params_digest({"a": 1, "b": [1, 2]}) == params_digest({"b": [1, 2], "a": 1})
    assert params_digest(None) == params_digest({})
    first = OptimizationConstraints(avoid_dates=("2025-06-02", "2025-06-01"))
    second = OptimizationConstraints(avoid_dates=("2025-06-02", "2025-06-01"))
    assert params_digest(first) == params_digest(second)


def test_invalidate_drops_every_entry_for_the_tour():
    cache = OptimizationCache(ttl_seconds=60)
    cache.set(1, {"p": 1}, _result())
    cache.set(1, {"p": 2}, _result())
    cache.set(2, {"p": 1}, _result())

    cache.invalidate(1)

    assert cache.get(1, {"p": 1}) is None
    assert cache.get(1, {"p": 2}) is None
    assert cache.get(2, {"p": 1}) is not None


def test_entries_expire_after_ttl():
    clock = FakeClock()
    cache = OptimizationCache(ttl_seconds=3600, clock=clock)
    cache.set(1, {}, _result())

    clock.now = 3599.0
    assert cache.get(1, {}) is not None

    clock.now = 3601.0
    assert cache.get(1, {}) is None
    assert cache.stats["size"] == 0


def test_least_recently_used_entry_is_evicted():
    cache = OptimizationCache(ttl_seconds=60, max_entries=2)
    cache.set(1, {}, _result())
    cache.set(2, {}, _result())
    cache.get(1, {})

    cache.set(3, {}, _result())

    assert cache.get(1, {}) is not None
    assert cache.get(2, {}) is None
    assert cache.get(3, {}) is not None


def test_result_computed_before_invalidation_is_discarded():
    cache = OptimizationCache(ttl_seconds=60)
    generation = cache.generation(1)

    cache.invalidate(1)
    cache.set(1, {}, _result(), generation=generation)

    assert cache.get(1, {}) is None
    assert cache.generation(1) == generation + 1

    cache.set(1, {}, _result(), generation=cache.generation(1))
    assert cache.get(1, {}) is not None


def test_stats_track_hits_and_misses():
    cache = OptimizationCache(ttl_seconds=60)
    cache.set(1, {}, _result())
    cache.get(1, {})
    cache.get(1, {"other": True})

    assert cache.stats == {"size": 1, "hits": 1, "misses": 1, "hit_rate": 0.5}

    cache.clear()
    assert cache.stats == {"size": 0, "hits": 0, "misses": 0, "hit_rate": 0.0}


def test_null_cache_never_stores():
    cache = NullRouteCache()
    cache.set(1, {}, _result())
    assert cache.get(1, {}) is None
    assert cache.generation(1) == 0
    cache.invalidate(1)
    cache.clear()

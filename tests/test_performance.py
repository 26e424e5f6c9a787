from __future__ import annotations

import pytest


class _Clock:
    def __init__(self, now: float = 0.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


def test_benchmark_completes_exactly_once() -> None:
    from mac_chrome.engine.performance import BenchmarkTable

    clock = _Clock(1.0)
    table = BenchmarkTable(clock=clock)
    bench_id = table.start("execute", windowIndex=1)
    assert bench_id == "execute-1"
    clock.now = 1.25
    done = table.end(bench_id, success=True)
    assert done is not None
    assert done.duration_ms == pytest.approx(250.0)
    clock.now = 9.0
    assert table.end(bench_id, success=False) is None
    assert table.get(bench_id).success is True
    assert table.end("nope-1") is None


def test_benchmark_table_is_bounded() -> None:
    from mac_chrome.engine.performance import BenchmarkTable

    table = BenchmarkTable(max_entries=3, clock=_Clock())
    ids = [table.start("op") for _ in range(5)]
    assert len(table) == 3
    assert table.get(ids[0]) is None
    assert table.get(ids[-1]) is not None


def test_measure_records_failure_on_exception() -> None:
    from mac_chrome.engine.performance import BenchmarkTable

    table = BenchmarkTable(clock=_Clock())
    with table.measure("good") as good_id:
        pass
    with pytest.raises(RuntimeError):
        with table.measure("bad") as bad_id:
            raise RuntimeError("x")
    assert table.get(good_id).success is True
    assert table.get(bad_id).success is False
    summary = table.summary()
    assert summary["bad"]["failures"] == 1
    assert summary["good"]["count"] == 1
    assert [b.name for b in table.recent(1)] == ["bad"]


def test_summary_aggregates_durations() -> None:
    from mac_chrome.engine.performance import BenchmarkTable

    clock = _Clock()
    table = BenchmarkTable(clock=clock)
    for ms in (10, 30):
        bench_id = table.start("exec")
        clock.now += ms / 1000.0
        table.end(bench_id)
    row = table.summary()["exec"]
    assert row["count"] == 2
    assert row["minMs"] == pytest.approx(10.0)
    assert row["maxMs"] == pytest.approx(30.0)
    assert row["avgMs"] == pytest.approx(20.0)


def test_connection_pool_purges_and_evicts() -> None:
    from mac_chrome.engine.performance import ConnectionPool

    clock = _Clock()
    pool = ConnectionPool(max_connections=2, ttl=30.0, clock=clock)
    assert pool.acquire(1).id == "chrome-1"
    pool.acquire(2)
    assert pool.acquire(1).uses == 2
    pool.acquire(3)
    assert pool.is_warm(1) and pool.is_warm(3)
    assert not pool.is_warm(2)

    clock.now = 31.0
    assert not pool.is_warm(1)
    pool.acquire(4)
    assert pool.stats().active_connections == 1


def test_recommendations() -> None:
    from mac_chrome.engine.cache import CacheStats
    from mac_chrome.engine.performance import PoolStats, performance_recommendations

    calm = CacheStats(size=1, max_entries=10, ttl=1.0, hits=0, misses=0, evictions=0, expirations=0)
    busy = CacheStats(size=9, max_entries=10, ttl=1.0, hits=0, misses=0, evictions=0, expirations=0)
    idle_pool = PoolStats(active_connections=0, max_connections=5, ttl=30.0)
    full_pool = PoolStats(active_connections=5, max_connections=5, ttl=30.0)

    assert performance_recommendations(script_cache=calm, coords_cache=calm, pool=idle_pool) == [
        "Performance is optimal - no recommendations at this time"
    ]
    recs = performance_recommendations(script_cache=busy, coords_cache=busy, pool=full_pool)
    assert len(recs) == 3
    assert any("script cache" in r for r in recs)
    assert any("Connection pool" in r for r in recs)

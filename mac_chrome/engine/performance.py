"""Benchmark + connection bookkeeping.

Both tables are bounded and purely advisory: dropping an entry never changes
the outcome of an operation, it only loses timing history or "warm" state.
"""

from __future__ import annotations

import contextlib
import itertools
import time
from collections import OrderedDict
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from typing import Any

from .cache import CacheStats


@dataclass
class Benchmark:
    id: str
    name: str
    start_time: float
    end_time: float | None = None
    duration_ms: float | None = None
    success: bool | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def finished(self) -> bool:
        return self.end_time is not None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "durationMs": self.duration_ms,
            "success": self.success,
            "metadata": self.metadata,
        }


class BenchmarkTable:
    def __init__(self, max_entries: int = 1000, *, clock: Callable[[], float] = time.perf_counter) -> None:
        self.max_entries = max(1, int(max_entries))
        self._clock = clock
        self._seq = itertools.count(1)
        self._entries: OrderedDict[str, Benchmark] = OrderedDict()

    def start(self, name: str, **metadata: Any) -> str:
        bench_id = f"{name}-{next(self._seq)}"
        self._entries[bench_id] = Benchmark(id=bench_id, name=name, start_time=self._clock(), metadata=metadata)
        while len(self._entries) > self.max_entries:
            self._entries.popitem(last=False)
        return bench_id

    def end(self, bench_id: str, success: bool = True) -> Benchmark | None:
        """Complete a benchmark exactly once; unknown or finished ids return None."""
        bench = self._entries.get(bench_id)
        if bench is None or bench.finished:
            return None
        bench.end_time = self._clock()
        bench.duration_ms = (bench.end_time - bench.start_time) * 1000.0
        bench.success = bool(success)
        return bench

    @contextlib.contextmanager
    def measure(self, name: str, **metadata: Any) -> Iterator[str]:
        bench_id = self.start(name, **metadata)
        ok = False
        try:
            yield bench_id
            ok = True
        finally:
            self.end(bench_id, success=ok)

    def get(self, bench_id: str) -> Benchmark | None:
        return self._entries.get(bench_id)

    def recent(self, limit: int = 20) -> list[Benchmark]:
        done = [b for b in self._entries.values() if b.finished]
        return done[-max(0, int(limit)) :] if limit else []

    def summary(self) -> dict[str, dict[str, Any]]:
        out: dict[str, dict[str, Any]] = {}
        for bench in self._entries.values():
            if bench.duration_ms is None:
                continue
            row = out.setdefault(
                bench.name,
                {"count": 0, "failures": 0, "totalMs": 0.0, "minMs": bench.duration_ms, "maxMs": bench.duration_ms},
            )
            row["count"] += 1
            if not bench.success:
                row["failures"] += 1
            row["totalMs"] += bench.duration_ms
            row["minMs"] = min(row["minMs"], bench.duration_ms)
            row["maxMs"] = max(row["maxMs"], bench.duration_ms)
        for row in out.values():
            row["avgMs"] = row["totalMs"] / row["count"]
        return out

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


@dataclass
class ConnectionRecord:
    id: str
    window_index: int
    last_used: float
    uses: int = 1


@dataclass
class PoolStats:
    active_connections: int
    max_connections: int
    ttl: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "activeConnections": self.active_connections,
            "maxConnections": self.max_connections,
            "ttl": self.ttl,
        }


class ConnectionPool:
    """Recently addressed window indices, bounded by count and TTL."""

    def __init__(
        self,
        max_connections: int = 5,
        ttl: float = 30.0,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_connections = max(1, int(max_connections))
        self.ttl = float(ttl)
        self._clock = clock
        self._records: OrderedDict[str, ConnectionRecord] = OrderedDict()

    @staticmethod
    def connection_id(window_index: int) -> str:
        return f"chrome-{window_index}"

    def _purge(self, now: float) -> None:
        stale = [cid for cid, rec in self._records.items() if now - rec.last_used > self.ttl]
        for cid in stale:
            del self._records[cid]

    def acquire(self, window_index: int) -> ConnectionRecord:
        now = self._clock()
        self._purge(now)
        cid = self.connection_id(window_index)
        rec = self._records.get(cid)
        if rec is not None:
            rec.last_used = now
            rec.uses += 1
            self._records.move_to_end(cid)
            return rec
        while len(self._records) >= self.max_connections:
            self._records.popitem(last=False)
        rec = ConnectionRecord(id=cid, window_index=window_index, last_used=now)
        self._records[cid] = rec
        return rec

    def is_warm(self, window_index: int) -> bool:
        rec = self._records.get(self.connection_id(window_index))
        return rec is not None and self._clock() - rec.last_used <= self.ttl

    def clear(self) -> None:
        self._records.clear()

    def stats(self) -> PoolStats:
        self._purge(self._clock())
        return PoolStats(active_connections=len(self._records), max_connections=self.max_connections, ttl=self.ttl)


def performance_recommendations(
    *,
    script_cache: CacheStats,
    coords_cache: CacheStats,
    pool: PoolStats,
) -> list[str]:
    recommendations: list[str] = []
    if script_cache.usage > 0.8:
        recommendations.append("Consider increasing script cache size for high-frequency operations")
    if coords_cache.usage > 0.8:
        recommendations.append("Consider increasing coordinates cache size for repeated DOM queries")
    if pool.active_connections >= pool.max_connections:
        recommendations.append("Connection pool at maximum capacity - consider increasing pool size")
    if not recommendations:
        recommendations.append("Performance is optimal - no recommendations at this time")
    return recommendations

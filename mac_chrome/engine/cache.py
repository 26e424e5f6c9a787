"""Bounded LRU + TTL cache.

Used for compiled script templates, selector coordinates and encoded images.
Every instance is owned by whoever constructs it (normally the engine) and is
safe to clear at any time: a miss only costs a recomputation.
"""

from __future__ import annotations

import hashlib
import time
from collections import OrderedDict
from collections.abc import Callable, Hashable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


def content_hash(*parts: Any) -> str:
    h = hashlib.sha256()
    for part in parts:
        h.update(str(part).encode("utf-8", errors="replace"))
        h.update(b"\x1f")
    return h.hexdigest()


@dataclass
class CacheStats:
    size: int
    max_entries: int
    ttl: float
    hits: int
    misses: int
    evictions: int
    expirations: int

    @property
    def usage(self) -> float:
        return self.size / self.max_entries if self.max_entries else 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "size": self.size,
            "maxEntries": self.max_entries,
            "ttl": self.ttl,
            "hits": self.hits,
            "misses": self.misses,
            "evictions": self.evictions,
            "expirations": self.expirations,
        }


class TTLCache(Generic[K, V]):
    def __init__(self, max_entries: int, ttl: float, *, clock: Callable[[], float] = time.monotonic) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be >= 1")
        if ttl <= 0:
            raise ValueError("ttl must be > 0")
        self.max_entries = int(max_entries)
        self.ttl = float(ttl)
        self._clock = clock
        self._data: OrderedDict[K, tuple[float, V]] = OrderedDict()
        self._hits = 0
        self._misses = 0
        self._evictions = 0
        self._expirations = 0

    def _expired(self, stored_at: float, now: float) -> bool:
        return now - stored_at >= self.ttl

    def get(self, key: K, default: V | None = None) -> V | None:
        entry = self._data.get(key)
        if entry is None:
            self._misses += 1
            return default
        stored_at, value = entry
        if self._expired(stored_at, self._clock()):
            del self._data[key]
            self._expirations += 1
            self._misses += 1
            return default
        self._data.move_to_end(key)
        self._hits += 1
        return value

    def set(self, key: K, value: V) -> None:
        if key in self._data:
            del self._data[key]
        self._data[key] = (self._clock(), value)
        while len(self._data) > self.max_entries:
            self._data.popitem(last=False)
            self._evictions += 1

    def pop(self, key: K, default: V | None = None) -> V | None:
        entry = self._data.pop(key, None)
        if entry is None:
            return default
        return entry[1]

    def purge_expired(self) -> int:
        now = self._clock()
        stale = [k for k, (stored_at, _) in self._data.items() if self._expired(stored_at, now)]
        for k in stale:
            del self._data[k]
        self._expirations += len(stale)
        return len(stale)

    def keys(self) -> list[K]:
        return list(self._data)

    def clear(self) -> None:
        self._data.clear()

    def __contains__(self, key: object) -> bool:
        entry = self._data.get(key)  # type: ignore[arg-type]
        return entry is not None and not self._expired(entry[0], self._clock())

    def __len__(self) -> int:
        return len(self._data)

    def stats(self) -> CacheStats:
        return CacheStats(
            size=len(self._data),
            max_entries=self.max_entries,
            ttl=self.ttl,
            hits=self._hits,
            misses=self._misses,
            evictions=self._evictions,
            expirations=self._expirations,
        )

"""Parcel cache keyed by quantized coordinate, with time-to-live eviction.

One instance is owned by the orchestrator. Access is guarded by a lock so
concurrent lookups for the same coordinate at worst duplicate the provider
call; the later ``put`` simply overwrites with an equivalent record.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable

from parcelmatch.core.config import CacheConfig
from parcelmatch.geo.geometry import coordinate_key
from parcelmatch.parcels.models import ParcelRecord

EvictionHook = Callable[[str, ParcelRecord], None]


@dataclass(frozen=True)
class CacheEntry:
    parcel: ParcelRecord
    fetched_at: float


class ParcelCache:
    """TTL cache of provider parcels.

    Args:
        ttl_seconds: Maximum entry age; default 24 hours.
        clock: Monotonic seconds source, injectable for tests.
        max_entries: Optional bound; the oldest entry is evicted on overflow.
        on_evict: Called with ``(key, parcel)`` whenever an entry is dropped
            for age or size.
        precision: Decimal places used when building keys.
    """

    def __init__(
        self,
        ttl_seconds: float = 24 * 60 * 60,
        clock: Callable[[], float] = time.monotonic,
        max_entries: int | None = None,
        on_evict: EvictionHook | None = None,
        precision: int = 6,
    ) -> None:
        self._ttl = ttl_seconds
        self._clock = clock
        self._max_entries = max_entries
        self._on_evict = on_evict
        self._precision = precision
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()
        self._stats = {"hits": 0, "misses": 0, "evictions": 0}

    @classmethod
    def from_config(
        cls,
        config: CacheConfig,
        clock: Callable[[], float] = time.monotonic,
        on_evict: EvictionHook | None = None,
    ) -> ParcelCache:
        return cls(
            ttl_seconds=config.ttl_seconds,
            clock=clock,
            max_entries=config.max_entries,
            on_evict=on_evict,
            precision=config.precision,
        )

    def key_for(self, latitude: float, longitude: float) -> str:
        return coordinate_key(latitude, longitude, self._precision)

    def get(self, key: str) -> ParcelRecord | None:
        evicted: CacheEntry | None = None
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._stats["misses"] += 1
                return None
            if self._clock() - entry.fetched_at > self._ttl:
                evicted = self._entries.pop(key)
                self._stats["misses"] += 1
                self._stats["evictions"] += 1
            else:
                self._stats["hits"] += 1
                return entry.parcel
        self._notify(key, evicted)
        return None

    def put(self, key: str, parcel: ParcelRecord) -> None:
        evicted: list[tuple[str, CacheEntry]] = []
        with self._lock:
            if (
                self._max_entries is not None
                and key not in self._entries
                and len(self._entries) >= self._max_entries
            ):
                oldest = min(self._entries, key=lambda k: self._entries[k].fetched_at)
                evicted.append((oldest, self._entries.pop(oldest)))
                self._stats["evictions"] += 1
            self._entries[key] = CacheEntry(parcel=parcel, fetched_at=self._clock())
        for old_key, entry in evicted:
            self._notify(old_key, entry)

    def evict_expired(self) -> int:
        """Drop every stale entry. Returns the number removed."""
        now = self._clock()
        with self._lock:
            stale = [k for k, e in self._entries.items() if now - e.fetched_at > self._ttl]
            removed = [(k, self._entries.pop(k)) for k in stale]
            self._stats["evictions"] += len(removed)
        for key, entry in removed:
            self._notify(key, entry)
        return len(removed)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._stats = {"hits": 0, "misses": 0, "evictions": 0}

    def stats(self) -> dict[str, int]:
        with self._lock:
            return {**self._stats, "size": len(self._entries)}

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _notify(self, key: str, entry: CacheEntry | None) -> None:
        if entry is not None and self._on_evict is not None:
            self._on_evict(key, entry.parcel)

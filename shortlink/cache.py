"""In-process, time-boxed read-through cache of link records.

Flow Diagram — get()
====================
::
    ┌─────────────┐
    │ get(slug)   │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ Entry in    │
    │ map?        │
    └──────┬──────┘
    ┌─────┴─────┐
    │ NO         │ YES
    ▼            ▼
┌─────────┐  ┌─────────────┐
│ MISS    │  │ age < TTL ? │
│ (None)  │  └──────┬──────┘
└─────────┘   ┌─────┴─────┐
              │ NO         │ YES
              ▼            ▼
         ┌─────────┐  ┌─────────┐
         │ Evict,  │  │ HIT     │
         │ MISS    │  │ record  │
         └─────────┘  └─────────┘

How to Use
===========
**Step 1 — Create one cache per process**::
    cache = LinkCache(ttl_seconds=600)

**Step 2 — Read through**::
    record = cache.get(slug)
    if record is None:
        generation = cache.generation(slug)
        record = await store.find_by_slug(slug)
        if record is not None:
            cache.set(slug, record, generation)

**Step 3 — Invalidate on delete**::
    cache.delete(record.slug)

**Step 4 — Sweep periodically**::
    task = asyncio.create_task(run_sweeper(cache, 60, logger))

Key Behaviours
===============
- Entries are snapshots; their click counts lag the store and are never
  written back.
- ``delete`` bumps a per-slug generation. A read-through that took the
  generation before its store read and passes it to ``set`` cannot re-cache a
  slug deleted while the read was in flight. Generations are kept for every
  deleted slug, so they grow with deletes, not with reads.
- No size bound: memory is bounded by the distinct slugs read within one TTL
  window plus the periodic sweep.
- A single lock guards the entry map; operations never suspend, so they are
  safe from any coroutine or thread.
- The clock is injectable for tests and defaults to ``time.monotonic``.

Classes:
    CacheEntry:  A record snapshot with its insertion time.
    LinkCache:  The TTL cache.

Functions:
    run_sweeper():  Background loop calling ``LinkCache.sweep``.
"""

import asyncio
import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

from prometheus_client import Counter, Gauge

from shortlink.enums import EvictionReason
from shortlink.store import LinkRecord

__all__ = ["CacheEntry", "LinkCache", "run_sweeper"]

CACHE_HITS_TOTAL = Counter(
    "shortlink_cache_hits_total",
    "Total link cache hits",
)
CACHE_MISSES_TOTAL = Counter(
    "shortlink_cache_misses_total",
    "Total link cache misses, including stale entries",
)
CACHE_EVICTIONS_TOTAL = Counter(
    "shortlink_cache_evictions_total",
    "Link cache entries removed",
    ["reason"],
)
CACHE_ENTRIES = Gauge(
    "shortlink_cache_entries",
    "Entries currently held by the link cache",
)


@dataclass(frozen=True)
class CacheEntry:
    record: LinkRecord
    inserted_at: float


class LinkCache:
    def __init__(self, ttl_seconds: float = 600.0, clock: Callable[[], float] = time.monotonic):
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        # bumped by every delete of a slug
        self._generations: dict[str, int] = {}
        self._lock = threading.Lock()

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get(self, slug: str) -> LinkRecord | None:
        """Return the cached record for ``slug`` if it is younger than the TTL.

        A stale entry is evicted as a side effect and reported as a miss.
        """
        now = self._clock()
        with self._lock:
            entry = self._entries.get(slug)
            if entry is None:
                CACHE_MISSES_TOTAL.inc()
                return None
            if now - entry.inserted_at >= self._ttl:
                del self._entries[slug]
                CACHE_EVICTIONS_TOTAL.labels(reason=EvictionReason.EXPIRED).inc()
                CACHE_ENTRIES.set(len(self._entries))
                CACHE_MISSES_TOTAL.inc()
                return None
        CACHE_HITS_TOTAL.inc()
        return entry.record

    def generation(self, slug: str) -> int:
        """Return the delete generation of ``slug``; take it before a store read."""
        with self._lock:
            return self._generations.get(slug, 0)

    def set(self, slug: str, record: LinkRecord, generation: int | None = None) -> bool:
        """Cache ``record`` under ``slug``.

        With ``generation`` given, the record is dropped if ``slug`` was deleted
        since that generation was read. Returns whether the record was stored.
        """
        entry = CacheEntry(record=record, inserted_at=self._clock())
        with self._lock:
            if generation is not None and self._generations.get(slug, 0) != generation:
                return False
            self._entries[slug] = entry
            CACHE_ENTRIES.set(len(self._entries))
        return True

    def delete(self, slug: str) -> None:
        with self._lock:
            self._generations[slug] = self._generations.get(slug, 0) + 1
            removed = self._entries.pop(slug, None)
            if removed is not None:
                CACHE_EVICTIONS_TOTAL.labels(reason=EvictionReason.DELETED).inc()
                CACHE_ENTRIES.set(len(self._entries))

    def sweep(self) -> int:
        """Evict every entry whose age has reached the TTL.

        Returns:
            int: Number of entries evicted.
        """
        now = self._clock()
        with self._lock:
            stale = [slug for slug, entry in self._entries.items() if now - entry.inserted_at >= self._ttl]
            for slug in stale:
                del self._entries[slug]
            CACHE_ENTRIES.set(len(self._entries))
        if stale:
            CACHE_EVICTIONS_TOTAL.labels(reason=EvictionReason.SWEPT).inc(len(stale))
        return len(stale)

    def stats(self) -> dict[str, float | int | None]:
        with self._lock:
            size = len(self._entries)
        return {"size": size, "ttl_seconds": self._ttl, "max_size": None}


async def run_sweeper(cache: LinkCache, interval_seconds: float, logger: logging.Logger) -> None:
    """Sweep ``cache`` every ``interval_seconds`` until cancelled."""
    logger.info(f"Starting link cache sweeper every {interval_seconds}s")

    while True:
        await asyncio.sleep(interval_seconds)
        try:
            evicted = cache.sweep()
            if evicted:
                logger.debug(f"Link cache sweep evicted {evicted} entries")
        except Exception as exc:
            logger.error(f"Link cache sweep error: {exc}")

"""Slug resolution: cache, store fallback, click counting, response kind.

Flow Diagram — resolve()
========================
::
    ┌─────────────┐
    │ CacheCheck  │──── HIT ─────────────────────┐
    └──────┬──────┘                              │
           │ MISS                                │
           ▼                                     │
    ┌─────────────┐                              │
    │ StoreFallback│── StoreUnavailable ─▶ 500   │
    └──────┬──────┘                              │
    FOUND? │── NO ─▶ LinkNotFound (404)          │
           ▼                                     │
    ┌─────────────┐                              │
    │ cache.set() │                              │
    └──────┬──────┘                              │
           ▼◀────────────────────────────────────┘
    ┌─────────────┐
    │ RecordFound │── text + preview ─▶ PREVIEW page
    │             │── text ───────────▶ TEXT page
    │             │── url ────────────▶ REDIRECT (302)
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ ClickUpdate │  detached task, failures logged and dropped
    └──────┬──────┘
           ▼
        Respond

Key Behaviours
===============
- Preview does not bypass click counting.
- Click updates run as background tasks owned by ``ClickTracker``, not by the
  request, so an aborted request still gets counted.
- The cached snapshot's click count is never incremented or written back.

Classes:
    Resolution:  Outcome of a resolved slug.
    ClickTracker:  Owner of detached click-update tasks.
    RedirectResolver:  The per-request resolution state machine.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

from prometheus_client import Counter, Histogram

from shortlink.cache import LinkCache
from shortlink.enums import CacheStatus, ResolutionKind
from shortlink.exceptions import LinkNotFound
from shortlink.rendering import render_text_page
from shortlink.store import LinkRecord, LinkStore

if TYPE_CHECKING:
    from shortlink.dependencies import RequestContext

__all__ = ["ClickTracker", "RedirectResolver", "Resolution"]

RESOLUTIONS_TOTAL = Counter(
    "shortlink_resolutions_total",
    "Resolved slugs, by response kind and cache status",
    ["kind", "cache"],
)
RESOLUTION_NOT_FOUND_TOTAL = Counter(
    "shortlink_resolution_not_found_total",
    "Slug lookups that matched no link",
)
RESOLUTION_DURATION = Histogram(
    "shortlink_resolution_duration_seconds",
    "Time taken to resolve a slug, excluding the click update",
    buckets=[0.0005, 0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25],
)
CLICK_UPDATES_TOTAL = Counter(
    "shortlink_click_updates_total",
    "Click counter increments that reached the store",
)
CLICK_UPDATE_FAILURES_TOTAL = Counter(
    "shortlink_click_update_failures_total",
    "Click counter increments that failed and were dropped",
)


@dataclass(frozen=True)
class Resolution:
    kind: ResolutionKind
    record: LinkRecord
    cache_status: CacheStatus
    body: str | None = None

    @property
    def location(self) -> str | None:
        return self.record.target if self.kind is ResolutionKind.REDIRECT else None


class ClickTracker:
    """Spawns and keeps references to click-update tasks until they finish."""

    def __init__(self, store: LinkStore, logger: logging.Logger):
        self._store = store
        self._logger = logger
        self._pending: set[asyncio.Task[None]] = set()

    @property
    def pending(self) -> int:
        return len(self._pending)

    def record_click(self, record: LinkRecord) -> asyncio.Task[None]:
        task = asyncio.create_task(self._increment(record), name=f"click:{record.slug}")
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _increment(self, record: LinkRecord) -> None:
        try:
            await self._store.increment_clicks(record.id)
            CLICK_UPDATES_TOTAL.inc()
        except Exception as exc:
            CLICK_UPDATE_FAILURES_TOTAL.inc()
            self._logger.warning(f"Click update failed for {record.slug} (id={record.id}): {exc}")

    async def drain(self) -> None:
        """Wait for every click update spawned so far."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)


class RedirectResolver:
    def __init__(
        self,
        store: LinkStore,
        cache: LinkCache,
        click_tracker: ClickTracker,
        logger: logging.Logger | logging.LoggerAdapter,
        preview_chars: int = 500,
    ):
        self._store = store
        self._cache = cache
        self._clicks = click_tracker
        self._logger = logger
        self._preview_chars = preview_chars

    @classmethod
    def from_context(cls, ctx: "RequestContext") -> "RedirectResolver":
        manager = ctx.service_manager
        return cls(
            store=ctx.store,
            cache=manager.cache,
            click_tracker=manager.click_tracker,
            logger=ctx.logger,
            preview_chars=ctx.settings.PREVIEW_MAX_CHARS,
        )

    async def resolve(self, slug: str, preview: bool = False) -> Resolution:
        """Resolve ``slug`` to a redirect or a rendered text page.

        Raises:
            LinkNotFound: If no link has this slug
            StoreUnavailable: If the cache missed and the store failed
        """
        start_time = time.perf_counter()

        record = self._cache.get(slug)
        cache_status = CacheStatus.HIT
        if record is None:
            cache_status = CacheStatus.MISS
            generation = self._cache.generation(slug)
            record = await self._store.find_by_slug(slug)
            if record is None:
                RESOLUTION_NOT_FOUND_TOTAL.inc()
                raise LinkNotFound(f"Short link '{slug}' not found")
            if not self._cache.set(slug, record, generation):
                self._logger.debug(f"Skipped caching {slug}: deleted during lookup")

        if not record.is_text:
            resolution = Resolution(kind=ResolutionKind.REDIRECT, record=record, cache_status=cache_status)
        elif preview:
            body = render_text_page(record.slug, record.target, preview_chars=self._preview_chars)
            resolution = Resolution(kind=ResolutionKind.PREVIEW, record=record, cache_status=cache_status, body=body)
        else:
            body = render_text_page(record.slug, record.target)
            resolution = Resolution(kind=ResolutionKind.TEXT, record=record, cache_status=cache_status, body=body)

        self._clicks.record_click(record)

        RESOLUTION_DURATION.observe(time.perf_counter() - start_time)
        RESOLUTIONS_TOTAL.labels(kind=resolution.kind, cache=cache_status).inc()
        self._logger.debug(f"Resolved {slug} as {resolution.kind} (cache {cache_status})")
        return resolution

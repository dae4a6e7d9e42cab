"""Slug allocation and link creation.

The allocator turns a creation request into a stored link whose slug is unique
at the moment of insertion. Collision handling is tiered by how likely a
candidate is to collide.

Flow Diagram — create_link()
============================
::
    ┌─────────────┐
    │ classify    │──── empty ───▶ EmptyContent
    │ content     │
    └──────┬──────┘
           ▼
    ┌─────────────┐   YES   ┌──────────────┐
    │ user slug?  │───────▶│ sanitize,    │── empty/reserved ─▶ InvalidSlug
    └──────┬──────┘         │ check, insert│── taken ──────────▶ SlugConflict
           │ NO             └──────────────┘
           ▼
    ┌─────────────┐   YES   ┌──────────────┐
    │ use AI?     │───────▶│ suggestion,  │── suggester fails ─┐
    └──────┬──────┘         │ -1 … -9      │── all taken ──────┤
           │ NO             └──────────────┘                   ▼
           ▼                                    ┌───────────────────────┐
    ┌─────────────┐                             │ random(8), checked    │
    │ random(6)   │                             │ against the store     │
    └─────────────┘                             └───────────────────────┘

Key Behaviours
===============
- Every insert is conditional: the store's unique slug constraint decides
  races. A user slug that loses one is a conflict; a generated slug that loses
  one moves on to the next candidate.
- Random slugs of the default length skip the pre-insert existence check
  unless ``RANDOM_SLUG_CHECK_EXISTENCE`` says otherwise; the fallback after
  content-derived collisions is always checked.
- Suggester failures never reach the caller.

Classes:
    CreatedLink:  The stored record plus where its slug came from.
    SlugAllocator:  Allocation and insertion for the three request modes.

Functions:
    classify_content():  Decide between a redirect link and a text link.
"""

import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

import validators
from prometheus_client import Counter, Histogram

from shortlink.config import Settings
from shortlink.enums import SlugSource
from shortlink.exceptions import (
    EmptyContent,
    ExternalGenerationFailure,
    InvalidSlug,
    SlugAllocationError,
    SlugConflict,
)
from shortlink.slugs import RESERVED_SLUGS, SlugGenerator, sanitize_user_slug
from shortlink.store import LinkRecord, LinkStore, NewLink

if TYPE_CHECKING:
    from shortlink.dependencies import RequestContext

__all__ = ["CreatedLink", "SlugAllocator", "classify_content"]

SLUG_ALLOCATIONS_TOTAL = Counter(
    "shortlink_slug_allocations_total",
    "Links created, by slug source",
    ["source"],
)
SLUG_COLLISIONS_TOTAL = Counter(
    "shortlink_slug_collisions_total",
    "Slug candidates rejected because they were taken or reserved",
    ["source"],
)
LINK_CREATION_DURATION = Histogram(
    "shortlink_link_creation_duration_seconds",
    "Time taken to allocate a slug and store a link",
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

RANDOM_CHECK_MIN_LENGTH = 6


def classify_content(content: str) -> tuple[str, bool]:
    """Return ``(target, is_text)`` for raw link content.

    Raises:
        EmptyContent: If the content is empty or whitespace only
    """
    stripped = (content or "").strip()
    if not stripped:
        raise EmptyContent("Content must not be empty")
    # single-label hosts such as localhost are valid absolute URLs too
    if validators.url(stripped, simple_host=True):
        return stripped, False
    return content, True


@dataclass(frozen=True)
class CreatedLink:
    record: LinkRecord
    source: SlugSource

    @property
    def is_ai(self) -> bool:
        return self.source is SlugSource.AI


class SlugAllocator:
    def __init__(
        self,
        store: LinkStore,
        generator: SlugGenerator,
        settings: Settings,
        logger: logging.Logger | logging.LoggerAdapter,
    ):
        self._store = store
        self._generator = generator
        self._settings = settings
        self._logger = logger

    @classmethod
    def from_context(cls, ctx: "RequestContext") -> "SlugAllocator":
        return cls(
            store=ctx.store,
            generator=ctx.service_manager.slug_generator,
            settings=ctx.settings,
            logger=ctx.logger,
        )

    async def create_link(self, content: str, slug: str | None = None, use_ai: bool = False) -> CreatedLink:
        """Allocate a slug for ``content`` and store the link.

        Args:
            content: A URL to redirect to, or free text to display
            slug: Optional user-chosen slug. ``None`` or ``""`` means no slug;
                anything else, whitespace included, must sanitize to a usable slug
            use_ai: Ask the content suggester for a slug when none is given

        Returns:
            CreatedLink: The stored record and the source of its slug

        Raises:
            EmptyContent: If ``content`` is blank
            InvalidSlug: If ``slug`` sanitizes to nothing or is reserved
            SlugConflict: If ``slug`` is already taken
            SlugAllocationError: If no generated slug could be inserted
            StoreUnavailable: If the store fails
        """
        start_time = time.perf_counter()
        target, is_text = classify_content(content)

        if slug:
            record = await self._insert_user_slug(slug, target, is_text)
            created = CreatedLink(record=record, source=SlugSource.USER)
        elif use_ai:
            created = await self._insert_content_slug(content, target, is_text)
        else:
            length = self._settings.SLUG_DEFAULT_LENGTH
            record = await self._insert_random_slug(target, is_text, length, self._checks_random(length))
            created = CreatedLink(record=record, source=SlugSource.RANDOM)

        SLUG_ALLOCATIONS_TOTAL.labels(source=created.source).inc()
        LINK_CREATION_DURATION.observe(time.perf_counter() - start_time)
        self._logger.info(f"Link created: {created.record.slug} ({created.source}, text={is_text})")
        return created

    async def _insert_user_slug(self, raw_slug: str, target: str, is_text: bool) -> LinkRecord:
        slug = sanitize_user_slug(
            raw_slug,
            max_length=self._settings.SLUG_MAX_LENGTH,
            min_length=self._settings.SLUG_MIN_LENGTH,
        )
        if not slug:
            raise InvalidSlug(f"Slug '{raw_slug}' contains no usable characters")
        if slug in RESERVED_SLUGS:
            raise InvalidSlug(f"Slug '{slug}' is reserved")

        if await self._store.find_by_slug(slug) is not None:
            SLUG_COLLISIONS_TOTAL.labels(source=SlugSource.USER).inc()
            raise SlugConflict(f"Slug '{slug}' is already taken, please choose another")

        return await self._store.insert(NewLink(slug=slug, target=target, is_text=is_text))

    async def _insert_content_slug(self, content: str, target: str, is_text: bool) -> CreatedLink:
        fallback_length = self._settings.SLUG_FALLBACK_LENGTH
        try:
            base = await self._generator.generate_from_content(content, is_text)
        except ExternalGenerationFailure as exc:
            self._logger.warning(f"Content slug generation failed, using random slug: {exc}")
            record = await self._insert_random_slug(target, is_text, fallback_length, check_existence=True)
            return CreatedLink(record=record, source=SlugSource.RANDOM)

        for candidate in self._suffixed(base):
            if candidate in RESERVED_SLUGS or await self._store.find_by_slug(candidate) is not None:
                SLUG_COLLISIONS_TOTAL.labels(source=SlugSource.AI).inc()
                continue
            try:
                record = await self._store.insert(NewLink(slug=candidate, target=target, is_text=is_text))
            except SlugConflict:
                SLUG_COLLISIONS_TOTAL.labels(source=SlugSource.AI).inc()
                continue
            return CreatedLink(record=record, source=SlugSource.AI)

        self._logger.warning(
            f"All {self._settings.SLUG_SUFFIX_ATTEMPTS} candidates for '{base}' are taken, using random slug"
        )
        record = await self._insert_random_slug(target, is_text, fallback_length, check_existence=True)
        return CreatedLink(record=record, source=SlugSource.RANDOM)

    async def _insert_random_slug(self, target: str, is_text: bool, length: int, check_existence: bool) -> LinkRecord:
        for _ in range(self._settings.RANDOM_SLUG_MAX_ATTEMPTS):
            candidate = self._generator.generate_random(length)
            if candidate in RESERVED_SLUGS:
                continue
            if check_existence and await self._store.find_by_slug(candidate) is not None:
                SLUG_COLLISIONS_TOTAL.labels(source=SlugSource.RANDOM).inc()
                continue
            try:
                return await self._store.insert(NewLink(slug=candidate, target=target, is_text=is_text))
            except SlugConflict:
                SLUG_COLLISIONS_TOTAL.labels(source=SlugSource.RANDOM).inc()
                self._logger.warning(f"Random slug collision on insert: {candidate}")

        raise SlugAllocationError(
            f"Could not allocate a unique slug after {self._settings.RANDOM_SLUG_MAX_ATTEMPTS} attempts"
        )

    def _suffixed(self, base: str) -> list[str]:
        attempts = self._settings.SLUG_SUFFIX_ATTEMPTS
        return [base] + [f"{base}-{n}" for n in range(1, attempts)]

    def _checks_random(self, length: int) -> bool:
        configured = self._settings.RANDOM_SLUG_CHECK_EXISTENCE
        if configured is not None:
            return configured
        return length < RANDOM_CHECK_MIN_LENGTH

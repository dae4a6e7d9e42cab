"""Durable link persistence behind a small store contract.

The allocator, the resolver and the admin routes only ever talk to a
``LinkStore``; the cache fronts it but never owns identity.

Store Contract
==============
::
    find_by_slug(slug)        -> LinkRecord | None
    find_by_id(id)            -> LinkRecord | None
    insert(NewLink)           -> LinkRecord   (id, clicks=0, created_at assigned)
    increment_clicks(id)      -> None         (atomic, by the backend)
    delete_by_id(id)          -> LinkRecord | None
    list_all(newest_first)    -> list[LinkRecord]
    ping()                    -> None

Key Behaviours
===============
- ``insert`` is conditional: a slug already present raises ``SlugConflict``.
- Backend failures surface as ``StoreUnavailable``; callers decide whether the
  failure is fatal (lookups, inserts) or absorbed (click updates).
- ``LinkRecord`` is a frozen snapshot; the cache hands out the same object it
  was given.

Classes:
    LinkRecord:  Immutable snapshot of a stored link.
    NewLink:  Link data before the store assigns identity.
    LinkStore:  Protocol consumed by the core.
    SQLAlchemyLinkStore:  Async SQLAlchemy implementation.
    InMemoryLinkStore:  Process-local implementation for local runs and tests.
"""

import datetime
import itertools
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, replace
from typing import Protocol

from sqlalchemy import delete, select, text, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from shortlink.exceptions import SlugConflict, StoreUnavailable
from shortlink.models import Link

__all__ = ["InMemoryLinkStore", "LinkRecord", "LinkStore", "NewLink", "SQLAlchemyLinkStore"]


@dataclass(frozen=True)
class LinkRecord:
    id: int
    slug: str
    target: str
    is_text: bool
    clicks: int
    created_at: datetime.datetime


@dataclass(frozen=True)
class NewLink:
    slug: str
    target: str
    is_text: bool


class LinkStore(Protocol):
    async def find_by_slug(self, slug: str) -> LinkRecord | None: ...

    async def find_by_id(self, link_id: int) -> LinkRecord | None: ...

    async def insert(self, link: NewLink) -> LinkRecord: ...

    async def increment_clicks(self, link_id: int) -> None: ...

    async def delete_by_id(self, link_id: int) -> LinkRecord | None: ...

    async def list_all(
        self, newest_first: bool = True, limit: int | None = None, offset: int = 0
    ) -> list[LinkRecord]: ...

    async def ping(self) -> None: ...


def _to_record(link: Link) -> LinkRecord:
    return LinkRecord(
        id=link.id,
        slug=link.slug,
        target=link.target,
        is_text=link.is_text,
        clicks=link.clicks,
        created_at=link.created_at,
    )


class SQLAlchemyLinkStore:
    """Link store over the ``links`` table.

    Each operation opens its own session from the factory, so a click update
    spawned by a finished request still has somewhere to run.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[AsyncSession]:
        try:
            async with self._session_factory() as session:
                yield session
        except SQLAlchemyError as exc:
            raise StoreUnavailable(f"Link store unavailable: {exc}") from exc

    async def find_by_slug(self, slug: str) -> LinkRecord | None:
        async with self._session() as session:
            result = await session.execute(select(Link).where(Link.slug == slug))
            link = result.scalar_one_or_none()
            return _to_record(link) if link is not None else None

    async def find_by_id(self, link_id: int) -> LinkRecord | None:
        async with self._session() as session:
            link = await session.get(Link, link_id)
            return _to_record(link) if link is not None else None

    async def insert(self, link: NewLink) -> LinkRecord:
        async with self._session() as session:
            row = Link(slug=link.slug, target=link.target, is_text=link.is_text, clicks=0)
            session.add(row)
            try:
                await session.commit()
            except IntegrityError as exc:
                await session.rollback()
                raise SlugConflict(f"Slug '{link.slug}' is already taken") from exc
            await session.refresh(row)
            return _to_record(row)

    async def increment_clicks(self, link_id: int) -> None:
        async with self._session() as session:
            await session.execute(update(Link).where(Link.id == link_id).values(clicks=Link.clicks + 1))
            await session.commit()

    async def delete_by_id(self, link_id: int) -> LinkRecord | None:
        async with self._session() as session:
            link = await session.get(Link, link_id)
            if link is None:
                return None
            record = _to_record(link)
            await session.execute(delete(Link).where(Link.id == link_id))
            await session.commit()
            return record

    async def list_all(
        self, newest_first: bool = True, limit: int | None = None, offset: int = 0
    ) -> list[LinkRecord]:
        if newest_first:
            order = (Link.created_at.desc(), Link.id.desc())
        else:
            order = (Link.created_at.asc(), Link.id.asc())
        stmt = select(Link).order_by(*order).offset(offset)
        if limit is not None:
            stmt = stmt.limit(limit)
        async with self._session() as session:
            result = await session.execute(stmt)
            return [_to_record(link) for link in result.scalars().all()]

    async def ping(self) -> None:
        async with self._session() as session:
            await session.execute(text("SELECT 1"))


class InMemoryLinkStore:
    """Process-local link store with the same conditional-insert semantics.

    Every operation completes without suspending, so under a single event loop
    each one is atomic.
    """

    def __init__(self) -> None:
        self._links: dict[int, LinkRecord] = {}
        self._ids_by_slug: dict[str, int] = {}
        self._ids = itertools.count(1)

    async def find_by_slug(self, slug: str) -> LinkRecord | None:
        link_id = self._ids_by_slug.get(slug)
        return self._links.get(link_id) if link_id is not None else None

    async def find_by_id(self, link_id: int) -> LinkRecord | None:
        return self._links.get(link_id)

    async def insert(self, link: NewLink) -> LinkRecord:
        if link.slug in self._ids_by_slug:
            raise SlugConflict(f"Slug '{link.slug}' is already taken")
        record = LinkRecord(
            id=next(self._ids),
            slug=link.slug,
            target=link.target,
            is_text=link.is_text,
            clicks=0,
            created_at=datetime.datetime.now(datetime.timezone.utc),
        )
        self._links[record.id] = record
        self._ids_by_slug[record.slug] = record.id
        return record

    async def increment_clicks(self, link_id: int) -> None:
        record = self._links.get(link_id)
        if record is not None:
            self._links[link_id] = replace(record, clicks=record.clicks + 1)

    async def delete_by_id(self, link_id: int) -> LinkRecord | None:
        record = self._links.pop(link_id, None)
        if record is not None:
            del self._ids_by_slug[record.slug]
        return record

    async def list_all(
        self, newest_first: bool = True, limit: int | None = None, offset: int = 0
    ) -> list[LinkRecord]:
        records = sorted(self._links.values(), key=lambda r: (r.created_at, r.id), reverse=newest_first)
        end = offset + limit if limit is not None else None
        return records[offset:end]

    async def ping(self) -> None:
        return None

"""Database engine and session management for the short-link service.

This module provides SQLAlchemy async engine setup, the session factory used by
the SQL link store, and database lifecycle operations.

Flow Diagram — Database Operations
=================================
::
    ┌─────────────┐
    │ Link store  │
    │ operation   │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ get_session_│
    │ factory()   │
    └──────┬──────┘
    EXISTS?  │
    ┌─────┴─────┐
    │ NO         │ YES
    ▼            ▼
┌─────────┐  ┌─────────┐
│ Create  │  │ Reuse   │
│ engine +│  │ factory │
│ factory │  │         │
└─────────┘  └─────────┘
           ▼
    ┌─────────────┐
    │ One session │
    │ per store   │
    │ operation   │
    └─────────────┘

How to Use
===========
**Step 1 — Initialize on startup**::
    await init_db()  # Creates tables

**Step 2 — Open a session**::
    async with get_session_factory()() as session:
        await session.execute(select(Link))

**Step 3 — Cleanup on shutdown**::
    await close_db()

Key Behaviours
===============
- The engine is created lazily on first use, so the in-memory backend never
  touches a database driver.
- Sessions are not bound to HTTP requests: detached click updates outlive the
  request that triggered them.
- Engine is disposed on application shutdown.

Classes:
    Base:  SQLAlchemy declarative base for all models.

Functions:
    get_engine():  Lazily created async engine.
    get_session_factory():  Lazily created async session factory.
    init_db():  Creates all tables on startup.
    close_db():  Disposes the engine on shutdown.
"""

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from shortlink.config import get_settings

__all__ = ["Base", "close_db", "get_engine", "get_session_factory", "init_db"]

engine: AsyncEngine | None = None
async_session: async_sessionmaker[AsyncSession] | None = None


class Base(DeclarativeBase):
    pass


def get_engine() -> AsyncEngine:
    global engine
    if engine is None:
        settings = get_settings()
        options = {"echo": settings.DATABASE_ECHO, "pool_pre_ping": True}
        if not settings.DATABASE_URL.startswith("sqlite"):
            options.update(
                pool_size=settings.DATABASE_POOL_SIZE,
                max_overflow=settings.DATABASE_MAX_OVERFLOW,
            )
        engine = create_async_engine(settings.DATABASE_URL, **options)
    return engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    global async_session
    if async_session is None:
        async_session = async_sessionmaker(
            get_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
        )
    return async_session


async def init_db() -> None:
    # models must be imported so their tables are registered on Base.metadata
    from shortlink import models  # noqa: F401

    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    global engine, async_session
    if engine is not None:
        await engine.dispose()
    engine = None
    async_session = None

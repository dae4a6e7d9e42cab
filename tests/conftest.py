"""Shared pytest fixtures for store, cache, service and HTTP tests."""

from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from shortlink.cache import LinkCache
from shortlink.config import Settings
from shortlink.database import Base
from shortlink.dependencies import ServiceManager, get_service_manager
from shortlink.main import app
from shortlink.store import InMemoryLinkStore, SQLAlchemyLinkStore

from helpers import FakeClock, StubSuggester


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        STORE_BACKEND="memory",
        BASE_URL="http://test",
        AI_API_KEY=None,
        ADMIN_PASSWORD="s3cret",
        ADMIN_PASSWORD_BCRYPT=None,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock: FakeClock) -> LinkCache:
    return LinkCache(ttl_seconds=600, clock=clock)


@pytest.fixture
def store() -> InMemoryLinkStore:
    return InMemoryLinkStore()


@pytest_asyncio.fixture
async def sql_store() -> AsyncGenerator[SQLAlchemyLinkStore, None]:
    # one shared connection keeps the in-memory database alive across sessions
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield SQLAlchemyLinkStore(async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False))

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def suggester() -> StubSuggester:
    return StubSuggester()


@pytest_asyncio.fixture
async def manager(
    settings: Settings, store: InMemoryLinkStore, suggester: StubSuggester
) -> AsyncGenerator[ServiceManager, None]:
    manager = ServiceManager()
    await manager.initialize(settings=settings, store=store, suggester=suggester, start_sweeper=False)
    yield manager
    await manager.cleanup()


@pytest_asyncio.fixture
async def client(manager: ServiceManager) -> AsyncGenerator[AsyncClient, None]:
    async def override_get_service_manager() -> ServiceManager:
        return manager

    app.dependency_overrides[get_service_manager] = override_get_service_manager

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()

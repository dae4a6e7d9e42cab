"""Dependency injection with a shared service manager.

This module provides a centralized way to inject the link store, the link
cache and the other process-wide collaborators into request handlers, and a
per-request context for logging and timing.
"""

import asyncio
import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Optional

from fastapi import Depends, Request

from shortlink.ai import ContentSlugSuggester
from shortlink.allocator import SlugAllocator
from shortlink.auth import CredentialVerifier, verifier_from_settings
from shortlink.cache import LinkCache, run_sweeper
from shortlink.config import Settings, get_settings
from shortlink.database import close_db, get_session_factory, init_db
from shortlink.resolver import ClickTracker, RedirectResolver
from shortlink.slugs import SlugGenerator
from shortlink.store import InMemoryLinkStore, LinkStore, SQLAlchemyLinkStore


# ============================================================================
# SERVICE MANAGER
# ============================================================================


class ServiceManager:
    """Owner of the process-wide collaborators.

    One manager exists per application process. It owns the link cache and its
    sweeper task, the click tracker and its pending tasks, the link store, the
    slug generator and the admin credential verifier.
    """

    _initialized: bool = False

    async def initialize(
        self,
        settings: Settings | None = None,
        store: LinkStore | None = None,
        suggester: ContentSlugSuggester | None = None,
        verifier: CredentialVerifier | None = None,
        start_sweeper: bool = True,
    ) -> None:
        """Initialize shared resources once at startup."""
        if self._initialized:
            return

        self.settings = settings or get_settings()
        self.logger = self._setup_logger()
        self.store = store or await self._setup_store()
        self.cache = LinkCache(ttl_seconds=self.settings.CACHE_TTL_SECONDS)
        self.click_tracker = ClickTracker(self.store, self.logger)
        self.slug_generator = SlugGenerator(
            suggester or ContentSlugSuggester.from_settings(self.settings),
            ai_max_length=self.settings.AI_SLUG_MAX_LENGTH,
            min_length=self.settings.SLUG_MIN_LENGTH,
        )
        self.verifier = verifier or verifier_from_settings(self.settings)
        self._sweeper: asyncio.Task[None] | None = None
        if start_sweeper:
            self._sweeper = asyncio.create_task(
                run_sweeper(self.cache, self.settings.CACHE_SWEEP_INTERVAL_SECONDS, self.logger),
                name="link-cache-sweeper",
            )
        self._initialized = True
        self.logger.info(
            f"{self.settings.APP_NAME} initialized ({self.settings.APP_ENV}) with {self.settings.STORE_BACKEND} store"
        )

    def _setup_logger(self) -> logging.Logger:
        """Setup logger once."""
        logger = logging.getLogger("shortlink")
        if not logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
            handler.setFormatter(formatter)
            logger.addHandler(handler)
        logger.setLevel(getattr(logging, self.settings.LOG_LEVEL.upper(), logging.INFO))
        return logger

    async def _setup_store(self) -> LinkStore:
        """Setup the configured link store backend."""
        if self.settings.STORE_BACKEND == "memory":
            return InMemoryLinkStore()
        await init_db()
        return SQLAlchemyLinkStore(get_session_factory())

    async def cleanup(self) -> None:
        """Cleanup shared resources at shutdown."""
        if not self._initialized:
            return
        if self._sweeper is not None:
            self._sweeper.cancel()
            try:
                await self._sweeper
            except asyncio.CancelledError:
                pass
        await self.click_tracker.drain()
        if isinstance(self.store, SQLAlchemyLinkStore):
            await close_db()
        self._initialized = False


# Global service manager instance
_service_manager = ServiceManager()


# ============================================================================
# REQUEST CONTEXT
# ============================================================================


@dataclass
class RequestContext:
    """Per-request tracking plus access to the shared service manager.

    Attributes:
        service_manager: Process-wide collaborators
        request_id: Unique identifier for this request
        trace_id: Correlation ID for distributed tracing
        user_agent: Client user agent string
        client_ip: Client IP address
        base_url: Origin used to build short URLs
        start_time: Request start timestamp
        tags: Request tags for categorization
    """

    service_manager: ServiceManager
    request_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    trace_id: Optional[str] = None
    user_agent: Optional[str] = None
    client_ip: Optional[str] = None
    base_url: str = ""
    start_time: float = field(default_factory=lambda: time.time())
    tags: list[str] = field(default_factory=list)

    @property
    def store(self) -> LinkStore:
        return self.service_manager.store

    @property
    def cache(self) -> LinkCache:
        return self.service_manager.cache

    @property
    def settings(self) -> Settings:
        return self.service_manager.settings

    @property
    def logger(self) -> logging.LoggerAdapter:
        """Get shared logger with request context."""
        return logging.LoggerAdapter(
            self.service_manager.logger,
            {
                "request_id": self.request_id,
                "trace_id": self.trace_id or self.request_id,
                "client_ip": self.client_ip,
                "user_agent": self.user_agent,
                "tags": ",".join(self.tags),
            },
        )

    def add_tag(self, tag: str) -> None:
        if tag not in self.tags:
            self.tags.append(tag)

    def get_duration(self) -> float:
        """Get request duration in milliseconds."""
        return (time.time() - self.start_time) * 1000

    def short_url(self, slug: str) -> str:
        return f"{self.base_url.rstrip('/')}/{slug}"


# ============================================================================
# DEPENDENCY FUNCTIONS
# ============================================================================


async def get_service_manager() -> ServiceManager:
    if not _service_manager._initialized:
        await _service_manager.initialize()
    return _service_manager


async def get_request_context(
    request: Request,
    manager: ServiceManager = Depends(get_service_manager),
) -> RequestContext:
    client_ip = request.client.host if request.client else None
    base_url = manager.settings.BASE_URL or str(request.base_url)

    return RequestContext(
        service_manager=manager,
        trace_id=request.headers.get("x-trace-id"),
        user_agent=request.headers.get("user-agent"),
        client_ip=client_ip,
        base_url=base_url,
    )


def get_slug_allocator(ctx: RequestContext = Depends(get_request_context)) -> SlugAllocator:
    return SlugAllocator.from_context(ctx)


def get_redirect_resolver(ctx: RequestContext = Depends(get_request_context)) -> RedirectResolver:
    return RedirectResolver.from_context(ctx)

"""Configuration management for the short-link service.

This module provides centralized configuration management using Pydantic BaseSettings
with environment variable support and caching for performance.

Flow Diagram — get_settings()
=============================
::
    ┌─────────────┐
    │  Call get_  │
    │  settings() │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ Check cache  │
    │ (lru_cache)  │
    └──────┬──────┘
    HIT?  │
    ┌─────┴─────┐
    │ NO         │ YES
    ▼            ▼
┌─────────┐  ┌─────────┐
│ Create  │  │ Return  │
│ Settings│  │ cached  │
│ instance│  │ value   │
└─────────┘  └─────────┘

How to Use
===========
**Step 1 — Import**::
    from shortlink.config import get_settings

**Step 2 — Get settings**::
    settings = get_settings()
    ttl = settings.CACHE_TTL_SECONDS

Key Behaviours
===============
- Settings are cached after first access.
- Environment variables override defaults automatically.
- ``BASE_URL`` is optional; without it short URLs use the request origin.
- ``AI_API_KEY`` is optional; without it content-assisted slugs always fall
  back to random generation.

Classes:
    Settings:  Pydantic model for all configuration values.
"""

__all__ = ["Settings", "get_settings"]

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    APP_NAME: str = "shortlink"
    APP_ENV: str = "development"
    LOG_LEVEL: str = "INFO"
    BASE_URL: str | None = None

    # Persistence
    STORE_BACKEND: Literal["database", "memory"] = "database"
    DATABASE_URL: str = "postgresql+asyncpg://shortlink:shortlink@db:5432/shortlink"
    DATABASE_ECHO: bool = False
    DATABASE_POOL_SIZE: int = 20
    DATABASE_MAX_OVERFLOW: int = 10

    # In-process link cache
    CACHE_TTL_SECONDS: float = 600.0
    CACHE_SWEEP_INTERVAL_SECONDS: float = 60.0

    # Slug allocation
    SLUG_DEFAULT_LENGTH: int = 6
    SLUG_FALLBACK_LENGTH: int = 8
    SLUG_MIN_LENGTH: int = 2
    SLUG_MAX_LENGTH: int = 30
    AI_SLUG_MAX_LENGTH: int = 20
    SLUG_SUFFIX_ATTEMPTS: int = 10
    RANDOM_SLUG_MAX_ATTEMPTS: int = 5
    # None: check the store only for random slugs shorter than 6 characters
    RANDOM_SLUG_CHECK_EXISTENCE: bool | None = None

    # Text links
    PREVIEW_MAX_CHARS: int = 500

    # Content-assisted slug suggestions (OpenAI-compatible chat completions)
    AI_API_URL: str = "https://api.openai.com/v1/chat/completions"
    AI_API_KEY: str | None = None
    AI_MODEL: str = "gpt-4o-mini"
    AI_MAX_TOKENS: int = 15
    AI_TEMPERATURE: float = 0.7
    AI_TIMEOUT_SECONDS: float = 5.0
    AI_PROMPT_CONTENT_CHARS: int = 500

    # Admin
    ADMIN_PASSWORD: str = "admin"
    ADMIN_PASSWORD_BCRYPT: str | None = None

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    return Settings()

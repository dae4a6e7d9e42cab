"""Shared enums for the short-link service.

This module defines all status and state enums used across the codebase.
Using enums instead of string literals provides type safety and prevents typos.
"""

from enum import StrEnum

__all__ = [
    "CacheStatus",
    "EvictionReason",
    "HealthStatus",
    "ResolutionKind",
    "SlugSource",
]


class HealthStatus(StrEnum):
    """Health check status values."""

    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"


class CacheStatus(StrEnum):
    """Outcome of a link cache lookup."""

    HIT = "hit"
    MISS = "miss"


class EvictionReason(StrEnum):
    """Why an entry left the link cache."""

    EXPIRED = "expired"
    SWEPT = "swept"
    DELETED = "deleted"


class ResolutionKind(StrEnum):
    """How a resolved link is answered."""

    REDIRECT = "redirect"
    TEXT = "text"
    PREVIEW = "preview"


class SlugSource(StrEnum):
    """Where an allocated slug came from."""

    USER = "user"
    AI = "ai"
    RANDOM = "random"

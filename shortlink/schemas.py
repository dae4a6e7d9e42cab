"""Pydantic schemas for request/response validation in the short-link service.

Schema Hierarchy
=================
::
    ShortenRequest (Input)
    ├─ content: str
    ├─ slug: str | None
    └─ useAI: bool

    ShortenResponse (Output)
    ├─ shortUrl: str
    ├─ slug: str
    └─ isAI: bool

    LinkOut (Output, admin listing)
    ├─ id, slug, target, is_text, clicks, created_at

    LoginRequest (Input)
    └─ password: str

    SuccessResponse / ErrorResponse / HealthResponse (Output)

Key Behaviours
===============
- The public creation API speaks camelCase (``useAI``, ``shortUrl``,
  ``isAI``); Python code uses snake_case through field aliases.
- Admin listings mirror the ``links`` table columns.
- Content is only type-checked here; emptiness and URL-vs-text are decided by
  the allocator so they map onto the service's own error taxonomy.
"""

import datetime

from pydantic import BaseModel, ConfigDict, Field

from shortlink.enums import HealthStatus

__all__ = [
    "ErrorResponse",
    "HealthResponse",
    "LinkOut",
    "LoginRequest",
    "ShortenRequest",
    "ShortenResponse",
    "SuccessResponse",
]


class ShortenRequest(BaseModel):
    content: str = ""
    slug: str | None = None
    use_ai: bool = Field(False, alias="useAI")

    model_config = ConfigDict(populate_by_name=True)


class ShortenResponse(BaseModel):
    short_url: str = Field(..., alias="shortUrl")
    slug: str
    is_ai: bool = Field(..., alias="isAI")

    model_config = ConfigDict(populate_by_name=True)


class LinkOut(BaseModel):
    id: int
    slug: str
    target: str
    is_text: bool
    clicks: int
    created_at: datetime.datetime

    model_config = ConfigDict(from_attributes=True)


class LoginRequest(BaseModel):
    password: str = ""


class SuccessResponse(BaseModel):
    success: bool = True


class ErrorResponse(BaseModel):
    error: str


class HealthResponse(BaseModel):
    status: HealthStatus
    database: HealthStatus
    cache: HealthStatus
    cache_entries: int

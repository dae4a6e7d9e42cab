"""Exception taxonomy for the short-link service.

Every error that can reach an HTTP client derives from ``ShortLinkError`` and
carries the status code it maps to; the application's exception handlers turn
them into ``{"error": message}`` JSON bodies.
"""

__all__ = [
    "EmptyContent",
    "ExternalGenerationFailure",
    "InvalidCredentials",
    "InvalidSlug",
    "LinkNotFound",
    "ShortLinkError",
    "SlugAllocationError",
    "SlugConflict",
    "StoreUnavailable",
    "ValidationError",
]


class ShortLinkError(Exception):
    """Base exception for all application-specific errors."""

    status_code = 500
    error_code = "app:shortlink_error"


class ValidationError(ShortLinkError):
    """Raised when a request is malformed in a user-correctable way."""

    status_code = 400
    error_code = "request:validation_error"


class EmptyContent(ValidationError):
    """Raised when a link is created without any content."""

    error_code = "request:empty_content"


class InvalidSlug(ValidationError):
    """Raised when a user-supplied slug is unusable after sanitization."""

    error_code = "request:invalid_slug"


class SlugConflict(ShortLinkError):
    """Raised when a slug is already taken in the link store."""

    status_code = 400
    error_code = "slug:conflict"


class LinkNotFound(ShortLinkError):
    """Raised when a slug or id does not name a stored link."""

    status_code = 404
    error_code = "link:not_found"


class StoreUnavailable(ShortLinkError):
    """Raised when the link store cannot be reached or fails mid-operation."""

    status_code = 500
    error_code = "store:unavailable"


class SlugAllocationError(ShortLinkError):
    """Raised when no unique slug could be allocated within the retry budget."""

    status_code = 500
    error_code = "slug:allocation_error"


class ExternalGenerationFailure(ShortLinkError):
    """Raised when content-assisted slug generation fails.

    Always recovered by the allocator, which falls back to a random slug.
    """

    status_code = 502
    error_code = "ai:generation_failure"


class InvalidCredentials(ShortLinkError):
    """Raised when an admin login presents the wrong secret."""

    status_code = 401
    error_code = "auth:invalid_credentials"

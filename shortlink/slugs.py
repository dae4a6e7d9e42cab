"""Slug candidates: random, content-derived and user-supplied.

How to Use
===========
**Random**::
    generator = SlugGenerator(suggester)
    generator.generate_random(6)          # e.g. 'aZ3k9Q'

**Content-derived**::
    slug = await generator.generate_from_content("https://docs.python.org/3/", is_text=False)

**User-supplied**::
    sanitize_user_slug("My Slug!")        # 'my-slug'

Key Behaviours
===============
- Random slugs draw uniformly from 62 alphanumerics via nanoid; uniqueness is
  the allocator's job, not the generator's.
- Sanitization lower-cases, drops characters outside ``[a-z0-9 _-]``, turns
  runs of whitespace and hyphens into one hyphen, trims hyphens at both ends
  and truncates. It is idempotent.
- A sanitized slug shorter than the minimum length is treated as empty.
"""

import logging
import re

from nanoid import generate

from shortlink.ai import ContentSlugSuggester
from shortlink.exceptions import ExternalGenerationFailure

__all__ = [
    "ALPHABET",
    "MAX_SLUG_LENGTH",
    "MIN_SLUG_LENGTH",
    "RESERVED_SLUGS",
    "SlugGenerator",
    "sanitize_slug",
    "sanitize_user_slug",
]

ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789"
MIN_SLUG_LENGTH = 2
MAX_SLUG_LENGTH = 30

# Slugs that would be shadowed by fixed routes.
RESERVED_SLUGS = frozenset({"admin", "api", "health", "metrics", "docs", "redoc"})

_DISALLOWED = re.compile(r"[^a-z0-9\s_-]")
_SEPARATOR_RUNS = re.compile(r"[\s-]+")

logger = logging.getLogger("shortlink")


def sanitize_slug(raw: str, max_length: int = MAX_SLUG_LENGTH, min_length: int = MIN_SLUG_LENGTH) -> str:
    slug = _DISALLOWED.sub("", raw.lower())
    slug = _SEPARATOR_RUNS.sub("-", slug).strip("-")
    # truncation can expose a trailing hyphen
    slug = slug[:max_length].rstrip("-")
    if len(slug) < min_length:
        return ""
    return slug


def sanitize_user_slug(raw: str, max_length: int = MAX_SLUG_LENGTH, min_length: int = MIN_SLUG_LENGTH) -> str:
    """Normalize a custom slug; an empty result means the slug is unusable."""
    return sanitize_slug(raw, max_length=max_length, min_length=min_length)


class SlugGenerator:
    def __init__(
        self,
        suggester: ContentSlugSuggester | None = None,
        ai_max_length: int = 20,
        min_length: int = MIN_SLUG_LENGTH,
    ):
        self._suggester = suggester
        self._ai_max_length = ai_max_length
        self._min_length = min_length

    def generate_random(self, length: int = 6) -> str:
        assert isinstance(length, int) and length > 0, f"length must be a positive integer, got {length!r}"
        return generate(ALPHABET, length)

    async def generate_from_content(self, content: str, is_text: bool) -> str:
        """Ask the content suggester for a slug and sanitize it.

        Raises:
            ExternalGenerationFailure: If no suggester is configured, it fails,
                or its suggestion sanitizes to fewer than two characters
        """
        if self._suggester is None:
            raise ExternalGenerationFailure("No content slug suggester configured")

        suggestion = await self._suggester.suggest(content, is_text)
        slug = sanitize_slug(suggestion, max_length=self._ai_max_length, min_length=self._min_length)
        if not slug:
            raise ExternalGenerationFailure(f"Unusable slug suggestion: {suggestion!r}")

        logger.debug(f"Content slug suggestion {suggestion!r} sanitized to {slug!r}")
        return slug

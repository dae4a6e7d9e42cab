"""Slug generation and sanitization."""

import pytest

from shortlink.exceptions import ExternalGenerationFailure
from shortlink.slugs import ALPHABET, SlugGenerator, sanitize_slug, sanitize_user_slug

from helpers import StubSuggester


def test_generate_random_default_length() -> None:
    assert len(SlugGenerator().generate_random()) == 6


def test_generate_random_custom_length() -> None:
    assert len(SlugGenerator().generate_random(8)) == 8


def test_generate_random_only_alphanumeric() -> None:
    generator = SlugGenerator()
    for _ in range(100):
        assert all(c in ALPHABET for c in generator.generate_random())


def test_alphabet_has_62_symbols() -> None:
    assert len(set(ALPHABET)) == 62


def test_generate_random_uniqueness() -> None:
    generator = SlugGenerator()
    codes = {generator.generate_random() for _ in range(1000)}
    # 62^6 possibilities
    assert len(codes) == 1000


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("My Slug!", "my-slug"),
        ("  hello   world  ", "hello-world"),
        ("a--b---c", "a-b-c"),
        ("-leading-and-trailing-", "leading-and-trailing"),
        ("snake_case_ok", "snake_case_ok"),
        ("Tab\tand\nnewline", "tab-and-newline"),
        ("mixed - separators", "mixed-separators"),
        ("ÜBER cool", "ber-cool"),
        ("!!!", ""),
        ("a", ""),
        ("", ""),
    ],
)
def test_sanitize_user_slug(raw: str, expected: str) -> None:
    assert sanitize_user_slug(raw) == expected


def test_sanitize_truncates_to_max_length() -> None:
    assert len(sanitize_user_slug("x" * 50)) == 30


def test_sanitize_never_leaves_trailing_hyphen_after_truncation() -> None:
    slug = sanitize_slug("abcdefghij klmnop", max_length=11)
    assert slug == "abcdefghij"


@pytest.mark.parametrize(
    "raw",
    [
        "My Slug!",
        "  -- weird__ input -- ",
        "abcdefghijklmnopqrstuvwxyz abcdefghijklmnop",
        "x" * 29 + " y",
        "ÀÉÎ Õü",
        "a",
        "",
        " non breaking ",
        "UPPER-lower-123",
    ],
)
def test_sanitize_is_idempotent(raw: str) -> None:
    once = sanitize_user_slug(raw)
    assert sanitize_user_slug(once) == once


@pytest.mark.asyncio
async def test_generate_from_content_sanitizes_suggestion() -> None:
    suggester = StubSuggester(reply="  Python Docs: Tutorial!  ")
    generator = SlugGenerator(suggester)

    slug = await generator.generate_from_content("https://docs.python.org/3/tutorial/", is_text=False)

    assert slug == "python-docs-tutorial"
    assert suggester.calls == [("https://docs.python.org/3/tutorial/", False)]


@pytest.mark.asyncio
async def test_generate_from_content_truncates_to_ai_max_length() -> None:
    generator = SlugGenerator(StubSuggester(reply="one two three four five six seven"), ai_max_length=20)
    slug = await generator.generate_from_content("text", is_text=True)
    assert len(slug) <= 20
    assert not slug.endswith("-")


@pytest.mark.asyncio
async def test_generate_from_content_rejects_short_suggestion() -> None:
    generator = SlugGenerator(StubSuggester(reply="?!x"))
    with pytest.raises(ExternalGenerationFailure):
        await generator.generate_from_content("text", is_text=True)


@pytest.mark.asyncio
async def test_generate_from_content_propagates_suggester_failure() -> None:
    generator = SlugGenerator(StubSuggester(error=ExternalGenerationFailure("timeout")))
    with pytest.raises(ExternalGenerationFailure):
        await generator.generate_from_content("text", is_text=True)


@pytest.mark.asyncio
async def test_generate_from_content_without_suggester() -> None:
    with pytest.raises(ExternalGenerationFailure):
        await SlugGenerator().generate_from_content("text", is_text=True)

"""HTML rendering of text links and static pages."""

import pytest

from shortlink.rendering import (
    format_structured,
    is_structured,
    render_landing_page,
    render_not_found_page,
    render_text_page,
    truncate_for_preview,
)


@pytest.mark.parametrize(
    "content",
    [
        "# Title",
        "some **bold** words",
        "an *italic* word",
        "- first\n- second",
        "1. first",
        "```\ncode\n```",
        "> quoted",
    ],
)
def test_structured_markers(content: str) -> None:
    assert is_structured(content)


@pytest.mark.parametrize("content", ["plain text", "2 * 3 = 6", "#hashtag", "a - b"])
def test_plain_content(content: str) -> None:
    assert not is_structured(content)


def test_format_headings_lists_and_quotes() -> None:
    fragment = format_structured("# Title\n- one\n- two\n\n> wise words\nclosing")

    assert "<h1>Title</h1>" in fragment
    assert "<ul>\n<li>one</li>\n<li>two</li>\n</ul>" in fragment
    assert "<blockquote>wise words</blockquote>" in fragment
    assert "<p>closing</p>" in fragment


def test_format_inline_markers() -> None:
    fragment = format_structured("**bold** and *italic* and `code`")
    assert "<strong>bold</strong>" in fragment
    assert "<em>italic</em>" in fragment
    assert "<code>code</code>" in fragment


def test_format_code_fence_is_escaped_verbatim() -> None:
    fragment = format_structured("```\n<script>alert(1)</script>\n# not a heading\n```")

    assert "<pre><code>" in fragment
    assert "&lt;script&gt;alert(1)&lt;/script&gt;" in fragment
    assert "# not a heading" in fragment
    assert "<script>" not in fragment


def test_structured_content_is_escaped() -> None:
    fragment = format_structured("# <img src=x onerror=alert(1)>")
    assert "<img" not in fragment
    assert "&lt;img" in fragment


def test_plain_text_page_is_escaped() -> None:
    page = render_text_page("abc", "<script>alert('x')</script>")
    assert "<script>alert" not in page
    assert "&lt;script&gt;" in page


def test_truncate_for_preview() -> None:
    assert truncate_for_preview("short", 10) == ("short", False)
    assert truncate_for_preview("0123456789abc", 10) == ("0123456789…", True)


def test_preview_page_mentions_truncation() -> None:
    page = render_text_page("abc", "word " * 200, preview_chars=20)
    assert "Preview, content truncated." in page
    assert 'href="/abc"' in page


def test_full_page_has_no_preview_notice() -> None:
    assert "Preview" not in render_text_page("abc", "hello")


def test_not_found_page_escapes_slug() -> None:
    page = render_not_found_page("<x>")
    assert "Link not found" in page
    assert "/&lt;x&gt;" in page


def test_landing_page_posts_to_api() -> None:
    page = render_landing_page("Short Links")
    assert "<h1>Short Links</h1>" in page
    assert "/api/shorten" in page

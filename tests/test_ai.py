"""Content slug suggester against a mocked chat completions API."""

import json

import httpx
import pytest

from shortlink.ai import ContentSlugSuggester, build_prompt
from shortlink.exceptions import ExternalGenerationFailure


def completion(content: str) -> dict:
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


def make_suggester(handler, api_key: str | None = "test-key") -> ContentSlugSuggester:
    return ContentSlugSuggester(
        api_url="https://ai.test/v1/chat/completions",
        api_key=api_key,
        model="test-model",
        transport=httpx.MockTransport(handler),
    )


@pytest.mark.asyncio
async def test_suggest_returns_model_reply() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=completion(" quarterly-report \n"))

    suggestion = await make_suggester(handler).suggest("Q3 numbers are in", is_text=True)

    assert suggestion == "quarterly-report"
    body = json.loads(seen[0].content)
    assert body["model"] == "test-model"
    assert body["max_tokens"] == 15
    assert "Q3 numbers are in" in body["messages"][0]["content"]
    assert seen[0].headers["authorization"] == "Bearer test-key"


@pytest.mark.asyncio
async def test_suggest_without_api_key_fails() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    suggester = make_suggester(handler, api_key=None)
    assert suggester.enabled is False
    with pytest.raises(ExternalGenerationFailure):
        await suggester.suggest("https://example.com", is_text=False)


@pytest.mark.asyncio
async def test_suggest_http_error_fails() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, json={"error": "overloaded"})

    with pytest.raises(ExternalGenerationFailure):
        await make_suggester(handler).suggest("https://example.com", is_text=False)


@pytest.mark.asyncio
async def test_suggest_timeout_fails() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(ExternalGenerationFailure):
        await make_suggester(handler).suggest("https://example.com", is_text=False)


@pytest.mark.asyncio
@pytest.mark.parametrize("payload", [{}, {"choices": []}, {"choices": [{"message": {"content": None}}]}])
async def test_suggest_malformed_reply_fails(payload: dict) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=payload)

    with pytest.raises(ExternalGenerationFailure):
        await make_suggester(handler).suggest("https://example.com", is_text=False)


@pytest.mark.asyncio
async def test_suggest_non_json_reply_fails() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="not json")

    with pytest.raises(ExternalGenerationFailure):
        await make_suggester(handler).suggest("https://example.com", is_text=False)


def test_build_prompt_truncates_text() -> None:
    prompt = build_prompt("x" * 600, is_text=True, max_content_chars=500)
    assert "x" * 500 + "..." in prompt
    assert "x" * 501 not in prompt


def test_build_prompt_keeps_url_whole() -> None:
    url = "https://example.com/" + "a" * 600
    assert url in build_prompt(url, is_text=False, max_content_chars=500)

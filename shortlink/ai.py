"""Content-assisted slug suggestions from an external language model.

The suggester sends the link content to an OpenAI-compatible chat completions
endpoint and returns the raw text the model proposes. It does no cleanup of its
own; ``SlugGenerator.generate_from_content`` sanitizes the suggestion and
decides whether it is usable.

Flow Diagram — suggest()
========================
::
    ┌─────────────┐
    │ suggest()   │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ API key     │──── NO ───▶ ExternalGenerationFailure
    │ configured? │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ POST chat   │──── timeout / HTTP error ───▶ ExternalGenerationFailure
    │ completion  │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ Extract     │──── malformed payload ───▶ ExternalGenerationFailure
    │ message     │
    └──────┬──────┘
           ▼
       raw suggestion

Key Behaviours
===============
- Text content is truncated before it is sent; URLs are sent whole.
- Every failure is reported as ``ExternalGenerationFailure`` so the allocator
  can fall back to a random slug.
- A transport can be injected (``httpx.MockTransport`` in tests).
"""

import httpx

from shortlink.config import Settings
from shortlink.exceptions import ExternalGenerationFailure

__all__ = ["ContentSlugSuggester", "build_prompt"]

TEXT_PROMPT = (
    "Suggest a short, meaningful English keyword to use as the suffix of a short link "
    "for the following text. Requirements:\n"
    "1. Reply with the keyword only, nothing else\n"
    "2. Use lowercase letters and separate words with hyphens\n"
    "3. No more than 5 words\n"
    "4. Reflect the topic of the text as closely as possible\n\n"
    "Text: {content}"
)
URL_PROMPT = (
    "Suggest a short, meaningful English keyword to use as the suffix of a short link "
    "for the following web address. Requirements:\n"
    "1. Reply with the keyword only, nothing else\n"
    "2. Use lowercase letters and separate words with hyphens\n"
    "3. No more than 5 words\n"
    "4. Reflect the topic of the site or page\n\n"
    "URL: {content}"
)


def build_prompt(content: str, is_text: bool, max_content_chars: int = 500) -> str:
    if is_text:
        excerpt = content[:max_content_chars]
        if len(content) > max_content_chars:
            excerpt += "..."
        return TEXT_PROMPT.format(content=excerpt)
    return URL_PROMPT.format(content=content)


class ContentSlugSuggester:
    def __init__(
        self,
        api_url: str,
        api_key: str | None,
        model: str,
        max_tokens: int = 15,
        temperature: float = 0.7,
        timeout_seconds: float = 5.0,
        max_content_chars: int = 500,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._api_url = api_url
        self._api_key = api_key
        self._model = model
        self._max_tokens = max_tokens
        self._temperature = temperature
        self._timeout = timeout_seconds
        self._max_content_chars = max_content_chars
        self._transport = transport

    @classmethod
    def from_settings(
        cls, settings: Settings, transport: httpx.AsyncBaseTransport | None = None
    ) -> "ContentSlugSuggester":
        return cls(
            api_url=settings.AI_API_URL,
            api_key=settings.AI_API_KEY,
            model=settings.AI_MODEL,
            max_tokens=settings.AI_MAX_TOKENS,
            temperature=settings.AI_TEMPERATURE,
            timeout_seconds=settings.AI_TIMEOUT_SECONDS,
            max_content_chars=settings.AI_PROMPT_CONTENT_CHARS,
            transport=transport,
        )

    @property
    def enabled(self) -> bool:
        return bool(self._api_key)

    async def suggest(self, content: str, is_text: bool) -> str:
        """Ask the model for a slug suggestion.

        Args:
            content: Link content, a URL or free text
            is_text: Whether ``content`` is free text

        Returns:
            str: The model's unprocessed reply

        Raises:
            ExternalGenerationFailure: If the suggester is not configured, the
                request fails or times out, or the reply is malformed
        """
        if not self.enabled:
            raise ExternalGenerationFailure("Content slug suggestions are not configured")

        body = {
            "model": self._model,
            "messages": [{"role": "user", "content": build_prompt(content, is_text, self._max_content_chars)}],
            "max_tokens": self._max_tokens,
            "temperature": self._temperature,
        }
        headers = {"Authorization": f"Bearer {self._api_key}"}

        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.post(self._api_url, json=body, headers=headers)
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise ExternalGenerationFailure(f"Slug suggestion request failed: {exc}") from exc

        try:
            suggestion = payload["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as exc:
            raise ExternalGenerationFailure("Slug suggestion response was malformed") from exc

        if not isinstance(suggestion, str):
            raise ExternalGenerationFailure("Slug suggestion response was malformed")
        return suggestion.strip()

"""Test doubles shared across test modules."""

import datetime

from shortlink.store import LinkRecord


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class StubSuggester:
    """Content suggester double with a canned reply or error."""

    enabled = True

    def __init__(self, reply: str = "report", error: Exception | None = None):
        self.reply = reply
        self.error = error
        self.calls: list[tuple[str, bool]] = []

    async def suggest(self, content: str, is_text: bool) -> str:
        self.calls.append((content, is_text))
        if self.error is not None:
            raise self.error
        return self.reply


def make_record(**overrides) -> LinkRecord:
    values = {
        "id": 7,
        "slug": "abc",
        "target": "https://example.com/x",
        "is_text": False,
        "clicks": 0,
        "created_at": datetime.datetime(2024, 1, 1, tzinfo=datetime.timezone.utc),
    }
    values.update(overrides)
    return LinkRecord(**values)

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from research_router.models.research import MergedResult, SearchQuery


class RecordingBackend:
    """Async backend stub that returns canned records and remembers calls."""

    def __init__(self, records=None, error: Exception | None = None):
        self.records = list(records or [])
        self.error = error
        self.calls: list[tuple[SearchQuery, int]] = []

    async def __call__(self, query: SearchQuery, limit: int):
        self.calls.append((query, limit))
        if self.error is not None:
            raise self.error
        return list(self.records)


@pytest.fixture
def backend():
    return RecordingBackend


@pytest.fixture
def now():
    return datetime(2026, 1, 24, tzinfo=timezone.utc)


@pytest.fixture
def make_result():
    def _make(url: str, title: str = "", *, id: str | None = None, **fields) -> MergedResult:
        return MergedResult(id=id or url, url=url, title=title, **fields)

    return _make

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import pytest

from research_router.models.research import RawBackendResult, SearchQuery
from research_router.tools import brave_search, search_provider, tavily_search
from research_router.tools.web_utils import keyword_text, with_site_operators

QUERY = SearchQuery(
    user_query="elastic vectors",
    must_keywords=("elastic", "vectors"),
    site_filters=("elastic.co",),
    time_range="past_year",
)


def _records(*urls: str) -> list[RawBackendResult]:
    return [RawBackendResult(url=u, sparse_score=0.5) for u in urls]


@pytest.mark.asyncio
async def test_search_provider_uses_brave_when_configured():
    with (
        patch("research_router.tools.search_provider.settings") as mock_settings,
        patch(
            "research_router.tools.search_provider.brave_search.search",
            new=AsyncMock(return_value=_records("https://a.example")),
        ) as brave,
    ):
        mock_settings.search_provider = "brave"
        mock_settings.search_fallback_to_tavily = True

        result = await search_provider.search(QUERY, 3)

    assert result.provider == "brave"
    assert result.fallback_from is None
    brave.assert_awaited_once_with(QUERY, 3)


@pytest.mark.asyncio
async def test_search_provider_uses_tavily_when_configured():
    with (
        patch("research_router.tools.search_provider.settings") as mock_settings,
        patch(
            "research_router.tools.search_provider.tavily_search.search",
            new=AsyncMock(return_value=_records("https://b.example")),
        ),
    ):
        mock_settings.search_provider = " Tavily "

        result = await search_provider.search(QUERY, 3)

    assert result.provider == "tavily"
    assert [r.url for r in result.records] == ["https://b.example"]


@pytest.mark.asyncio
async def test_search_provider_falls_back_to_tavily_on_zero_results():
    with (
        patch("research_router.tools.search_provider.settings") as mock_settings,
        patch("research_router.tools.search_provider.brave_search.search", new=AsyncMock(return_value=[])),
        patch(
            "research_router.tools.search_provider.tavily_search.search",
            new=AsyncMock(return_value=_records("https://b.example")),
        ),
    ):
        mock_settings.search_provider = "brave"
        mock_settings.search_fallback_to_tavily = True

        result = await search_provider.search(QUERY, 5)

    assert result.provider == "tavily"
    assert result.fallback_from == "brave"
    assert result.fallback_reason == "brave returned zero results"


@pytest.mark.asyncio
async def test_search_provider_keeps_empty_brave_result_without_fallback():
    with (
        patch("research_router.tools.search_provider.settings") as mock_settings,
        patch("research_router.tools.search_provider.brave_search.search", new=AsyncMock(return_value=[])),
    ):
        mock_settings.search_provider = "brave"
        mock_settings.search_fallback_to_tavily = False

        result = await search_provider.search(QUERY, 5)

    assert result.provider == "brave"
    assert result.records == []


@pytest.mark.asyncio
async def test_search_provider_falls_back_to_tavily_on_brave_error():
    with (
        patch("research_router.tools.search_provider.settings") as mock_settings,
        patch(
            "research_router.tools.search_provider.brave_search.search",
            new=AsyncMock(side_effect=RuntimeError("rate limited")),
        ),
        patch(
            "research_router.tools.search_provider.tavily_search.search",
            new=AsyncMock(return_value=_records("https://b.example")),
        ),
    ):
        mock_settings.search_provider = "brave"
        mock_settings.search_fallback_to_tavily = True

        result = await search_provider.search(QUERY, 5)

    assert result.provider == "tavily"
    assert result.fallback_reason == "rate limited"


@pytest.mark.asyncio
async def test_search_provider_reraises_without_fallback():
    with (
        patch("research_router.tools.search_provider.settings") as mock_settings,
        patch(
            "research_router.tools.search_provider.brave_search.search",
            new=AsyncMock(side_effect=RuntimeError("rate limited")),
        ),
    ):
        mock_settings.search_provider = "brave"
        mock_settings.search_fallback_to_tavily = False

        with pytest.raises(RuntimeError, match="rate limited"):
            await search_provider.search(QUERY, 5)


@pytest.mark.asyncio
async def test_search_provider_raises_when_provider_unsupported():
    with patch("research_router.tools.search_provider.settings") as mock_settings:
        mock_settings.search_provider = "unknown-provider"

        with pytest.raises(ValueError):
            await search_provider.search(QUERY, 5)


@pytest.mark.asyncio
async def test_keyword_backend_returns_provider_records():
    response = search_provider.ProviderResult(
        records=_records("https://elastic.co/a"),
        provider="tavily",
        fallback_from="brave",
        fallback_reason="brave returned zero results",
    )

    with patch("research_router.tools.search_provider.search", new=AsyncMock(return_value=response)) as search:
        records = await search_provider.keyword_backend(QUERY, 4)

    search.assert_awaited_once_with(QUERY, 4, None)
    assert [r.url for r in records] == ["https://elastic.co/a"]


def test_keyword_text():
    query = SearchQuery(user_query="x y", must_keywords=("rrf", "fusion"), excluded_keywords=("spam",))

    assert keyword_text(query) == "rrf fusion -spam"
    assert keyword_text(SearchQuery(user_query="raw words")) == "raw words"


def test_with_site_operators():
    assert with_site_operators("q", []) == "q"
    assert with_site_operators("q", ["a.org"]) == "q site:a.org"
    assert with_site_operators("q", ["a.org", "b.org"]) == "q (site:a.org OR site:b.org)"


def test_tavily_request_maps_filters():
    assert tavily_search.tavily_request(QUERY, 50) == {
        "query": "elastic vectors",
        "search_depth": "advanced",
        "max_results": 20,
        "topic": "general",
        "time_range": "year",
        "include_domains": ["elastic.co"],
    }


def test_tavily_request_without_filters():
    kwargs = tavily_search.tavily_request(SearchQuery(user_query="bm25", must_keywords=("bm25",)), 5)

    assert kwargs["max_results"] == 5
    assert "time_range" not in kwargs
    assert "include_domains" not in kwargs


@pytest.mark.asyncio
async def test_tavily_search_maps_response():
    client = AsyncMock()
    client.search.return_value = {
        "results": [
            {"title": "T", "url": "https://elastic.co/a", "content": "snip", "score": 0.7, "published_date": "2025-03-01"},
            {"title": "no url", "url": "", "content": "", "score": 0.1},
        ]
    }
    with (
        patch("research_router.tools.tavily_search.settings") as mock_settings,
        patch("research_router.tools.tavily_search.AsyncTavilyClient", return_value=client),
    ):
        mock_settings.tavily_api_key = "test"

        records = await tavily_search.search(QUERY, 4)

    client.search.assert_awaited_once_with(**tavily_search.tavily_request(QUERY, 4))
    assert len(records) == 1
    assert records[0].snippet == "snip"
    assert records[0].sparse_score == 0.7
    assert records[0].published_date_iso == "2025-03-01"
    assert records[0].dense_score is None


@pytest.mark.asyncio
async def test_tavily_search_requires_api_key():
    with patch("research_router.tools.tavily_search.settings") as mock_settings:
        mock_settings.tavily_api_key = ""

        with pytest.raises(RuntimeError):
            await tavily_search.search(QUERY, 4)


def test_brave_params_use_site_operators_and_freshness():
    assert brave_search.brave_params(QUERY, 50) == {
        "q": "elastic vectors site:elastic.co",
        "count": 20,
        "freshness": "py",
    }


@pytest.mark.asyncio
async def test_brave_search_maps_response():
    class FakeResponse:
        def raise_for_status(self):
            return None

        def json(self):
            return {
                "web": {
                    "results": [
                        {"title": "A", "url": "https://a.example", "description": "first", "page_age": "2025-01-02"},
                        {"title": "B", "url": "https://b.example", "description": "", "extra_snippets": ["x", "y"]},
                    ]
                }
            }

    class FakeClient:
        def __init__(self):
            self.params = None

        async def __aenter__(self):
            return self

        async def __aexit__(self, exc_type, exc, tb):
            return False

        async def get(self, url, params=None, headers=None):
            self.params = params
            return FakeResponse()

    client = FakeClient()
    with (
        patch("research_router.tools.brave_search.settings") as mock_settings,
        patch("research_router.tools.brave_search.httpx.AsyncClient", return_value=client),
    ):
        mock_settings.brave_api_key = "test"

        records = await brave_search.search(QUERY, 10)

    assert client.params == brave_search.brave_params(QUERY, 10)
    assert [r.url for r in records] == ["https://a.example", "https://b.example"]
    assert records[0].sparse_score == 1.0
    assert records[0].published_date_iso == "2025-01-02"
    assert records[1].sparse_score == 0.5
    assert records[1].snippet == "x y"


@pytest.mark.asyncio
async def test_brave_search_requires_api_key():
    with patch("research_router.tools.brave_search.settings") as mock_settings:
        mock_settings.brave_api_key = ""

        with pytest.raises(RuntimeError):
            await brave_search.search(QUERY, 4)


@pytest.mark.asyncio
async def test_explicit_provider_overrides_settings():
    with (
        patch("research_router.tools.search_provider.settings") as mock_settings,
        patch(
            "research_router.tools.search_provider.tavily_search.search",
            new=AsyncMock(return_value=_records("https://t.example")),
        ) as tavily,
        patch("research_router.tools.search_provider.brave_search.search", new=AsyncMock()) as brave,
    ):
        mock_settings.search_provider = "brave"

        records = await search_provider.keyword_backend(QUERY, 2, provider="tavily")

    assert [r.url for r in records] == ["https://t.example"]
    tavily.assert_awaited_once_with(QUERY, 2)
    brave.assert_not_awaited()

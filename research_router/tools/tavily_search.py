"""Tavily web search as a keyword backend."""

from __future__ import annotations

from typing import Any

from tavily import AsyncTavilyClient

from research_router.config import settings
from research_router.models.research import RawBackendResult, SearchQuery
from research_router.tools.web_utils import keyword_text

# Tavily accepts at most 20 results per call.
MAX_RESULTS = 20

TIME_RANGES = {
    "past_day": "day",
    "past_week": "week",
    "past_month": "month",
    "past_year": "year",
}


def tavily_request(query: SearchQuery, limit: int) -> dict[str, Any]:
    """``AsyncTavilyClient.search`` arguments for a structured query."""
    kwargs: dict[str, Any] = {
        "query": keyword_text(query),
        "search_depth": "advanced",
        "max_results": min(limit, MAX_RESULTS),
        "topic": "general",
    }
    time_range = TIME_RANGES.get(query.time_range or "")
    if time_range:
        kwargs["time_range"] = time_range
    if query.site_filters:
        kwargs["include_domains"] = list(query.site_filters)
    return kwargs


async def search(query: SearchQuery, limit: int) -> list[RawBackendResult]:
    if not settings.tavily_api_key:
        raise RuntimeError("TAVILY_API_KEY is not configured")
    client = AsyncTavilyClient(api_key=settings.tavily_api_key)
    response = await client.search(**tavily_request(query, limit))

    return [
        RawBackendResult(
            url=item["url"],
            title=item.get("title"),
            snippet=item.get("content"),
            sparse_score=item.get("score"),
            published_date_iso=item.get("published_date"),
        )
        for item in response.get("results", [])
        if item.get("url")
    ]

"""Brave web search as a keyword backend.

Site filters become ``site:`` operators in the query text. Brave returns
no relevance score, so the sparse score is derived from rank.
"""

from __future__ import annotations

from typing import Any

import httpx

from research_router.config import settings
from research_router.models.research import RawBackendResult, SearchQuery
from research_router.tools.web_utils import keyword_text, with_site_operators

BRAVE_SEARCH_URL = "https://api.search.brave.com/res/v1/web/search"
MAX_COUNT = 20

FRESHNESS = {
    "past_day": "pd",
    "past_week": "pw",
    "past_month": "pm",
    "past_year": "py",
}


def brave_params(query: SearchQuery, limit: int) -> dict[str, Any]:
    params: dict[str, Any] = {
        "q": with_site_operators(keyword_text(query), query.site_filters),
        "count": min(limit, MAX_COUNT),
    }
    freshness = FRESHNESS.get(query.time_range or "")
    if freshness:
        params["freshness"] = freshness
    return params


def rank_score(index: int, total: int) -> float:
    return max(0.0, 1.0 - index / max(total, 1))


async def search(query: SearchQuery, limit: int) -> list[RawBackendResult]:
    if not settings.brave_api_key:
        raise RuntimeError("BRAVE_API_KEY is not configured")

    async with httpx.AsyncClient(timeout=30.0) as client:
        response = await client.get(
            BRAVE_SEARCH_URL,
            params=brave_params(query, limit),
            headers={
                "Accept": "application/json",
                "X-Subscription-Token": settings.brave_api_key,
            },
        )
        response.raise_for_status()
        payload = response.json()

    items = [i for i in payload.get("web", {}).get("results", []) if i.get("url")]
    records: list[RawBackendResult] = []
    for idx, item in enumerate(items):
        snippet = (item.get("description") or "").strip()
        if not snippet:
            snippet = " ".join(item.get("extra_snippets") or []).strip()
        records.append(
            RawBackendResult(
                url=item["url"],
                title=item.get("title"),
                snippet=snippet,
                sparse_score=rank_score(idx, len(items)),
                published_date_iso=item.get("page_age"),
            )
        )
    return records

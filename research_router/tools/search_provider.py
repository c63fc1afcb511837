"""Web keyword backend: Brave or Tavily, selected by ``SEARCH_PROVIDER``.

With ``search_fallback_to_tavily`` set, a Brave call that fails or comes back
empty is retried once against Tavily.
"""

from __future__ import annotations

from dataclasses import dataclass

from loguru import logger

from research_router.config import settings
from research_router.models.research import RawBackendResult, SearchQuery
from research_router.tools import brave_search, tavily_search


@dataclass
class ProviderResult:
    records: list[RawBackendResult]
    provider: str
    fallback_from: str | None = None
    fallback_reason: str | None = None


async def _tavily_fallback(query: SearchQuery, limit: int, reason: str) -> ProviderResult:
    records = await tavily_search.search(query, limit)
    return ProviderResult(
        records=records,
        provider="tavily",
        fallback_from="brave",
        fallback_reason=reason,
    )


async def search(query: SearchQuery, limit: int, provider: str | None = None) -> ProviderResult:
    """Search with ``provider``, or with ``SEARCH_PROVIDER`` when not given."""
    provider = (provider or settings.search_provider).lower().strip()
    use_fallback = settings.search_fallback_to_tavily

    if provider == "tavily":
        return ProviderResult(records=await tavily_search.search(query, limit), provider="tavily")

    if provider == "brave":
        try:
            records = await brave_search.search(query, limit)
        except Exception as e:
            if not use_fallback:
                raise
            logger.warning("Brave search failed, falling back to Tavily: {}", e)
            return await _tavily_fallback(query, limit, str(e))
        if records or not use_fallback:
            return ProviderResult(records=records, provider="brave")
        return await _tavily_fallback(query, limit, "brave returned zero results")

    raise ValueError(f"Unsupported SEARCH_PROVIDER: {provider}")


async def keyword_backend(
    query: SearchQuery,
    limit: int,
    *,
    provider: str | None = None,
) -> list[RawBackendResult]:
    """Sparse retrieval through a web search provider (default: the configured one)."""
    result = await search(query, limit, provider)
    if result.fallback_from:
        logger.info(
            "Keyword search served by {} (fallback from {}: {})",
            result.provider,
            result.fallback_from,
            result.fallback_reason,
        )
    return result.records

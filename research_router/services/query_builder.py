from __future__ import annotations

from research_router.models.research import ResearchAction, SearchQuery

# Substring of the lower-cased query -> hostnames added as site filters.
FOCUSED_SITE_TABLE: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("azure", ("learn.microsoft.com", "azure.microsoft.com")),
    ("oracle", ("oracle.com",)),
    ("elastic", ("elastic.co",)),
    ("postgres", ("postgresql.org",)),
    ("pgvector", ("postgresql.org",)),
    ("opensearch", ("opensearch.org",)),
)
FACT_CHECK_SITES = ("wikipedia.org", "arxiv.org", "ieee.org")
EXPLORATORY_KEYWORD_LIMIT = 5
RECENT_TIME_RANGE = "past_year"


def _unique(items: list[str]) -> list[str]:
    return list(dict.fromkeys(items))


def build_search_query(sanitized_query: str, action: ResearchAction) -> SearchQuery:
    """Build the structured retrieval query for a single action."""
    lc = sanitized_query.lower()
    must_keywords = _unique(lc.split())
    site_filters: list[str] = []
    time_range: str | None = None

    if action is ResearchAction.FOCUSED_SEARCH:
        for needle, sites in FOCUSED_SITE_TABLE:
            if needle in lc:
                site_filters.extend(sites)
    elif action is ResearchAction.FACT_CHECK:
        site_filters = list(FACT_CHECK_SITES)
    elif action is ResearchAction.UPDATE_CHECK:
        time_range = RECENT_TIME_RANGE
    elif action is ResearchAction.EXPLORATORY_BROWSE:
        # Fewer required terms widens recall.
        must_keywords = must_keywords[:EXPLORATORY_KEYWORD_LIMIT]

    return SearchQuery(
        user_query=sanitized_query,
        must_keywords=tuple(must_keywords),
        site_filters=tuple(_unique(site_filters)),
        time_range=time_range,
    )

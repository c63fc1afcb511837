from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timezone

from loguru import logger

from research_router.config import RouterConfig
from research_router.models.research import MergedResult, SecurityStatus
from research_router.services.url_policy import authority_score
from research_router.tools.web_utils import extract_hostname

# List-level diversity is enforced by the per-domain cap; each result gets
# the same diversity term.
DIVERSITY_PLACEHOLDER = 0.5
RECENCY_UNKNOWN = 0.5
RECENCY_BUCKETS: tuple[tuple[float, float], ...] = (
    (30, 1.0),
    (365, 0.8),
    (730, 0.6),
)
RECENCY_OLDEST = 0.3


def drop_blocked(results: Iterable[MergedResult]) -> list[MergedResult]:
    return [r for r in results if r.security_status is not SecurityStatus.BLOCKED]


def deduplicate(results: Iterable[MergedResult]) -> list[MergedResult]:
    """Keep the first result for each ``url|title`` pair."""
    seen: set[str] = set()
    out: list[MergedResult] = []
    for r in results:
        key = f"{r.url}|{r.title}"
        if key in seen:
            continue
        seen.add(key)
        out.append(r)
    return out


def cap_per_domain(results: Iterable[MergedResult], max_per_domain: int) -> list[MergedResult]:
    """Keep at most ``max_per_domain`` results per hostname, in input order."""
    counts: dict[str, int] = {}
    out: list[MergedResult] = []
    for r in results:
        host = extract_hostname(r.url)
        current = counts.get(host, 0)
        if current >= max_per_domain:
            continue
        counts[host] = current + 1
        out.append(r)
    return out


def as_utc(value: datetime) -> datetime:
    """Treat a naive datetime as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def parse_iso_datetime(value: str) -> datetime | None:
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    return as_utc(parsed)


def recency_score(published_date_iso: str | None, now: datetime) -> float:
    if not published_date_iso:
        return RECENCY_UNKNOWN
    published = parse_iso_datetime(published_date_iso)
    if published is None:
        return RECENCY_UNKNOWN
    age_days = (as_utc(now) - published).total_seconds() / 86400
    for max_age, score in RECENCY_BUCKETS:
        if age_days <= max_age:
            return score
    return RECENCY_OLDEST


def compute_final_score(result: MergedResult, config: RouterConfig, now: datetime) -> float:
    w = config.scoring_weights
    return (
        w.relevance * result.hybrid_score
        + w.authority * authority_score(result.trust_tier)
        + w.recency * recency_score(result.published_date_iso, now)
        + w.diversity * DIVERSITY_PLACEHOLDER
        + w.security * result.security_score
    )


def curate(
    results: Iterable[MergedResult],
    config: RouterConfig,
    now: datetime | None = None,
) -> list[MergedResult]:
    """Filter, dedupe, cap, score and sort classified results.

    Capping happens before scoring, so overflow per host is decided by input
    order. The final sort is stable on ties.
    """
    now = as_utc(now) if now else datetime.now(timezone.utc)
    candidates = list(results)
    kept = drop_blocked(candidates)
    blocked = len(candidates) - len(kept)
    kept = deduplicate(kept)
    deduped = len(kept)
    kept = cap_per_domain(kept, config.max_per_domain)
    logger.debug(
        "Curated {} results: {} blocked, {} capped by domain",
        len(kept),
        blocked,
        deduped - len(kept),
    )

    for r in kept:
        r.final_score = compute_final_score(r, config, now)
    return sorted(kept, key=lambda r: r.final_score, reverse=True)

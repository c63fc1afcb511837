from __future__ import annotations

from collections.abc import Sequence

from research_router.models.research import MergedResult, TurnMetrics
from research_router.services.url_policy import authority_score
from research_router.tools.web_utils import extract_hostname

# Duplicates are removed before metrics run, so redundancy is reported as a
# constant. Measuring it needs the pre-dedupe counts.
REDUNDANCY_PLACEHOLDER = 1.0


def compute_turn_metrics(results: Sequence[MergedResult]) -> TurnMetrics:
    count = len(results)
    hosts = {extract_hostname(r.url) for r in results}
    if count:
        avg_authority = sum(authority_score(r.trust_tier) for r in results) / count
        avg_security = sum(r.security_score for r in results) / count
    else:
        avg_authority = 0.0
        avg_security = 0.0
    return TurnMetrics(
        coverage_score=len(hosts) / max(1, count),
        redundancy_score=REDUNDANCY_PLACEHOLDER,
        avg_authority_score=avg_authority,
        avg_security_score=avg_security,
        result_count=count,
    )

"""Domain trust tiers and heuristic URL security verdicts.

Both checks are static lookups against the turn's ``RouterConfig``; no
content is fetched. The security verdict is a best-effort gate, not a
malware scanner.
"""

from __future__ import annotations

from dataclasses import dataclass

from research_router.config import RouterConfig
from research_router.models.research import (
    IngestionLevel,
    MergedResult,
    SecurityStatus,
    TrustTier,
)
from research_router.tools.web_utils import extract_hostname, host_matches, tld_of

AUTHORITY_SCORES: dict[TrustTier, float] = {
    TrustTier.AUTHORITATIVE: 1.0,
    TrustTier.HIGH_TRUST: 0.8,
    TrustTier.OPEN_WEB: 0.5,
    TrustTier.UNKNOWN: 0.3,
}


@dataclass(frozen=True, slots=True)
class SecurityVerdict:
    status: SecurityStatus
    score: float


CLEAN = SecurityVerdict(SecurityStatus.CLEAN, 1.0)
BLOCKED = SecurityVerdict(SecurityStatus.BLOCKED, 0.0)
SUSPICIOUS_QUERY = SecurityVerdict(SecurityStatus.SUSPICIOUS, 0.2)
SUSPICIOUS_PATH = SecurityVerdict(SecurityStatus.SUSPICIOUS, 0.3)


def classify_trust(host: str, config: RouterConfig) -> TrustTier:
    """Trust tier for a hostname; ``unknown`` only when there is no host."""
    if not host:
        return TrustTier.UNKNOWN
    tiers = (
        (TrustTier.AUTHORITATIVE, config.trust_tiers.authoritative),
        (TrustTier.HIGH_TRUST, config.trust_tiers.high_trust),
    )
    for tier, domains in tiers:
        if any(host_matches(host, domain) for domain in domains):
            return tier
    return TrustTier.OPEN_WEB


def authority_score(tier: TrustTier) -> float:
    return AUTHORITY_SCORES.get(tier, AUTHORITY_SCORES[TrustTier.UNKNOWN])


def assess_url_security(url: str, config: RouterConfig) -> SecurityVerdict:
    """First matching rule wins: blocked TLD, query pattern, path pattern."""
    security = config.security
    host = extract_hostname(url)
    tld = tld_of(host)
    full = url.lower()

    if tld and tld in {t.lower() for t in security.blocked_tlds}:
        return BLOCKED
    if any(p.search(full) for p in security.query_patterns):
        return SUSPICIOUS_QUERY
    if any(p.search(full) for p in security.path_patterns):
        return SUSPICIOUS_PATH
    return CLEAN


def classify_result(result: MergedResult, config: RouterConfig) -> None:
    """Set trust tier and security verdict on ``result`` in place."""
    result.trust_tier = classify_trust(extract_hostname(result.url), config)
    verdict = assess_url_security(result.url, config)
    result.security_status = verdict.status
    result.security_score = verdict.score


def decide_ingestion_level(result: MergedResult) -> IngestionLevel:
    if result.trust_tier is TrustTier.AUTHORITATIVE:
        return IngestionLevel.STRUCTURED
    if result.trust_tier is TrustTier.HIGH_TRUST:
        return IngestionLevel.FULL_HTML
    return IngestionLevel.TITLE_SNIPPET


def is_allowed_content_type(content_type: str | None, config: RouterConfig) -> bool:
    """Check a Content-Type header value against the ingestion allowlist.

    A turn never fetches page bodies, so nothing in the pipeline calls this.
    It is exposed for adapters that fetch results, together with
    ``SecurityConfig.max_redirects``.
    """
    if not content_type:
        return False
    mime = content_type.split(";", 1)[0].strip().lower()
    return mime in {t.lower() for t in config.allowed_content_types}

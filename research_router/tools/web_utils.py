from __future__ import annotations

from collections.abc import Sequence
from urllib.parse import urlparse

from research_router.models.research import SearchQuery


def extract_hostname(url: str) -> str:
    """Lower-cased hostname of ``url``, or "" when it cannot be parsed."""
    try:
        parsed = urlparse(url)
        if not parsed.scheme or not parsed.netloc:
            return ""
        return (parsed.hostname or "").lower()
    except (TypeError, ValueError, AttributeError):
        return ""


def tld_of(host: str) -> str:
    """Final label of ``host`` with its leading dot, e.g. ``.org``."""
    parts = host.split(".")
    if len(parts) < 2:
        return ""
    return "." + parts[-1]


def host_matches(host: str, domain: str) -> bool:
    """Exact match, or ``host`` is a subdomain of ``domain``."""
    host = host.lower()
    domain = domain.lower()
    return host == domain or host.endswith("." + domain)


def keyword_text(query: SearchQuery) -> str:
    """Keyword string for a web engine: required terms, then ``-excluded``."""
    terms = list(query.must_keywords) + list(query.should_keywords)
    if not terms:
        terms = query.user_query.split()
    terms.extend(f"-{term}" for term in query.excluded_keywords)
    return " ".join(terms)


def with_site_operators(text: str, sites: Sequence[str]) -> str:
    if not sites:
        return text
    ops = " OR ".join(f"site:{site}" for site in sites)
    return f"{text} ({ops})" if len(sites) > 1 else f"{text} {ops}"

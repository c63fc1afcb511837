from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class ResearchAction(str, Enum):
    PLAN = "plan"
    NAIVE_SEARCH = "naive-search"
    HYBRID_SEARCH = "hybrid-search"
    FOCUSED_SEARCH = "focused-search"
    EXPLORATORY_BROWSE = "exploratory-browse"
    FACT_CHECK = "fact-check"
    MULTI_HOP = "multi-hop"
    CONTRASTIVE = "contrastive"
    UPDATE_CHECK = "update-check"
    SOURCE_AUDIT = "source-audit"


class TrustTier(str, Enum):
    AUTHORITATIVE = "authoritative"
    HIGH_TRUST = "high-trust"
    OPEN_WEB = "open-web"
    UNKNOWN = "unknown"


class SecurityStatus(str, Enum):
    CLEAN = "clean"
    SUSPICIOUS = "suspicious"
    BLOCKED = "blocked"


class IngestionLevel(str, Enum):
    TITLE_SNIPPET = "title-snippet"
    FULL_HTML = "full-html"
    STRUCTURED = "structured"


@dataclass(frozen=True, slots=True)
class SearchQuery:
    """Structured retrieval query shared by both backends for one turn."""

    user_query: str
    must_keywords: tuple[str, ...] = ()
    should_keywords: tuple[str, ...] = ()
    excluded_keywords: tuple[str, ...] = ()
    site_filters: tuple[str, ...] = ()
    time_range: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "userQuery": self.user_query,
            "mustKeywords": list(self.must_keywords),
            "shouldKeywords": list(self.should_keywords),
            "excludedKeywords": list(self.excluded_keywords),
            "siteFilters": list(self.site_filters),
            "timeRange": self.time_range,
        }


class RawBackendResult(BaseModel):
    """One record as returned by a retrieval backend.

    Accepts both snake_case and camelCase field names so adapters written
    against either convention validate at the boundary.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str | None = None
    url: str
    title: str = ""
    snippet: str = ""
    sparse_score: float | None = Field(
        default=None, validation_alias=AliasChoices("sparse_score", "sparseScore")
    )
    dense_score: float | None = Field(
        default=None, validation_alias=AliasChoices("dense_score", "denseScore")
    )
    published_date_iso: str | None = Field(
        default=None,
        validation_alias=AliasChoices("published_date_iso", "publishedDateISO", "published_date"),
    )

    @field_validator("id", mode="before")
    @classmethod
    def _id_to_str(cls, value: Any) -> Any:
        if value is None or value == "":
            return None
        return str(value)

    @field_validator("title", "snippet", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @property
    def key(self) -> str:
        return self.id or self.url


@dataclass(slots=True)
class MergedResult:
    id: str
    url: str
    title: str = ""
    snippet: str = ""
    sparse_score: float = 0.0
    dense_score: float = 0.0
    hybrid_score: float = 0.0
    trust_tier: TrustTier = TrustTier.UNKNOWN
    security_status: SecurityStatus = SecurityStatus.CLEAN
    security_score: float = 1.0
    final_score: float = 0.0
    published_date_iso: str | None = None

    def to_dict(self) -> dict[str, Any]:
        from research_router.services.url_policy import decide_ingestion_level

        return {
            "id": self.id,
            "url": self.url,
            "title": self.title,
            "snippet": self.snippet,
            "sparseScore": self.sparse_score,
            "denseScore": self.dense_score,
            "hybridScore": self.hybrid_score,
            "trustTier": self.trust_tier.value,
            "securityStatus": self.security_status.value,
            "securityScore": self.security_score,
            "finalScore": self.final_score,
            "publishedDateISO": self.published_date_iso,
            "ingestionLevel": decide_ingestion_level(self).value,
        }


@dataclass(frozen=True, slots=True)
class TurnMetrics:
    coverage_score: float
    redundancy_score: float
    avg_authority_score: float
    avg_security_score: float
    result_count: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "coverageScore": self.coverage_score,
            "redundancyScore": self.redundancy_score,
            "avgAuthorityScore": self.avg_authority_score,
            "avgSecurityScore": self.avg_security_score,
            "resultCount": self.result_count,
        }


@dataclass(frozen=True, slots=True)
class ResearchTurnOutput:
    request_id: str
    query: str
    actions_planned: tuple[ResearchAction, ...]
    results: tuple[MergedResult, ...]
    metrics: TurnMetrics
    primary_action: ResearchAction
    search_query: SearchQuery
    generated_at: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "requestId": self.request_id,
            "query": self.query,
            "actionsPlanned": [a.value for a in self.actions_planned],
            "primaryAction": self.primary_action.value,
            "searchQuery": self.search_query.to_dict(),
            "results": [r.to_dict() for r in self.results],
            "metrics": self.metrics.to_dict(),
            "generatedAt": self.generated_at,
        }


def finite_or_zero(value: float | None) -> float:
    if value is None:
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0

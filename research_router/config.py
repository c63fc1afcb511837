from __future__ import annotations

import re
from collections.abc import Mapping
from functools import lru_cache
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Keyword backend used by the CLI and HTTP service
    search_provider: str = "corpus"  # corpus | brave | tavily
    brave_api_key: str = ""
    tavily_api_key: str = ""
    search_fallback_to_tavily: bool = True

    # Local corpus / embeddings
    corpus_path: str = "data/corpus.json"
    local_embed_model: str = "BAAI/bge-small-en-v1.5"
    local_embed_batch_size: int = 32

    # Per-turn defaults applied by the service layer
    default_max_results_per_action: int = 24
    default_max_per_domain: int = 5

    # App
    cors_origins: str = "http://localhost:3000"
    app_log_level: str = "INFO"
    noisy_log_level: str = "WARNING"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @property
    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",")]

    def router_overrides(self) -> dict[str, Any]:
        """Turn-config override carrying the service-level limits."""
        return {
            "max_results_per_action": self.default_max_results_per_action,
            "max_per_domain": self.default_max_per_domain,
        }


settings = Settings()


class _FrozenModel(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="forbid")


class HybridWeights(_FrozenModel):
    dense: float = 0.55
    sparse: float = 0.45


class RrfConfig(_FrozenModel):
    k: float = 60.0


class TrustTiers(_FrozenModel):
    authoritative: tuple[str, ...] = (
        "wikipedia.org",
        "arxiv.org",
        "nature.com",
        "acm.org",
        "ieee.org",
        "who.int",
        "nasa.gov",
    )
    high_trust: tuple[str, ...] = Field(
        default=(
            "github.com",
            "docs.microsoft.com",
            "learn.microsoft.com",
            "elastic.co",
            "oracle.com",
            "cloud.google.com",
        ),
        alias="high-trust",
    )


class SecurityConfig(_FrozenModel):
    blocked_tlds: tuple[str, ...] = Field(default=(".zip", ".mov"), alias="blockedTLDs")
    suspicious_query_patterns: tuple[str, ...] = Field(
        default=(
            r"(free-?crack|keygen|serial-?key|nulled)",
            r"(download-?exe|setup-?crack)",
        ),
        alias="suspiciousQueryPatterns",
    )
    suspicious_path_patterns: tuple[str, ...] = Field(
        default=(
            r"(/wp-content/plugins/)",
            r"(/phpmyadmin/)",
        ),
        alias="suspiciousPathPatterns",
    )
    # Redirect budget for adapters that fetch result pages; the turn itself
    # never follows links.
    max_redirects: int = Field(default=5, alias="maxRedirects", ge=0)

    @field_validator("suspicious_query_patterns", "suspicious_path_patterns")
    @classmethod
    def _patterns_compile(cls, patterns: tuple[str, ...]) -> tuple[str, ...]:
        for pattern in patterns:
            try:
                compile_pattern(pattern)
            except re.error as e:
                raise ValueError(f"invalid pattern {pattern!r}: {e}") from e
        return patterns

    @property
    def query_patterns(self) -> list[re.Pattern[str]]:
        return [compile_pattern(p) for p in self.suspicious_query_patterns]

    @property
    def path_patterns(self) -> list[re.Pattern[str]]:
        return [compile_pattern(p) for p in self.suspicious_path_patterns]


class ScoringWeights(_FrozenModel):
    relevance: float = 0.45
    authority: float = 0.25
    recency: float = 0.15
    diversity: float = 0.10
    security: float = 0.05


class RouterConfig(_FrozenModel):
    """Per-turn routing configuration.

    Instances are immutable. Use ``merged()`` to derive a per-call copy with
    a partial override applied; nested sections merge key by key.
    """

    max_results_per_action: int = Field(default=24, alias="maxResultsPerAction", ge=1)
    max_per_domain: int = Field(default=5, alias="maxPerDomain", ge=1)
    hybrid_weights: HybridWeights = Field(default_factory=HybridWeights, alias="hybridWeights")
    rrf: RrfConfig = Field(default_factory=RrfConfig)
    trust_tiers: TrustTiers = Field(default_factory=TrustTiers, alias="trustTiers")
    allowed_content_types: tuple[str, ...] = Field(
        default=("text/html", "text/plain", "application/pdf", "application/json"),
        alias="allowedContentTypes",
    )
    security: SecurityConfig = Field(default_factory=SecurityConfig)
    scoring_weights: ScoringWeights = Field(default_factory=ScoringWeights, alias="scoringWeights")

    def merged(self, override: RouterConfig | Mapping[str, Any] | None = None) -> RouterConfig:
        if override is None:
            return self
        if isinstance(override, RouterConfig):
            return override
        base = self.model_dump(by_alias=False)
        combined = _deep_merge(base, _normalize_keys(self, override))
        return RouterConfig.model_validate(combined)


def _normalize_keys(model: BaseModel, override: Mapping[str, Any]) -> dict[str, Any]:
    """Map alias keys (camelCase, ``high-trust``) onto field names."""
    by_alias: dict[str, str] = {}
    for name, info in type(model).model_fields.items():
        by_alias[name] = name
        if info.alias:
            by_alias[info.alias] = name

    normalized: dict[str, Any] = {}
    for key, value in override.items():
        name = by_alias.get(key, key)
        current = getattr(model, name, None)
        if isinstance(current, BaseModel) and isinstance(value, Mapping):
            value = _normalize_keys(current, value)
        normalized[name] = value
    return normalized


def _deep_merge(base: dict[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    out = dict(base)
    for key, value in override.items():
        if isinstance(value, Mapping) and isinstance(out.get(key), dict):
            out[key] = _deep_merge(out[key], value)
        else:
            out[key] = value
    return out


@lru_cache(maxsize=256)
def compile_pattern(pattern: str) -> re.Pattern[str]:
    return re.compile(pattern, re.IGNORECASE)


DEFAULT_CONFIG = RouterConfig()

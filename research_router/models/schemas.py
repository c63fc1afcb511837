from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


# --- Requests ---


class PlanRequest(BaseModel):
    query: str


class TurnRequest(BaseModel):
    query: str
    config: dict[str, Any] | None = None


class ExploreRequest(BaseModel):
    url: str
    config: dict[str, Any] | None = None


# --- Responses ---


class PlanResponse(BaseModel):
    query: str
    actions: list[str]
    primary_action: str = Field(serialization_alias="primaryAction")
    search_query: dict[str, Any] = Field(serialization_alias="searchQuery")


class ExploreCandidate(BaseModel):
    url: str
    trust_tier: str = Field(serialization_alias="trustTier")
    security_status: str = Field(serialization_alias="securityStatus")
    security_score: float = Field(serialization_alias="securityScore")


class ExploreResponse(BaseModel):
    seed: str
    candidates: list[ExploreCandidate]

from __future__ import annotations

import time
from typing import Any

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from research_router.agents.orchestrator import research_turn
from research_router.api.deps import BackendPair, get_backends
from research_router.config import DEFAULT_CONFIG, settings
from research_router.models.schemas import (
    ExploreCandidate,
    ExploreRequest,
    ExploreResponse,
    PlanRequest,
    PlanResponse,
    TurnRequest,
)
from research_router.services import logger as log_service
from research_router.services.action_planner import plan_actions, select_primary_action
from research_router.services.query_builder import build_search_query
from research_router.services.query_sanitizer import sanitize_query
from research_router.services.retrieval import RetrievalBackendError
from research_router.services.url_policy import assess_url_security, classify_trust
from research_router.tools.exploratory_paths import generate_exploratory_paths
from research_router.tools.web_utils import extract_hostname

router = APIRouter(prefix="/api/research", tags=["research"])


def _turn_config(override: dict[str, Any] | None):
    return DEFAULT_CONFIG.merged(settings.router_overrides()).merged(override)


def _invalid_config(e: ValidationError) -> JSONResponse:
    errors = e.errors(include_url=False, include_context=False, include_input=False)
    return JSONResponse(status_code=422, content={"detail": errors})


@router.post("/plan", response_model=PlanResponse, response_model_by_alias=True)
async def plan(request: PlanRequest):
    """Show the plan and built query for a raw query without retrieving."""
    query = sanitize_query(request.query)
    actions = plan_actions(query)
    primary = select_primary_action(actions)
    return PlanResponse(
        query=query,
        actions=[a.value for a in actions],
        primary_action=primary.value,
        search_query=build_search_query(query, primary).to_dict(),
    )


@router.post("/turn")
async def turn(request: TurnRequest, backends: BackendPair = Depends(get_backends)):
    """Run one research turn and return the ranked, audited result list."""
    try:
        config = _turn_config(request.config)
    except ValidationError as e:
        return _invalid_config(e)

    started = time.perf_counter()
    try:
        output = await research_turn(request.query, backends.keyword, backends.dense, config)
    except RetrievalBackendError as e:
        log_service.log_event("turn_failed", str(e), backend=e.backend)
        return JSONResponse(status_code=502, content={"detail": str(e), "backend": e.backend})

    log_service.log_turn(
        output,
        duration_ms=int((time.perf_counter() - started) * 1000),
        caller="api",
    )
    return output.to_dict()


@router.post("/explore", response_model=ExploreResponse, response_model_by_alias=True)
async def explore(request: ExploreRequest):
    """Exploratory follow-up candidates for a seed URL, each classified."""
    try:
        config = _turn_config(request.config)
    except ValidationError as e:
        return _invalid_config(e)

    candidates = []
    for url in generate_exploratory_paths(request.url):
        verdict = assess_url_security(url, config)
        candidates.append(
            ExploreCandidate(
                url=url,
                trust_tier=classify_trust(extract_hostname(url), config).value,
                security_status=verdict.status.value,
                security_score=verdict.score,
            )
        )
    return ExploreResponse(seed=request.url, candidates=candidates)

"""One research turn: plan, retrieve, fuse, classify, curate, measure."""

from __future__ import annotations

import secrets
import time
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

from loguru import logger

from research_router.config import DEFAULT_CONFIG, RouterConfig
from research_router.models.research import ResearchTurnOutput
from research_router.services import score_fusion, url_policy
from research_router.services.action_planner import plan_actions, select_primary_action
from research_router.services.query_builder import build_search_query
from research_router.services.query_sanitizer import sanitize_query
from research_router.services.result_curator import as_utc, curate
from research_router.services.retrieval import RetrievalBackend, fan_out
from research_router.services.turn_metrics import compute_turn_metrics


def new_request_id() -> str:
    return f"RR-{int(time.time() * 1000):x}-{secrets.token_hex(4)}"


async def research_turn(
    raw_query: Any,
    keyword_backend: RetrievalBackend,
    dense_backend: RetrievalBackend,
    config_override: RouterConfig | Mapping[str, Any] | None = None,
    *,
    now: datetime | None = None,
) -> ResearchTurnOutput:
    """Run one research turn against the two injected backends.

    The configuration override is merged into a fresh copy of the defaults;
    nothing shared is mutated. A failing backend raises
    ``RetrievalBackendError`` and no partial output is produced.
    """
    config = DEFAULT_CONFIG.merged(config_override)
    request_id = new_request_id()
    now = as_utc(now) if now else datetime.now(timezone.utc)

    query = sanitize_query(raw_query)
    actions = plan_actions(query)
    primary = select_primary_action(actions)
    search_query = build_search_query(query, primary)
    logger.debug("Turn {} planned {} (primary={})", request_id, [a.value for a in actions], primary.value)

    retrieved = await fan_out(
        search_query,
        config.max_results_per_action,
        keyword_backend,
        dense_backend,
    )

    candidates = retrieved.results
    score_fusion.apply_hybrid_scores(candidates, retrieved.dense_ids, retrieved.sparse_ids, config)
    for r in candidates:
        url_policy.classify_result(r, config)

    results = curate(candidates, config, now)
    metrics = compute_turn_metrics(results)

    return ResearchTurnOutput(
        request_id=request_id,
        query=query,
        actions_planned=tuple(actions),
        results=tuple(results),
        metrics=metrics,
        primary_action=primary,
        search_query=search_query,
        generated_at=now.isoformat(),
    )

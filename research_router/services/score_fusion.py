"""Hybrid score fusion: weighted dense/sparse sum plus Reciprocal Rank Fusion.

``hybrid_score = w_dense * dense + w_sparse * sparse + rrf``. The sum is not
normalized; the final scorer uses it directly as the relevance term.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from research_router.config import RouterConfig
from research_router.models.research import MergedResult, finite_or_zero


def reciprocal_rank_fusion(rankings: Iterable[Sequence[str]], k: float) -> dict[str, float]:
    """Sum ``1 / (k + rank)`` over every list an id appears in (rank is 1-based)."""
    scores: dict[str, float] = {}
    for ranking in rankings:
        for index, doc_id in enumerate(ranking):
            scores[doc_id] = scores.get(doc_id, 0.0) + 1.0 / (k + index + 1)
    return scores


def weighted_hybrid_score(dense_score: float, sparse_score: float, config: RouterConfig) -> float:
    weights = config.hybrid_weights
    return weights.dense * finite_or_zero(dense_score) + weights.sparse * finite_or_zero(
        sparse_score
    )


def apply_hybrid_scores(
    results: Iterable[MergedResult],
    dense_ids: Sequence[str],
    sparse_ids: Sequence[str],
    config: RouterConfig,
) -> None:
    """Set ``hybrid_score`` on each result from both fusion mechanisms."""
    rrf = reciprocal_rank_fusion((dense_ids, sparse_ids), config.rrf.k)
    for r in results:
        r.hybrid_score = weighted_hybrid_score(r.dense_score, r.sparse_score, config) + rrf.get(
            r.id, 0.0
        )

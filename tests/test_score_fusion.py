from __future__ import annotations

import math

import pytest

from research_router.config import DEFAULT_CONFIG
from research_router.models.research import MergedResult
from research_router.services.score_fusion import (
    apply_hybrid_scores,
    reciprocal_rank_fusion,
    weighted_hybrid_score,
)


def test_rrf_sums_reciprocal_ranks_across_lists():
    scores = reciprocal_rank_fusion([["a", "b"], ["b", "c"]], k=60)

    assert scores["a"] == pytest.approx(1 / 61)
    assert scores["b"] == pytest.approx(1 / 62 + 1 / 61)
    assert scores["c"] == pytest.approx(1 / 62)


def test_rrf_absent_id_has_no_entry():
    assert "z" not in reciprocal_rank_fusion([["a"], []], k=60)


def test_rrf_rewards_consensus_over_single_list():
    scores = reciprocal_rank_fusion([["a", "b"], ["b"]], k=60)

    assert scores["b"] > scores["a"]


def test_weighted_score_uses_configured_weights():
    assert weighted_hybrid_score(0.6, 0.8, DEFAULT_CONFIG) == pytest.approx(0.55 * 0.6 + 0.45 * 0.8)


@pytest.mark.parametrize("bad", [math.nan, math.inf, -math.inf, None])
def test_weighted_score_treats_non_finite_as_zero(bad):
    assert weighted_hybrid_score(bad, 1.0, DEFAULT_CONFIG) == pytest.approx(0.45)
    assert weighted_hybrid_score(1.0, bad, DEFAULT_CONFIG) == pytest.approx(0.55)


def test_apply_hybrid_scores_for_result_in_both_lists():
    result = MergedResult(id="x", url="https://arxiv.org/paper1", sparse_score=0.8, dense_score=0.6)

    apply_hybrid_scores([result], dense_ids=["x"], sparse_ids=["x"], config=DEFAULT_CONFIG)

    assert result.hybrid_score == pytest.approx(0.55 * 0.6 + 0.45 * 0.8 + 2 / 61)


def test_apply_hybrid_scores_for_result_in_one_list():
    first = MergedResult(id="a", url="https://a.example", sparse_score=0.5)
    second = MergedResult(id="b", url="https://b.example", sparse_score=0.4)

    apply_hybrid_scores([first, second], dense_ids=[], sparse_ids=["a", "b"], config=DEFAULT_CONFIG)

    assert first.hybrid_score == pytest.approx(0.45 * 0.5 + 1 / 61)
    assert second.hybrid_score == pytest.approx(0.45 * 0.4 + 1 / 62)


def test_apply_hybrid_scores_respects_override():
    config = DEFAULT_CONFIG.merged({"hybridWeights": {"dense": 1.0, "sparse": 0.0}, "rrf": {"k": 0}})
    result = MergedResult(id="a", url="https://a.example", sparse_score=0.9, dense_score=0.2)

    apply_hybrid_scores([result], dense_ids=["a"], sparse_ids=[], config=config)

    assert result.hybrid_score == pytest.approx(0.2 + 1.0)


def test_rrf_contribution_decreases_with_rank():
    ranking = [f"doc-{i}" for i in range(50)]

    scores = reciprocal_rank_fusion([ranking], k=60)

    contributions = [scores[doc_id] for doc_id in ranking]
    assert all(a > b for a, b in zip(contributions, contributions[1:]))
    assert contributions[0] == pytest.approx(1 / 61)
    assert contributions[-1] == pytest.approx(1 / 110)

from __future__ import annotations

import pytest

from research_router.models.research import TrustTier
from research_router.services.turn_metrics import compute_turn_metrics


def test_metrics_for_empty_results():
    metrics = compute_turn_metrics([])

    assert metrics.result_count == 0
    assert metrics.coverage_score == 0.0
    assert metrics.avg_authority_score == 0.0
    assert metrics.avg_security_score == 0.0
    assert metrics.redundancy_score == 1.0


def test_metrics_averages_and_coverage(make_result):
    results = [
        make_result("https://arxiv.org/a", trust_tier=TrustTier.AUTHORITATIVE, security_score=1.0),
        make_result("https://arxiv.org/b", trust_tier=TrustTier.AUTHORITATIVE, security_score=1.0),
        make_result("https://blog.example.com/c", trust_tier=TrustTier.OPEN_WEB, security_score=0.2),
        make_result("https://github.com/d", trust_tier=TrustTier.HIGH_TRUST, security_score=0.3),
    ]

    metrics = compute_turn_metrics(results)

    assert metrics.result_count == 4
    assert metrics.coverage_score == pytest.approx(3 / 4)
    assert metrics.avg_authority_score == pytest.approx((1.0 + 1.0 + 0.5 + 0.8) / 4)
    assert metrics.avg_security_score == pytest.approx((1.0 + 1.0 + 0.2 + 0.3) / 4)
    assert metrics.redundancy_score == 1.0


def test_metrics_to_dict_uses_wire_names(make_result):
    data = compute_turn_metrics([make_result("https://example.com")]).to_dict()

    assert set(data) == {
        "coverageScore",
        "redundancyScore",
        "avgAuthorityScore",
        "avgSecurityScore",
        "resultCount",
    }
    assert data["coverageScore"] == 1.0

"""Tests for trustdebt.engine.distribution."""

import math

import pytest

from trustdebt.core.settings import DistributionSettings
from trustdebt.engine.distribution import DistributionReport, analyze_distribution, gini_coefficient, shannon_entropy
from trustdebt.engine.models import CategoryEvidence


def evidence(*strengths: float) -> list[CategoryEvidence]:
    return [
        CategoryEvidence(category_code=f"C{i}", total_strength=s, document_count=1 if s > 0 else 0)
        for i, s in enumerate(strengths, start=1)
    ]


class TestStatistics:
    def test_entropy_uniform(self):
        assert shannon_entropy([1, 1, 1, 1]) == pytest.approx(2.0)

    def test_entropy_single(self):
        assert shannon_entropy([0, 3, 0]) == 0.0

    def test_entropy_all_zero(self):
        assert shannon_entropy([0, 0]) == 0.0

    def test_gini_equal(self):
        assert gini_coefficient([2, 2, 2]) == 0.0

    def test_gini_concentrated(self):
        assert gini_coefficient([0, 0, 1]) == pytest.approx(2 / 3)

    def test_gini_empty(self):
        assert gini_coefficient([]) == 0.0
        assert gini_coefficient([0, 0]) == 0.0


class TestAnalyze:
    def test_concentrated_is_top_heavy(self):
        report = analyze_distribution(evidence(0.97, 0.01, 0.02, 0.0))
        assert report.top_heavy
        assert [d["categoryCode"] for d in report.dominant] == ["C1"]
        assert [w["categoryCode"] for w in report.weak] == ["C2"]
        assert report.active_categories == 3
        assert report.max_entropy == pytest.approx(math.log2(4))

    def test_uniform_is_balanced(self):
        report = analyze_distribution(evidence(1, 1, 1, 1))
        assert not report.top_heavy
        assert report.normalized_entropy == pytest.approx(1.0)
        assert [d["categoryCode"] for d in report.dominant] == ["C1", "C2", "C3", "C4"]

    def test_zero_strength_is_not_top_heavy(self):
        report = analyze_distribution(evidence(0, 0, 0))
        assert not report.top_heavy
        assert report.entropy == 0.0
        assert report.dominant == () and report.weak == ()

    def test_thresholds_configurable(self):
        report = analyze_distribution(evidence(3, 1), DistributionSettings(dominant_share=0.5))
        assert [d["categoryCode"] for d in report.dominant] == ["C1"]

    def test_dict_round_trip(self):
        report = analyze_distribution(evidence(0.5, 0.5, 0.0, 0.0))
        assert DistributionReport.from_dict(report.to_dict()).to_dict() == report.to_dict()

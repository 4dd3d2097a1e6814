"""
Tests for trustdebt.engine.audit.

Tests verify:
- A healthy set of artifacts raises no error findings
- Missing artifacts fail completeness and name the stage
- Each structural check catches its own corruption
- Malformed payloads become findings, never exceptions
"""

from __future__ import annotations

import copy
from typing import Any

import pytest

from trustdebt.engine.alignment import analyze_alignment
from trustdebt.engine.audit import (
    AuditCheck,
    AuditInputs,
    AuditReport,
    AuditRunner,
    CheckResult,
    default_runner,
    overall_integrity,
    run_audit,
)
from trustdebt.engine.distribution import analyze_distribution
from trustdebt.engine.grading import grade_categories
from trustdebt.engine.indexer import KeywordIndexer
from trustdebt.engine.matrix import build_matrix
from trustdebt.engine.models import AuditFinding, AuditOverall, FindingSeverity


@pytest.fixture
def payloads(small_config, small_taxonomy, intent_corpus, reality_corpus) -> dict[str, Any]:
    """Artifact payloads of a clean run over the small configuration."""
    index = KeywordIndexer(small_config.keyword_dictionary(), small_taxonomy).index(intent_corpus, reality_corpus)
    distribution = analyze_distribution(index.evidence)
    grading = grade_categories(small_taxonomy, distribution)
    alignment = analyze_alignment(small_taxonomy, grading, small_config.intent_dictionary(), intent_corpus)
    return {
        "taxonomy": {"categories": small_taxonomy.to_dicts()},
        "indexer": index.to_dict(),
        "matrix": build_matrix(small_taxonomy, index.unit_totals).to_dict(),
        "distribution": distribution.to_dict(),
        "grading": grading.to_dict(),
        "alignment": alignment.to_dict(),
    }


def finding(report: AuditReport, name: str) -> AuditFinding:
    return next(f for f in report.findings if f.check_name == name)


# ── Healthy run ──────────────────────────────────────────────────────────


class TestHealthyRun:
    def test_no_errors(self, payloads):
        report = run_audit(AuditInputs(**payloads))
        assert report.overall in (AuditOverall.PASS, AuditOverall.WARNING)
        assert not [f for f in report.failures() if f.severity is FindingSeverity.ERROR]

    def test_ten_checks_in_fixed_order(self, payloads):
        report = run_audit(AuditInputs(**payloads))
        assert [f.check_name for f in report.findings] == [
            "pipeline-completeness",
            "score-range",
            "category-ordering",
            "matrix-structure",
            "matrix-population",
            "asymmetry-ratio",
            "keyword-totals",
            "grade-coverage",
            "drift-coverage",
            "distribution-balance",
        ]

    def test_passed_findings_are_info(self, payloads):
        report = run_audit(AuditInputs(**payloads))
        assert all(f.severity is FindingSeverity.INFO for f in report.findings if f.passed)


# ── Missing stages ───────────────────────────────────────────────────────


class TestMissingStages:
    def test_missing_grading_fails_and_is_named(self, payloads):
        payloads["grading"] = None
        report = run_audit(AuditInputs(**payloads, missing={"grading": "missing"}))
        assert report.overall is AuditOverall.FAIL
        completeness = finding(report, "pipeline-completeness")
        assert not completeness.passed
        assert "grading (missing)" in completeness.message
        assert finding(report, "grade-coverage").message == "Cannot evaluate: grading artifact unavailable"

    def test_ordering_falls_back_to_taxonomy(self, payloads):
        payloads["grading"] = None
        report = run_audit(AuditInputs(**payloads))
        ordering = finding(report, "category-ordering")
        assert ordering.passed
        assert "from taxonomy" in ordering.message

    def test_nothing_available(self):
        report = run_audit(AuditInputs())
        assert report.overall is AuditOverall.FAIL
        assert all(not f.passed for f in report.findings)


# ── Corruption ───────────────────────────────────────────────────────────


class TestCorruption:
    def test_degenerate_matrix(self, payloads, small_taxonomy):
        payloads["matrix"] = build_matrix(small_taxonomy, {}).to_dict()
        report = run_audit(AuditInputs(**payloads))
        population = finding(report, "matrix-population")
        assert not population.passed
        assert population.message == "Matrix is degenerate: all 25 cells are zero"
        assert finding(report, "asymmetry-ratio").severity is FindingSeverity.WARNING
        assert report.overall is AuditOverall.FAIL

    def test_score_out_of_range(self, payloads):
        payloads["grading"]["categories"][0]["score"] = 1.5
        assert not finding(run_audit(AuditInputs(**payloads)), "score-range").passed

    def test_ordering_violation(self, payloads):
        grades = payloads["grading"]["categories"]
        grades[0], grades[2] = grades[2], grades[0]
        ordering = finding(run_audit(AuditInputs(**payloads)), "category-ordering")
        assert not ordering.passed
        assert "ShortLex" in ordering.message

    def test_missing_cell(self, payloads):
        payloads["matrix"]["cells"].pop()
        structure = finding(run_audit(AuditInputs(**payloads)), "matrix-structure")
        assert not structure.passed
        assert "24 cells, expected 25" in structure.message

    def test_asymmetry_recomputed_from_totals(self, payloads):
        stats = payloads["matrix"]["statistics"]
        stats["lowerTriangle"]["totalUnits"] *= 2
        # flag left untouched: the check must not trust it
        assert stats["asymmetryWithinTolerance"] is True
        assert not finding(run_audit(AuditInputs(**payloads)), "asymmetry-ratio").passed

    def test_inconsistent_keyword_total(self, payloads):
        payloads["indexer"]["mappings"][0]["totalCount"] += 1
        totals = finding(run_audit(AuditInputs(**payloads)), "keyword-totals")
        assert not totals.passed
        assert "encryption->B.1" in totals.message

    def test_duplicate_drift(self, payloads):
        drifts = payloads["alignment"]["drifts"]
        drifts.append(copy.deepcopy(drifts[0]))
        coverage = finding(run_audit(AuditInputs(**payloads)), "drift-coverage")
        assert not coverage.passed
        assert "duplicated A" in coverage.message

    def test_unknown_graded_category(self, payloads):
        extra = copy.deepcopy(payloads["grading"]["categories"][-1])
        extra["categoryCode"] = "Z"
        payloads["grading"]["categories"].append(extra)
        assert "unknown Z" in finding(run_audit(AuditInputs(**payloads)), "grade-coverage").message

    def test_malformed_payload_becomes_finding(self, payloads):
        payloads["matrix"] = {"unexpected": True}
        report = run_audit(AuditInputs(**payloads))
        structure = finding(report, "matrix-structure")
        assert not structure.passed
        assert structure.message.startswith("Malformed input for matrix-structure")
        assert len(report.findings) == 10

    def test_zero_asymmetry_target_becomes_finding(self, payloads):
        payloads["matrix"]["statistics"]["targetAsymmetryRatio"] = 0
        report = run_audit(AuditInputs(**payloads))
        ratio = finding(report, "asymmetry-ratio")
        assert not ratio.passed
        assert "must be positive" in ratio.message
        assert len(report.findings) == 10

    def test_arithmetic_error_becomes_finding(self):
        def divide(inputs):
            return CheckResult(True, str(1 / 0))

        report = AuditRunner().add(AuditCheck("divide", FindingSeverity.ERROR, divide)).run_all(AuditInputs())
        assert report.findings[0].message.startswith("Malformed input for divide: ZeroDivisionError")
        assert report.overall is AuditOverall.FAIL


# ── Runner and verdict ───────────────────────────────────────────────────


class TestAuditRunner:
    def test_overall_integrity(self):
        info = AuditFinding("a", True, "ok", FindingSeverity.INFO)
        warn = AuditFinding("b", False, "meh", FindingSeverity.WARNING)
        error = AuditFinding("c", False, "bad", FindingSeverity.ERROR)
        assert overall_integrity([info]) is AuditOverall.PASS
        assert overall_integrity([info, warn]) is AuditOverall.WARNING
        assert overall_integrity([warn, error]) is AuditOverall.FAIL
        assert overall_integrity([]) is AuditOverall.PASS

    def test_custom_runner(self):
        runner = (
            AuditRunner()
            .add(AuditCheck("ok", FindingSeverity.ERROR, lambda i: CheckResult(True, "fine")))
            .add(AuditCheck("soft", FindingSeverity.WARNING, lambda i: CheckResult(False, "hmm")))
        )
        report = runner.run_all(AuditInputs())
        assert report.overall is AuditOverall.WARNING
        assert not runner.has_failures()
        assert runner.failures() == ["soft"]

    def test_default_runner_size(self):
        assert len(default_runner().checks) == 10

    def test_report_dict_round_trip(self, payloads):
        report = run_audit(AuditInputs(**payloads))
        data = report.to_dict()
        assert data["summary"]["checks"] == 10
        assert data["summary"]["passed"] + data["summary"]["errors"] + data["summary"]["warnings"] == 10
        assert AuditReport.from_dict(data) == report

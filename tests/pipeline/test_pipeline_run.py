"""
End-to-end pipeline tests.

Tests verify:
- A full run writes seven stage-indexed artifacts and a run report
- Identical inputs produce byte-identical artifacts in different run directories
- Skipped or failed stages surface in the audit instead of aborting the run
- The per-run lookup store is populated
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from trustdebt.core.settings import TrustDebtSettings
from trustdebt.core.store import IndexStore
from trustdebt.framework.stages import StageStatus
from trustdebt.pipeline import run_pipeline

STAGE_DIRS = ["1-taxonomy", "2-indexer", "3-matrix", "4-distribution", "5-grading", "6-alignment", "7-audit"]


def load(run_dir: Path, stage_dir: str) -> dict:
    return json.loads((run_dir / stage_dir / f"{stage_dir}.json").read_text(encoding="utf-8"))


@pytest.fixture
def settings(tmp_path, small_config_file) -> TrustDebtSettings:
    return TrustDebtSettings(runs_dir=tmp_path / "runs", config_path=small_config_file)


# ── Full run ─────────────────────────────────────────────────────────────


class TestFullRun:
    def test_writes_every_artifact(self, corpus_dirs, settings, tmp_path):
        report = run_pipeline(*corpus_dirs, settings=settings, run_dir=tmp_path / "run")
        for stage_dir in STAGE_DIRS:
            assert (tmp_path / "run" / stage_dir / f"{stage_dir}.json").is_file()
        assert (tmp_path / "run" / "run-report.json").is_file()
        assert not report.failed

    def test_taxonomy_artifact(self, corpus_dirs, settings, tmp_path):
        run_pipeline(*corpus_dirs, settings=settings, run_dir=tmp_path / "run")
        taxonomy = load(tmp_path / "run", "1-taxonomy")
        assert [c["code"] for c in taxonomy["categories"]] == ["A", "B", "A.1", "A.2", "B.1"]
        assert [c["position"] for c in taxonomy["categories"]] == [1, 2, 3, 4, 5]
        assert taxonomy["statistics"] == {"categories": 5, "roots": 2, "reordered": True}

    def test_matrix_uses_indexer_units(self, corpus_dirs, settings, tmp_path):
        run_pipeline(*corpus_dirs, settings=settings, run_dir=tmp_path / "run")
        matrix = load(tmp_path / "run", "3-matrix")
        assert matrix["unitSource"] == "indexer"
        assert matrix["grandTotal"] == 19.0
        assert matrix["dimensions"] == {"rows": 5, "cols": 5, "totalCells": 25}

    def test_audit_has_no_errors(self, corpus_dirs, settings, tmp_path):
        report = run_pipeline(*corpus_dirs, settings=settings, run_dir=tmp_path / "run")
        audit = load(tmp_path / "run", "7-audit")
        assert audit["summary"]["errors"] == 0
        assert report.audit_overall == audit["overall"]

    def test_default_taxonomy(self, corpus_dirs, tmp_path):
        settings = TrustDebtSettings(runs_dir=tmp_path / "runs")
        report = run_pipeline(*corpus_dirs, settings=settings, run_dir=tmp_path / "run")
        matrix = load(tmp_path / "run", "3-matrix")
        assert matrix["dimensions"]["totalCells"] == 2025
        assert matrix["statistics"]["upperTriangle"]["count"] == 990
        assert report.result_for("audit").status is StageStatus.COMPLETED

    def test_default_run_dir_under_runs_dir(self, corpus_dirs, settings):
        report = run_pipeline(*corpus_dirs, settings=settings)
        assert report.run_dir.parent == settings.runs_dir
        assert report.run_dir.name.startswith("run-")


class TestDeterminism:
    def test_byte_identical_artifacts(self, corpus_dirs, settings, tmp_path):
        run_pipeline(*corpus_dirs, settings=settings, run_dir=tmp_path / "first")
        run_pipeline(*corpus_dirs, settings=settings, run_dir=tmp_path / "second")
        for stage_dir in STAGE_DIRS:
            name = f"{stage_dir}.json"
            first = (tmp_path / "first" / stage_dir / name).read_bytes()
            second = (tmp_path / "second" / stage_dir / name).read_bytes()
            assert first == second, stage_dir

    def test_same_inputs_same_run_id(self, corpus_dirs, settings):
        assert run_pipeline(*corpus_dirs, settings=settings).run_id == run_pipeline(*corpus_dirs, settings=settings).run_id


# ── Partial runs ─────────────────────────────────────────────────────────


class TestPartialRuns:
    def test_skipped_grading_fails_audit(self, corpus_dirs, settings, tmp_path):
        report = run_pipeline(*corpus_dirs, settings=settings, run_dir=tmp_path / "run", skip=("grading",))
        assert report.result_for("grading").status is StageStatus.SKIPPED
        assert report.result_for("alignment").status is StageStatus.FAILED
        audit = load(tmp_path / "run", "7-audit")
        assert audit["overall"] == "fail"
        completeness = next(f for f in audit["findings"] if f["checkName"] == "pipeline-completeness")
        assert "grading (missing)" in completeness["message"]

    def test_skipped_indexer_falls_back_to_taxonomy_units(self, corpus_dirs, settings, tmp_path):
        run_pipeline(*corpus_dirs, settings=settings, run_dir=tmp_path / "run", skip=("indexer",))
        matrix = load(tmp_path / "run", "3-matrix")
        assert matrix["unitSource"] == "taxonomy"
        assert matrix["grandTotal"] == 3.0

    def test_malformed_artifact_reported(self, corpus_dirs, settings, tmp_path):
        run_dir = tmp_path / "run"
        run_pipeline(*corpus_dirs, settings=settings, run_dir=run_dir)
        (run_dir / "4-distribution" / "4-distribution.json").write_text("{broken", encoding="utf-8")
        report = run_pipeline(*corpus_dirs, settings=settings, run_dir=run_dir, start=5)
        assert report.result_for("grading").status is StageStatus.FAILED
        assert report.audit_overall == "fail"
        completeness = next(f for f in load(run_dir, "7-audit")["findings"] if f["checkName"] == "pipeline-completeness")
        assert "distribution (malformed)" in completeness["message"]
        assert "grading (missing)" in completeness["message"]

    def test_stop_after_matrix(self, corpus_dirs, settings, tmp_path):
        report = run_pipeline(*corpus_dirs, settings=settings, run_dir=tmp_path / "run", stop=3)
        assert [r.name for r in report.completed] == ["taxonomy", "indexer", "matrix"]
        assert not (tmp_path / "run" / "7-audit").exists()


# ── Lookup store ─────────────────────────────────────────────────────────


class TestStore:
    def test_store_populated(self, corpus_dirs, settings, tmp_path):
        run_pipeline(*corpus_dirs, settings=settings, run_dir=tmp_path / "run")
        with IndexStore(tmp_path / "run" / "trust-debt.db") as store:
            assert store.counts() == {"categories": 5, "keyword_mappings": 8, "matrix_cells": 25}
            assert [m.category_code for m in store.mappings_for_keyword("token")] == ["A.1", "A.2"]
            assert store.cell(1, 2).triangle.value == "upper"

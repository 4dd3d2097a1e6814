"""Tests for trustdebt.core.settings — TrustDebtSettings and threshold models."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from trustdebt.core.settings import AlignmentSettings, MatrixSettings, TrustDebtSettings


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch, tmp_path):
    """Keep host TRUSTDEBT_* variables and .env files out of these tests."""
    import os

    for key in list(os.environ):
        if key.startswith("TRUSTDEBT_"):
            monkeypatch.delenv(key)
    monkeypatch.chdir(tmp_path)


class TestDefaults:
    def test_matrix_calibration(self):
        m = TrustDebtSettings().matrix
        assert (m.upper_units, m.lower_units, m.diagonal_units) == (14824.0, 1142.0, 488.0)
        assert m.dominant_share == 0.85
        assert m.target_asymmetry_ratio == 12.98
        assert m.asymmetry_tolerance == 0.01

    def test_alignment_thresholds(self):
        a = TrustDebtSettings().alignment
        assert (a.minor_threshold, a.significant_threshold, a.critical_threshold) == (0.10, 0.25, 0.50)
        assert a.neutral_prior == 0.5

    def test_runs_dir_default(self):
        assert TrustDebtSettings().runs_dir == Path("trust-debt-runs")


class TestMatrixSettings:
    def test_shares_sum_to_one(self):
        assert sum(MatrixSettings().shares()) == pytest.approx(1.0)

    def test_calibrated_ratio_matches_target(self):
        m = MatrixSettings()
        assert abs(m.calibrated_ratio - m.target_asymmetry_ratio) / m.target_asymmetry_ratio < m.asymmetry_tolerance

    def test_zero_split_rejected(self):
        with pytest.raises(ValidationError):
            MatrixSettings(upper_units=0, lower_units=0, diagonal_units=0)


class TestAlignmentSettings:
    def test_decreasing_thresholds_rejected(self):
        with pytest.raises(ValidationError):
            AlignmentSettings(minor_threshold=0.3, significant_threshold=0.2)


# ── Environment ──────────────────────────────────────────────────────────


class TestEnvironment:
    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("TRUSTDEBT_LOG_LEVEL", "DEBUG")
        assert TrustDebtSettings().log_level == "DEBUG"

    def test_nested_delimiter(self, monkeypatch):
        monkeypatch.setenv("TRUSTDEBT_ALIGNMENT__NEUTRAL_PRIOR", "0.4")
        assert TrustDebtSettings().alignment.neutral_prior == 0.4

    def test_thresholds_exclude_paths(self):
        thresholds = TrustDebtSettings().thresholds()
        assert set(thresholds) == {"matrix", "distribution", "grading", "alignment"}
        assert thresholds["grading"] == {"strength_weight": 0.4, "coverage_weight": 0.3, "average_weight": 0.3}

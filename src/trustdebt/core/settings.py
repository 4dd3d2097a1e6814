"""Runtime settings for the Trust Debt engine.

Thresholds, calibration constants and paths are configuration, never
hard-coded law. ``TrustDebtSettings`` gathers them in one validated object read
from ``TRUSTDEBT_*`` environment variables and an optional ``.env`` file.

Manifesto:
    Configuration should be explicit, validated, and environment-driven.

    - **Pydantic validation:** Type-checked at startup, not mid-run
    - **Environment-driven:** ``TRUSTDEBT_MATRIX__DOMINANT_SHARE=0.9`` overrides
      nested sections through the ``__`` delimiter
    - **Fingerprinted:** ``thresholds()`` is hashed into the run fingerprint,
      so changing a threshold changes the run identity

Features:
    - **MatrixSettings:** triangle calibration split, dominant share, asymmetry target
    - **DistributionSettings:** dominant/weak share cut-offs, top-heavy ratio
    - **GradingSettings:** composite score weights
    - **AlignmentSettings:** drift severity bands, neutral prior, recommendation count

Examples:
    >>> settings = TrustDebtSettings()
    >>> settings.matrix.target_asymmetry_ratio
    12.98
    >>> round(settings.matrix.calibrated_ratio, 2)
    12.98

Tags:
    settings, configuration, pydantic, environment, trustdebt-core

Doc-Types:
    - API Reference
    - Configuration Guide
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class MatrixSettings(BaseModel):
    """Triangle allotment and asymmetry calibration.

    ``upper_units`` / ``lower_units`` / ``diagonal_units`` are the calibration
    split; they are normalized to shares of whatever grand total a run has.
    """

    model_config = ConfigDict(frozen=True)

    upper_units: float = Field(default=14824.0, ge=0)
    lower_units: float = Field(default=1142.0, ge=0)
    diagonal_units: float = Field(default=488.0, ge=0)
    dominant_share: float = Field(default=0.85, ge=0.5, le=1.0)
    target_asymmetry_ratio: float = Field(default=12.98, gt=0)
    asymmetry_tolerance: float = Field(default=0.01, gt=0)

    @model_validator(mode="after")
    def _check_split(self) -> MatrixSettings:
        if self.upper_units + self.lower_units + self.diagonal_units <= 0:
            raise ValueError("triangle calibration split must have a positive total")
        return self

    @property
    def calibrated_ratio(self) -> float:
        """Upper/lower ratio implied by the calibration split."""
        if self.lower_units == 0:
            return 0.0
        return self.upper_units / self.lower_units

    def shares(self) -> tuple[float, float, float]:
        """(upper, lower, diagonal) shares of the grand total."""
        total = self.upper_units + self.lower_units + self.diagonal_units
        return (self.upper_units / total, self.lower_units / total, self.diagonal_units / total)


class DistributionSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    dominant_share: float = Field(default=0.10, ge=0, le=1)
    weak_share: float = Field(default=0.02, ge=0, le=1)
    top_heavy_ratio: float = Field(default=0.6, ge=0, le=1)


class GradingSettings(BaseModel):
    """Composite score weights (strength, coverage, average strength)."""

    model_config = ConfigDict(frozen=True)

    strength_weight: float = Field(default=0.4, ge=0)
    coverage_weight: float = Field(default=0.3, ge=0)
    average_weight: float = Field(default=0.3, ge=0)


class AlignmentSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    minor_threshold: float = Field(default=0.10, ge=0)
    significant_threshold: float = Field(default=0.25, ge=0)
    critical_threshold: float = Field(default=0.50, ge=0)
    neutral_prior: float = Field(default=0.5, ge=0, le=1)
    max_recommendations: int = Field(default=5, ge=0)

    @model_validator(mode="after")
    def _check_bands(self) -> AlignmentSettings:
        if not self.minor_threshold <= self.significant_threshold <= self.critical_threshold:
            raise ValueError("drift thresholds must be non-decreasing: minor <= significant <= critical")
        return self


class TrustDebtSettings(BaseSettings):
    """Settings shared by the pipeline runner, stages and CLI.

    Fields
    ──────
    log_level    : Structlog log level
    log_format   : ``console`` or ``json``
    runs_dir     : Parent directory for per-run artifact directories
    config_path  : Optional taxonomy/keyword YAML replacing the packaged default
    """

    model_config = SettingsConfigDict(
        env_prefix="TRUSTDEBT_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Observability ────────────────────────────────────────────
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["console", "json"] = "console"

    # ── Storage ──────────────────────────────────────────────────
    runs_dir: Path = Field(
        default_factory=lambda: Path("trust-debt-runs"),
        description="Parent directory for per-run artifact directories",
    )
    config_path: Path | None = None

    # ── Computation ──────────────────────────────────────────────
    matrix: MatrixSettings = Field(default_factory=MatrixSettings)
    distribution: DistributionSettings = Field(default_factory=DistributionSettings)
    grading: GradingSettings = Field(default_factory=GradingSettings)
    alignment: AlignmentSettings = Field(default_factory=AlignmentSettings)

    def thresholds(self) -> dict[str, Any]:
        """Computation settings only; paths and logging never affect artifacts."""
        return {
            "matrix": self.matrix.model_dump(mode="json"),
            "distribution": self.distribution.model_dump(mode="json"),
            "grading": self.grading.model_dump(mode="json"),
            "alignment": self.alignment.model_dump(mode="json"),
        }

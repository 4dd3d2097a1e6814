"""
Grading engine.

Turns each category's evidence into a composite score in [0, 1]::

    strength = totalStrength / max(maxStrength, 0.001)
    coverage = min(1, documentCount / max(1, activeCategories))
    score    = min(1, 0.4·strength + 0.3·coverage + 0.3·avgStrength)

maps the score through fixed letter bands, ranks it against the other
categories, and averages all scores into the sovereignty score. Every
taxonomy category is graded exactly once; a category without evidence scores
0 and gets the bottom grade.

Examples:
    >>> letter_grade(0.95)
    'A+'
    >>> letter_grade(0.0)
    'F'
    >>> percentile_ranks([0.2, 0.4, 0.4, 0.9])
    [0, 33, 33, 100]

Tags:
    grading, letter-grade, sovereignty, trustdebt-core
"""

from __future__ import annotations

import bisect
import statistics
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from trustdebt.core.settings import GradingSettings
from trustdebt.engine.distribution import DistributionReport
from trustdebt.engine.models import CategoryEvidence, CategoryGrade
from trustdebt.engine.taxonomy import Taxonomy
from trustdebt.framework.logging import get_logger

log = get_logger(__name__)

# Lower bound (inclusive) -> letter, highest first. Anything below the last bound is F.
GRADE_BANDS: tuple[tuple[float, str], ...] = (
    (0.95, "A+"),
    (0.90, "A"),
    (0.85, "A-"),
    (0.80, "B+"),
    (0.75, "B"),
    (0.70, "B-"),
    (0.65, "C+"),
    (0.60, "C"),
    (0.55, "C-"),
    (0.45, "D+"),
    (0.40, "D"),
    (0.35, "D-"),
)
BOTTOM_GRADE = "F"
ALL_GRADES = tuple(letter for _, letter in GRADE_BANDS) + (BOTTOM_GRADE,)

PASSING_SCORE = 0.6
MIN_MAX_STRENGTH = 0.001

SOVEREIGNTY_LEVELS: tuple[tuple[float, str, str], ...] = (
    (0.8, "high", "High sovereignty: autonomous operation is safe"),
    (0.6, "moderate", "Moderate sovereignty: supervised operation recommended"),
    (0.4, "low", "Low sovereignty: restricted operation advised"),
)
CRITICAL_LEVEL = ("critical", "Critical sovereignty: manual approval required")


def letter_grade(score: float) -> str:
    for bound, letter in GRADE_BANDS:
        if score >= bound:
            return letter
    return BOTTOM_GRADE


def interpret_sovereignty(score: float) -> tuple[str, str]:
    """(level, interpretation) for a sovereignty score."""
    for bound, level, text in SOVEREIGNTY_LEVELS:
        if score >= bound:
            return level, text
    return CRITICAL_LEVEL


def percentile_ranks(scores: Sequence[float]) -> list[int]:
    """Percentile of each score by its first position in the ascending score list."""
    ordered = sorted(scores)
    denominator = max(1, len(scores) - 1)
    return [round(bisect.bisect_left(ordered, s) / denominator * 100) for s in scores]


def composite_score(
    evidence: CategoryEvidence,
    max_strength: float,
    active_categories: int,
    weights: GradingSettings,
) -> float:
    strength = evidence.total_strength / max(max_strength, MIN_MAX_STRENGTH)
    coverage = min(1.0, evidence.document_count / max(1, active_categories))
    raw = (
        weights.strength_weight * strength
        + weights.coverage_weight * coverage
        + weights.average_weight * evidence.avg_strength
    )
    return round(max(0.0, min(1.0, raw)), 4)


@dataclass(frozen=True)
class GradingReport:
    grades: tuple[CategoryGrade, ...]
    sovereignty_score: float
    sovereignty_grade: str
    sovereignty_level: str
    interpretation: str
    summary: Mapping[str, Any] = field(default_factory=dict)

    def score_for(self, code: str) -> float | None:
        for grade in self.grades:
            if grade.category_code == code:
                return grade.score
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "categories": [g.to_dict() for g in self.grades],
            "sovereignty": {
                "score": self.sovereignty_score,
                "grade": self.sovereignty_grade,
                "level": self.sovereignty_level,
                "interpretation": self.interpretation,
            },
            "summary": dict(self.summary),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> GradingReport:
        sovereignty = data["sovereignty"]
        return cls(
            grades=tuple(CategoryGrade.from_dict(g) for g in data["categories"]),
            sovereignty_score=float(sovereignty["score"]),
            sovereignty_grade=str(sovereignty["grade"]),
            sovereignty_level=str(sovereignty.get("level", "")),
            interpretation=str(sovereignty["interpretation"]),
            summary=data.get("summary", {}),
        )


def _summary(grades: Sequence[CategoryGrade]) -> dict[str, Any]:
    if not grades:
        return {"gradeDistribution": dict.fromkeys(ALL_GRADES, 0), "count": 0}
    scores = [g.score for g in grades]
    distribution = dict.fromkeys(ALL_GRADES, 0)
    for grade in grades:
        distribution[grade.letter_grade] += 1
    best = min(grades, key=lambda g: (-g.score, g.position))
    worst = min(grades, key=lambda g: (g.score, g.position))
    return {
        "count": len(grades),
        "gradeDistribution": distribution,
        "mean": round(statistics.fmean(scores), 4),
        "median": round(statistics.median(scores), 4),
        "stdDev": round(statistics.pstdev(scores), 4),
        "passing": sum(1 for s in scores if s >= PASSING_SCORE),
        "failing": sum(1 for s in scores if s < PASSING_SCORE),
        "topCategory": best.category_code,
        "bottomCategory": worst.category_code,
    }


def grade_categories(
    taxonomy: Taxonomy,
    distribution: DistributionReport,
    settings: GradingSettings | None = None,
) -> GradingReport:
    """Grade every taxonomy category from the distribution's evidence."""
    settings = settings or GradingSettings()
    by_code = {e.category_code: e for e in distribution.evidence}
    evidence = [by_code.get(c.code, CategoryEvidence(category_code=c.code)) for c in taxonomy]

    max_strength = max((e.total_strength for e in evidence), default=0.0)
    active = sum(1 for e in evidence if e.document_count > 0)

    scores = [composite_score(e, max_strength, active, settings) for e in evidence]
    percentiles = percentile_ranks(scores)

    grades = tuple(
        CategoryGrade(
            category_code=category.code,
            name=category.name,
            position=category.position,
            score=score,
            letter_grade=letter_grade(score),
            percentile=percentile,
            evidence=ev,
        )
        for category, ev, score, percentile in zip(taxonomy, evidence, scores, percentiles)
    )

    sovereignty = round(statistics.fmean(scores), 4) if scores else 0.0
    level, interpretation = interpret_sovereignty(sovereignty)
    report = GradingReport(
        grades=grades,
        sovereignty_score=sovereignty,
        sovereignty_grade=letter_grade(sovereignty),
        sovereignty_level=level,
        interpretation=interpretation,
        summary=_summary(grades),
    )
    log.info(
        "grading.completed",
        categories=len(grades),
        sovereignty=sovereignty,
        grade=report.sovereignty_grade,
        ungraded_evidence=sorted(set(by_code) - set(taxonomy.codes)),
    )
    return report

"""Intent/Reality alignment.

Intent scores come from the intent keyword set counted in the Intent corpus,
normalized against the best-covered category; categories without intent
keywords take the neutral prior. Reality scores are the grading scores.
``drift = intent - reality``: positive drift means documentation promises more
than the code shows (underfocused), negative drift the reverse (overfocused).
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from trustdebt.core.settings import AlignmentSettings
from trustdebt.engine.config import KeywordDictionary
from trustdebt.engine.corpus import Corpus
from trustdebt.engine.grading import GradingReport, letter_grade
from trustdebt.engine.indexer import count_keywords
from trustdebt.engine.models import DriftRecord, DriftSeverity
from trustdebt.engine.taxonomy import Taxonomy
from trustdebt.framework.logging import get_logger

log = get_logger(__name__)

UNDERFOCUSED = "underfocused"
OVERFOCUSED = "overfocused"
BALANCED = "balanced"

PRIORITY_BY_SEVERITY = {
    DriftSeverity.CRITICAL: "critical",
    DriftSeverity.SIGNIFICANT: "high",
    DriftSeverity.MINOR: "medium",
}


def drift_severity(drift: float, settings: AlignmentSettings | None = None) -> DriftSeverity:
    """Band ``|drift|``; each threshold belongs to the band above it."""
    settings = settings or AlignmentSettings()
    magnitude = abs(drift)
    if magnitude < settings.minor_threshold:
        return DriftSeverity.ALIGNED
    if magnitude < settings.significant_threshold:
        return DriftSeverity.MINOR
    if magnitude < settings.critical_threshold:
        return DriftSeverity.SIGNIFICANT
    return DriftSeverity.CRITICAL


def drift_direction(drift: float) -> str:
    if drift > 0:
        return UNDERFOCUSED
    if drift < 0:
        return OVERFOCUSED
    return BALANCED


def intent_scores(
    taxonomy: Taxonomy,
    intent_dictionary: KeywordDictionary,
    intent: Corpus,
    neutral_prior: float = 0.5,
) -> dict[str, float]:
    """Per-category intent score in [0, 1]."""
    keyword_counts = count_keywords(intent_dictionary, intent)
    covered = {
        c.code: sum(keyword_counts[kw] for kw in intent_dictionary.keywords_for(c.code))
        for c in taxonomy
        if intent_dictionary.covers(c.code)
    }
    peak = max(covered.values(), default=0)
    scores = {}
    for category in taxonomy:
        if category.code not in covered:
            scores[category.code] = neutral_prior
        elif peak > 0:
            scores[category.code] = round(covered[category.code] / peak, 4)
        else:
            scores[category.code] = 0.0
    return scores


def _recommendation(record: DriftRecord) -> dict[str, Any]:
    points = round(abs(record.drift) * 100)
    if record.direction == UNDERFOCUSED:
        action = (
            f"Strengthen implementation of {record.name} ({record.category_code}): "
            f"documentation emphasis exceeds delivered evidence by {points} points"
        )
    else:
        action = (
            f"Document {record.name} ({record.category_code}): "
            f"implementation activity exceeds stated intent by {points} points"
        )
    return {
        "priority": PRIORITY_BY_SEVERITY[record.severity],
        "categoryCode": record.category_code,
        "name": record.name,
        "direction": record.direction,
        "drift": record.drift,
        "action": action,
        "rationale": (
            f"Intent {record.intent_score:.2f} vs reality {record.reality_score:.2f} "
            f"({record.severity.value} drift)"
        ),
    }


@dataclass(frozen=True)
class AlignmentReport:
    overall: float
    grade: str
    drifts: tuple[DriftRecord, ...]
    recommendations: tuple[dict[str, Any], ...]
    summary: Mapping[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "alignment": {"overall": self.overall, "grade": self.grade},
            "drifts": [d.to_dict() for d in self.drifts],
            "recommendations": list(self.recommendations),
            "summary": dict(self.summary),
        }


def analyze_alignment(
    taxonomy: Taxonomy,
    grading: GradingReport,
    intent_dictionary: KeywordDictionary,
    intent: Corpus,
    settings: AlignmentSettings | None = None,
) -> AlignmentReport:
    settings = settings or AlignmentSettings()
    intents = intent_scores(taxonomy, intent_dictionary, intent, settings.neutral_prior)

    drifts = []
    for category in taxonomy:
        reality = grading.score_for(category.code)
        reality = reality if reality is not None else 0.0
        drift = round(intents[category.code] - reality, 4)
        drifts.append(
            DriftRecord(
                category_code=category.code,
                name=category.name,
                intent_score=intents[category.code],
                reality_score=reality,
                drift=drift,
                severity=drift_severity(drift, settings),
                direction=drift_direction(drift),
            )
        )

    mean_abs = sum(abs(d.drift) for d in drifts) / len(drifts) if drifts else 0.0
    overall = round(max(0.0, 1.0 - mean_abs), 4)

    position = {c.code: c.position for c in taxonomy}
    candidates = sorted(
        (d for d in drifts if d.severity is not DriftSeverity.ALIGNED),
        key=lambda d: (-abs(d.drift), position[d.category_code]),
    )
    recommendations = tuple(_recommendation(d) for d in candidates[: settings.max_recommendations])

    summary = {severity.value: sum(1 for d in drifts if d.severity is severity) for severity in DriftSeverity}
    summary["underfocused"] = sum(1 for d in drifts if d.direction == UNDERFOCUSED)
    summary["overfocused"] = sum(1 for d in drifts if d.direction == OVERFOCUSED)

    log.info(
        "alignment.completed",
        overall=overall,
        critical=summary[DriftSeverity.CRITICAL.value],
        recommendations=len(recommendations),
    )
    return AlignmentReport(
        overall=overall,
        grade=letter_grade(overall),
        drifts=tuple(drifts),
        recommendations=recommendations,
        summary=summary,
    )

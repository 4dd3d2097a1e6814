"""Concentration statistics over per-category strength."""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from trustdebt.core.settings import DistributionSettings
from trustdebt.engine.models import CategoryEvidence
from trustdebt.framework.logging import get_logger

log = get_logger(__name__)


def shannon_entropy(values: Sequence[float]) -> float:
    """``-Σ p·log2(p)`` over non-zero shares; 0 for an all-zero vector."""
    total = sum(values)
    if total <= 0:
        return 0.0
    return -sum((v / total) * math.log2(v / total) for v in values if v > 0)


def gini_coefficient(values: Sequence[float]) -> float:
    """Mean absolute pairwise difference over twice the mean; 0 for an all-zero vector."""
    n = len(values)
    total = sum(values)
    if n == 0 or total <= 0:
        return 0.0
    ordered = sorted(values)
    weighted = sum((2 * i - n - 1) * v for i, v in enumerate(ordered, start=1))
    return weighted / (n * total)


@dataclass(frozen=True)
class DistributionReport:
    entropy: float
    max_entropy: float
    gini: float
    top_heavy: bool
    total_strength: float
    active_categories: int
    dominant: tuple[dict[str, Any], ...]
    weak: tuple[dict[str, Any], ...]
    evidence: tuple[CategoryEvidence, ...]

    @property
    def normalized_entropy(self) -> float:
        return self.entropy / self.max_entropy if self.max_entropy > 0 else 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "entropy": round(self.entropy, 6),
            "maxEntropy": round(self.max_entropy, 6),
            "normalizedEntropy": round(self.normalized_entropy, 6),
            "giniCoefficient": round(self.gini, 6),
            "topHeavy": self.top_heavy,
            "totalStrength": round(self.total_strength, 6),
            "activeCategories": self.active_categories,
            "dominantCategories": list(self.dominant),
            "weakCategories": list(self.weak),
            "categories": [e.to_dict() for e in self.evidence],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> DistributionReport:
        return cls(
            entropy=float(data["entropy"]),
            max_entropy=float(data["maxEntropy"]),
            gini=float(data["giniCoefficient"]),
            top_heavy=bool(data["topHeavy"]),
            total_strength=float(data["totalStrength"]),
            active_categories=int(data["activeCategories"]),
            dominant=tuple(data["dominantCategories"]),
            weak=tuple(data["weakCategories"]),
            evidence=tuple(CategoryEvidence.from_dict(e) for e in data["categories"]),
        )


def analyze_distribution(
    evidence: Sequence[CategoryEvidence],
    settings: DistributionSettings | None = None,
) -> DistributionReport:
    """
    Compute entropy, Gini and the dominant/weak lists for a strength vector.

    ``evidence`` is in taxonomy order; that order breaks ties in the ranked
    lists.
    """
    settings = settings or DistributionSettings()
    strengths = [e.total_strength for e in evidence]
    total = sum(strengths)
    n = len(strengths)

    entropy = shannon_entropy(strengths)
    max_entropy = math.log2(n) if n > 1 else 0.0
    top_heavy = total > 0 and entropy < settings.top_heavy_ratio * max_entropy

    shares = [(s / total if total > 0 else 0.0) for s in strengths]
    ranked = [
        {"categoryCode": e.category_code, "share": round(share * 100, 4), "totalStrength": e.total_strength}
        for e, share in zip(evidence, shares)
    ]
    order = range(len(ranked))
    dominant = tuple(
        ranked[i] for i in sorted((i for i in order if shares[i] > settings.dominant_share), key=lambda i: (-shares[i], i))
    )
    weak = tuple(
        ranked[i] for i in sorted((i for i in order if 0 < shares[i] < settings.weak_share), key=lambda i: (shares[i], i))
    )

    report = DistributionReport(
        entropy=entropy,
        max_entropy=max_entropy,
        gini=gini_coefficient(strengths),
        top_heavy=top_heavy,
        total_strength=total,
        active_categories=sum(1 for e in evidence if e.document_count > 0),
        dominant=dominant,
        weak=weak,
        evidence=tuple(evidence),
    )
    log.info(
        "distribution.analyzed",
        entropy=round(entropy, 4),
        gini=round(report.gini, 4),
        top_heavy=top_heavy,
        dominant=len(dominant),
        weak=len(weak),
    )
    return report

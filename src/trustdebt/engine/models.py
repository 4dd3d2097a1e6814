"""Domain records shared by the engine stages.

Every record is a frozen dataclass: stages hand each other fully materialized,
immutable values and never patch a predecessor's output. ``to_dict`` produces
the camelCase artifact shape; ``from_dict`` reads it back.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class Triangle(str, Enum):
    """Matrix region a cell belongs to."""

    UPPER = "upper"
    LOWER = "lower"
    DIAGONAL = "diagonal"

    @classmethod
    def of(cls, row: int, col: int) -> Triangle:
        if row < col:
            return cls.UPPER
        if row > col:
            return cls.LOWER
        return cls.DIAGONAL


class DriftSeverity(str, Enum):
    ALIGNED = "aligned"
    MINOR = "minor"
    SIGNIFICANT = "significant"
    CRITICAL = "critical"


class FindingSeverity(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class AuditOverall(str, Enum):
    PASS = "pass"
    WARNING = "warning"
    FAIL = "fail"


@dataclass(frozen=True, slots=True)
class Category:
    """A node in the category hierarchy.

    ``position`` is the 1-indexed ShortLex rank; 0 means not yet ranked.
    """

    code: str
    name: str
    parent_code: str | None = None
    position: int = 0
    units: float = 0.0
    percentage: float = 0.0

    @property
    def depth(self) -> int:
        """Number of dotted segments in the code."""
        return self.code.count(".") + 1

    @property
    def is_root(self) -> bool:
        return self.parent_code is None

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "name": self.name,
            "parentCode": self.parent_code,
            "position": self.position,
            "units": self.units,
            "percentage": self.percentage,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Category:
        return cls(
            code=str(data["code"]),
            name=str(data["name"]),
            parent_code=data.get("parentCode"),
            position=int(data.get("position", 0)),
            units=float(data.get("units", 0.0)),
            percentage=float(data.get("percentage", 0.0)),
        )


@dataclass(frozen=True, slots=True)
class KeywordMapping:
    """Occurrence counts of one keyword, attributed to one category."""

    keyword: str
    category_code: str
    intent_count: int
    reality_count: int

    @property
    def total_count(self) -> int:
        return self.intent_count + self.reality_count

    def to_dict(self) -> dict[str, Any]:
        return {
            "keyword": self.keyword,
            "categoryCode": self.category_code,
            "intentCount": self.intent_count,
            "realityCount": self.reality_count,
            "totalCount": self.total_count,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> KeywordMapping:
        return cls(
            keyword=str(data["keyword"]),
            category_code=str(data["categoryCode"]),
            intent_count=int(data["intentCount"]),
            reality_count=int(data["realityCount"]),
        )


@dataclass(frozen=True, slots=True)
class MatrixCell:
    row: int
    col: int
    intent_value: float
    reality_value: float
    units: float

    @property
    def triangle(self) -> Triangle:
        return Triangle.of(self.row, self.col)

    def to_dict(self) -> dict[str, Any]:
        return {
            "row": self.row,
            "col": self.col,
            "intentValue": self.intent_value,
            "realityValue": self.reality_value,
            "units": self.units,
            "triangle": self.triangle.value,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MatrixCell:
        return cls(
            row=int(data["row"]),
            col=int(data["col"]),
            intent_value=float(data["intentValue"]),
            reality_value=float(data["realityValue"]),
            units=float(data["units"]),
        )


@dataclass(frozen=True, slots=True)
class CategoryEvidence:
    """Strength evidence gathered for one category."""

    category_code: str
    total_strength: float = 0.0
    document_count: int = 0
    avg_strength: float = 0.0
    percent_of_corpus: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "categoryCode": self.category_code,
            "totalStrength": self.total_strength,
            "documentCount": self.document_count,
            "avgStrength": self.avg_strength,
            "percentOfCorpus": self.percent_of_corpus,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CategoryEvidence:
        return cls(
            category_code=str(data["categoryCode"]),
            total_strength=float(data.get("totalStrength", 0.0)),
            document_count=int(data.get("documentCount", 0)),
            avg_strength=float(data.get("avgStrength", 0.0)),
            percent_of_corpus=float(data.get("percentOfCorpus", 0.0)),
        )


@dataclass(frozen=True, slots=True)
class CategoryGrade:
    category_code: str
    name: str
    position: int
    score: float
    letter_grade: str
    percentile: int
    evidence: CategoryEvidence

    def to_dict(self) -> dict[str, Any]:
        return {
            "categoryCode": self.category_code,
            "name": self.name,
            "position": self.position,
            "score": self.score,
            "letterGrade": self.letter_grade,
            "percentile": self.percentile,
            "evidence": self.evidence.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CategoryGrade:
        return cls(
            category_code=str(data["categoryCode"]),
            name=str(data.get("name", data["categoryCode"])),
            position=int(data.get("position", 0)),
            score=float(data["score"]),
            letter_grade=str(data["letterGrade"]),
            percentile=int(data.get("percentile", 0)),
            evidence=CategoryEvidence.from_dict(data.get("evidence") or {"categoryCode": data["categoryCode"]}),
        )


@dataclass(frozen=True, slots=True)
class DriftRecord:
    category_code: str
    name: str
    intent_score: float
    reality_score: float
    drift: float
    severity: DriftSeverity
    direction: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "categoryCode": self.category_code,
            "name": self.name,
            "intentScore": self.intent_score,
            "realityScore": self.reality_score,
            "drift": self.drift,
            "severity": self.severity.value,
            "direction": self.direction,
        }


@dataclass(frozen=True, slots=True)
class AuditFinding:
    check_name: str
    passed: bool
    message: str
    severity: FindingSeverity

    def to_dict(self) -> dict[str, Any]:
        return {
            "checkName": self.check_name,
            "passed": self.passed,
            "message": self.message,
            "severity": self.severity.value,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AuditFinding:
        return cls(
            check_name=str(data["checkName"]),
            passed=bool(data["passed"]),
            message=str(data["message"]),
            severity=FindingSeverity(data["severity"]),
        )

"""
Validation/audit layer.

Re-reads what the earlier stages wrote and runs a fixed battery of checks
over it. The audit only observes: it never repairs or rewrites upstream
output. Its findings are the single answer to "did this run succeed".

Manifesto:
    Audit results must be actionable:

    - **Named:** every finding carries the check name
    - **Severity-aware:** error vs warning drives the overall verdict
    - **Non-blocking:** every check runs, even when earlier ones failed
    - **Independent:** checks recompute from raw artifacts instead of
      trusting flags set by the stage that produced them

Architecture:
    ::

        AuditInputs (raw stage payloads + missing-stage reasons)
              │
              ▼
        AuditRunner.run_all()
          ├── pipeline-completeness   error
          ├── score-range             error
          ├── category-ordering       error
          ├── matrix-structure        error
          ├── matrix-population       error
          ├── asymmetry-ratio         warning
          ├── keyword-totals          error
          ├── grade-coverage          error
          ├── drift-coverage          error
          └── distribution-balance    warning
              │
              ▼
        AuditReport(overall = fail | warning | pass, findings)

Examples:
    >>> runner = AuditRunner().add(AuditCheck("always", FindingSeverity.ERROR, lambda i: CheckResult(True, "ok")))
    >>> runner.run_all(AuditInputs()).overall
    <AuditOverall.PASS: 'pass'>

Tags:
    audit, validation, integrity, quality-gate, trustdebt-core

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from trustdebt.engine.models import AuditFinding, AuditOverall, Category, FindingSeverity, Triangle
from trustdebt.engine.taxonomy import find_order_violation
from trustdebt.framework.logging import get_logger

log = get_logger(__name__)

EXPECTED_STAGES = ("taxonomy", "indexer", "matrix", "distribution", "grading", "alignment")


@dataclass(frozen=True)
class AuditInputs:
    """Raw payloads of the upstream stage artifacts; None when unavailable."""

    taxonomy: Mapping[str, Any] | None = None
    indexer: Mapping[str, Any] | None = None
    matrix: Mapping[str, Any] | None = None
    distribution: Mapping[str, Any] | None = None
    grading: Mapping[str, Any] | None = None
    alignment: Mapping[str, Any] | None = None
    missing: Mapping[str, str] = field(default_factory=dict)

    def payload(self, stage: str) -> Mapping[str, Any] | None:
        return getattr(self, stage)

    def taxonomy_codes(self) -> list[str] | None:
        if self.taxonomy is not None:
            return [c["code"] for c in self.taxonomy["categories"]]
        return None


@dataclass(frozen=True)
class CheckResult:
    passed: bool
    message: str


@dataclass(frozen=True)
class AuditCheck:
    """A named check and the severity it reports when it fails."""

    name: str
    severity: FindingSeverity
    check_fn: Callable[[AuditInputs], CheckResult]


@dataclass(frozen=True)
class AuditReport:
    overall: AuditOverall
    findings: tuple[AuditFinding, ...]

    def failures(self) -> list[AuditFinding]:
        return [f for f in self.findings if not f.passed]

    def to_dict(self) -> dict[str, Any]:
        failed = self.failures()
        return {
            "overall": self.overall.value,
            "findings": [f.to_dict() for f in self.findings],
            "summary": {
                "checks": len(self.findings),
                "passed": len(self.findings) - len(failed),
                "errors": sum(1 for f in failed if f.severity is FindingSeverity.ERROR),
                "warnings": sum(1 for f in failed if f.severity is FindingSeverity.WARNING),
            },
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> AuditReport:
        return cls(
            overall=AuditOverall(data["overall"]),
            findings=tuple(AuditFinding.from_dict(f) for f in data["findings"]),
        )


def overall_integrity(findings: Sequence[AuditFinding]) -> AuditOverall:
    failed = [f for f in findings if not f.passed]
    if any(f.severity is FindingSeverity.ERROR for f in failed):
        return AuditOverall.FAIL
    if any(f.severity is FindingSeverity.WARNING for f in failed):
        return AuditOverall.WARNING
    return AuditOverall.PASS


class AuditRunner:
    """
    Runs audit checks and collects findings.

    Passed checks are reported as ``info``; failed checks carry the check's
    severity. A check that trips over a malformed payload is itself a failed
    finding, never an exception out of the runner.
    """

    def __init__(self) -> None:
        self.checks: list[AuditCheck] = []
        self._findings: list[AuditFinding] = []

    def add(self, check: AuditCheck) -> AuditRunner:
        """Add a check. Returns self for chaining."""
        self.checks.append(check)
        return self

    def run_all(self, inputs: AuditInputs) -> AuditReport:
        self._findings = []
        for check in self.checks:
            try:
                result = check.check_fn(inputs)
            except (KeyError, TypeError, ValueError, AttributeError, ArithmeticError) as e:
                result = CheckResult(False, f"Malformed input for {check.name}: {type(e).__name__}: {e}")
            finding = AuditFinding(
                check_name=check.name,
                passed=result.passed,
                message=result.message,
                severity=FindingSeverity.INFO if result.passed else check.severity,
            )
            if not finding.passed:
                log.warning("audit.check_failed", check=check.name, severity=finding.severity.value, message=finding.message)
            self._findings.append(finding)

        report = AuditReport(overall=overall_integrity(self._findings), findings=tuple(self._findings))
        log.info("audit.completed", overall=report.overall.value, checks=len(self._findings), failed=len(report.failures()))
        return report

    def has_failures(self) -> bool:
        return any(f.severity is FindingSeverity.ERROR for f in self._findings if not f.passed)

    def failures(self) -> list[str]:
        return [f.check_name for f in self._findings if not f.passed]


# =============================================================================
# CHECKS
# =============================================================================


def _unavailable(inputs: AuditInputs, *stages: str) -> CheckResult | None:
    absent = [s for s in stages if inputs.payload(s) is None]
    if absent:
        return CheckResult(False, f"Cannot evaluate: {', '.join(absent)} artifact unavailable")
    return None


def check_pipeline_completeness(inputs: AuditInputs) -> CheckResult:
    missing = [s for s in EXPECTED_STAGES if inputs.payload(s) is None]
    if not missing:
        return CheckResult(True, f"All {len(EXPECTED_STAGES)} upstream stages produced artifacts")
    details = [f"{s} ({inputs.missing[s]})" if s in inputs.missing else s for s in missing]
    return CheckResult(False, f"Missing stage artifacts: {', '.join(details)}")


def _in_unit_range(value: Any) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool) and 0.0 <= value <= 1.0


def check_score_range(inputs: AuditInputs) -> CheckResult:
    blocked = _unavailable(inputs, "grading", "alignment")
    if blocked:
        return blocked
    problems = []
    sovereignty = inputs.grading["sovereignty"]["score"]
    if not _in_unit_range(sovereignty):
        problems.append(f"sovereignty score {sovereignty}")
    overall = inputs.alignment["alignment"]["overall"]
    if not _in_unit_range(overall):
        problems.append(f"alignment score {overall}")
    for grade in inputs.grading["categories"]:
        if not _in_unit_range(grade["score"]):
            problems.append(f"{grade['categoryCode']} score {grade['score']}")
    if problems:
        return CheckResult(False, f"Scores outside [0, 1]: {'; '.join(problems)}")
    return CheckResult(True, f"Sovereignty {sovereignty} and alignment {overall} within [0, 1]")


def check_category_ordering(inputs: AuditInputs) -> CheckResult:
    if inputs.grading is not None:
        source = "grading"
        rows = [{"code": g["categoryCode"], "position": g.get("position", 0)} for g in inputs.grading["categories"]]
    elif inputs.taxonomy is not None:
        source = "taxonomy"
        rows = [{"code": c["code"], "position": c["position"]} for c in inputs.taxonomy["categories"]]
    else:
        return CheckResult(False, "Cannot evaluate: no category list available")

    categories = [Category(code=r["code"], name=r["code"], position=int(r["position"])) for r in rows]
    violation = find_order_violation(categories)
    if violation is not None:
        return CheckResult(False, f"Category list from {source} breaks ShortLex order: {violation.describe()}")
    for expected, category in enumerate(categories, start=1):
        if category.position != expected:
            return CheckResult(
                False,
                f"Category '{category.code}' in {source} has position {category.position}, expected {expected}",
            )
    return CheckResult(True, f"{len(categories)} categories from {source} in ShortLex order")


def check_matrix_structure(inputs: AuditInputs) -> CheckResult:
    blocked = _unavailable(inputs, "matrix")
    if blocked:
        return blocked
    codes = inputs.taxonomy_codes()
    if codes is None and inputs.grading is not None:
        codes = [g["categoryCode"] for g in inputs.grading["categories"]]
    if codes is None:
        return CheckResult(False, "Cannot evaluate: category count unknown")

    n = len(codes)
    matrix = inputs.matrix
    dims = matrix["dimensions"]
    cells = matrix["cells"]
    problems = []
    if dims["rows"] != n or dims["cols"] != n:
        problems.append(f"dimensions {dims['rows']}x{dims['cols']} for {n} categories")
    if len(cells) != n * n or dims["totalCells"] != n * n:
        problems.append(f"{len(cells)} cells, expected {n * n}")

    coordinates = Counter((c["row"], c["col"]) for c in cells)
    duplicates = sum(1 for count in coordinates.values() if count > 1)
    if duplicates:
        problems.append(f"{duplicates} duplicated coordinates")
    out_of_bounds = sum(1 for (r, c) in coordinates if not (1 <= r <= n and 1 <= c <= n))
    if out_of_bounds:
        problems.append(f"{out_of_bounds} cells outside 1..{n}")
    mislabelled = sum(1 for c in cells if c["triangle"] != Triangle.of(c["row"], c["col"]).value)
    if mislabelled:
        problems.append(f"{mislabelled} cells with the wrong triangle label")

    partition = Counter(c["triangle"] for c in cells)
    off_diagonal = n * (n - 1) // 2
    expected_partition = {Triangle.UPPER.value: off_diagonal, Triangle.LOWER.value: off_diagonal, Triangle.DIAGONAL.value: n}
    if any(partition.get(t, 0) != count for t, count in expected_partition.items()):
        problems.append(
            "partition upper/lower/diagonal = "
            f"{partition.get('upper', 0)}/{partition.get('lower', 0)}/{partition.get('diagonal', 0)}, "
            f"expected {off_diagonal}/{off_diagonal}/{n}"
        )

    if problems:
        return CheckResult(False, f"Matrix structure invalid: {'; '.join(problems)}")
    return CheckResult(True, f"{n}x{n} matrix partitions into {off_diagonal}/{off_diagonal}/{n} cells")


def check_matrix_population(inputs: AuditInputs) -> CheckResult:
    blocked = _unavailable(inputs, "matrix")
    if blocked:
        return blocked
    cells = inputs.matrix["cells"]
    populated = sum(1 for c in cells if c["units"] != 0 or c["intentValue"] != 0 or c["realityValue"] != 0)
    if populated == 0:
        return CheckResult(False, f"Matrix is degenerate: all {len(cells)} cells are zero")
    return CheckResult(True, f"{populated} of {len(cells)} cells carry units")


def check_asymmetry_ratio(inputs: AuditInputs) -> CheckResult:
    blocked = _unavailable(inputs, "matrix")
    if blocked:
        return blocked
    stats = inputs.matrix["statistics"]
    upper = stats["upperTriangle"]["totalUnits"]
    lower = stats["lowerTriangle"]["totalUnits"]
    target = stats["targetAsymmetryRatio"]
    tolerance = stats["asymmetryTolerance"]
    if lower <= 0:
        return CheckResult(False, "Asymmetry ratio undefined: lower triangle holds no units")
    if target <= 0:
        return CheckResult(False, f"Asymmetry target {target} must be positive")
    ratio = upper / lower
    error = abs(ratio - target) / target
    if error >= tolerance:
        return CheckResult(False, f"Asymmetry ratio {ratio:.4f} off target {target} by {error:.2%} (tolerance {tolerance:.2%})")
    return CheckResult(True, f"Asymmetry ratio {ratio:.4f} within {tolerance:.2%} of {target}")


def check_keyword_totals(inputs: AuditInputs) -> CheckResult:
    blocked = _unavailable(inputs, "indexer")
    if blocked:
        return blocked
    mappings = inputs.indexer["mappings"]
    bad = [
        f"{m['keyword']}->{m['categoryCode']}"
        for m in mappings
        if m["intentCount"] < 0
        or m["realityCount"] < 0
        or m["totalCount"] != m["intentCount"] + m["realityCount"]
    ]
    if bad:
        return CheckResult(False, f"{len(bad)} mappings with inconsistent counts: {', '.join(bad[:5])}")
    return CheckResult(True, f"{len(mappings)} mappings with consistent totals")


def _coverage(expected: list[str], seen: list[str], label: str) -> CheckResult:
    counts = Counter(seen)
    missing = [c for c in expected if c not in counts]
    duplicated = sorted(c for c, n in counts.items() if n > 1)
    unknown = sorted(set(counts) - set(expected))
    problems = []
    if missing:
        problems.append(f"missing {', '.join(missing)}")
    if duplicated:
        problems.append(f"duplicated {', '.join(duplicated)}")
    if unknown:
        problems.append(f"unknown {', '.join(unknown)}")
    if problems:
        return CheckResult(False, f"{label} coverage broken: {'; '.join(problems)}")
    return CheckResult(True, f"All {len(expected)} categories have exactly one {label} record")


def check_grade_coverage(inputs: AuditInputs) -> CheckResult:
    blocked = _unavailable(inputs, "taxonomy", "grading")
    if blocked:
        return blocked
    return _coverage(inputs.taxonomy_codes(), [g["categoryCode"] for g in inputs.grading["categories"]], "grade")


def check_drift_coverage(inputs: AuditInputs) -> CheckResult:
    blocked = _unavailable(inputs, "taxonomy", "alignment")
    if blocked:
        return blocked
    return _coverage(inputs.taxonomy_codes(), [d["categoryCode"] for d in inputs.alignment["drifts"]], "drift")


def check_distribution_balance(inputs: AuditInputs) -> CheckResult:
    blocked = _unavailable(inputs, "distribution")
    if blocked:
        return blocked
    dist = inputs.distribution
    if dist["topHeavy"]:
        dominant = ", ".join(d["categoryCode"] for d in dist["dominantCategories"]) or "none"
        return CheckResult(
            False,
            f"Evidence is top-heavy: entropy {dist['entropy']} below threshold of max {dist['maxEntropy']} "
            f"(dominant: {dominant})",
        )
    return CheckResult(True, f"Entropy {dist['entropy']} of max {dist['maxEntropy']}; Gini {dist['giniCoefficient']}")


def default_runner() -> AuditRunner:
    """The fixed battery run at the end of every pipeline."""
    error, warning = FindingSeverity.ERROR, FindingSeverity.WARNING
    return (
        AuditRunner()
        .add(AuditCheck("pipeline-completeness", error, check_pipeline_completeness))
        .add(AuditCheck("score-range", error, check_score_range))
        .add(AuditCheck("category-ordering", error, check_category_ordering))
        .add(AuditCheck("matrix-structure", error, check_matrix_structure))
        .add(AuditCheck("matrix-population", error, check_matrix_population))
        .add(AuditCheck("asymmetry-ratio", warning, check_asymmetry_ratio))
        .add(AuditCheck("keyword-totals", error, check_keyword_totals))
        .add(AuditCheck("grade-coverage", error, check_grade_coverage))
        .add(AuditCheck("drift-coverage", error, check_drift_coverage))
        .add(AuditCheck("distribution-balance", warning, check_distribution_balance))
    )


def run_audit(inputs: AuditInputs) -> AuditReport:
    return default_runner().run_all(inputs)

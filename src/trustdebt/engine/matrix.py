"""
Asymmetric evidence matrix.

Builds the N×N grid over the ranked categories and partitions it into three
regions::

          col →
        ┌───────────────┐
    row │ D  U  U  U  U │   U  upper    row < col   reality-weighted
     ↓  │ L  D  U  U  U │   L  lower    row > col   intent-weighted
        │ L  L  D  U  U │   D  diagonal row == col  even split
        │ L  L  L  D  U │
        │ L  L  L  L  D │
        └───────────────┘

The grand total is the sum of the per-category unit totals. It is split across
the three regions using the configured calibration (``MatrixSettings``), each
region's share is spread evenly across its cells, and each cell divides its
allotment between reality and intent with the dominant share on the region's
side. Cell values are left unrounded so the upper/lower ratio reproduces the
calibration exactly.

The build is pure and single-pass: identical inputs give identical output.
The asymmetry check is recorded, never enforced.

Tags:
    matrix, asymmetry, triangle-partition, trustdebt-core
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from trustdebt.core.settings import MatrixSettings
from trustdebt.engine.models import MatrixCell, Triangle
from trustdebt.engine.taxonomy import Taxonomy
from trustdebt.framework.logging import get_logger

log = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class TriangleStats:
    count: int
    total_units: float

    def to_dict(self) -> dict[str, Any]:
        return {"count": self.count, "totalUnits": self.total_units}


@dataclass(frozen=True, slots=True)
class Submatrix:
    """Row/column block covering one root and its descendants. Presentation only.

    ``start_row``..``end_row`` spans the root and every descendant; the
    ``child_*`` rows bound the descendants alone and are ``None`` for a leaf root.
    """

    root_code: str
    name: str
    start_row: int
    end_row: int
    start_col: int
    end_col: int
    members: int
    root_row: int
    child_start_row: int | None = None
    child_end_row: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "rootCode": self.root_code,
            "name": self.name,
            "startRow": self.start_row,
            "endRow": self.end_row,
            "startCol": self.start_col,
            "endCol": self.end_col,
            "members": self.members,
            "rootRow": self.root_row,
            "childStartRow": self.child_start_row,
            "childEndRow": self.child_end_row,
        }


@dataclass(frozen=True)
class EvidenceMatrix:
    size: int
    cells: tuple[MatrixCell, ...]
    grand_total: float
    upper: TriangleStats
    lower: TriangleStats
    diagonal: TriangleStats
    asymmetry_ratio: float
    target_asymmetry_ratio: float
    asymmetry_error: float
    asymmetry_tolerance: float
    submatrices: tuple[Submatrix, ...]
    category_codes: tuple[str, ...]

    @property
    def within_tolerance(self) -> bool:
        return self.lower.total_units > 0 and self.asymmetry_error < self.asymmetry_tolerance

    @property
    def dimensions(self) -> dict[str, int]:
        return {"rows": self.size, "cols": self.size, "totalCells": len(self.cells)}

    def cell(self, row: int, col: int) -> MatrixCell:
        """Cell at 1-based ``row``/``col``."""
        return self.cells[(row - 1) * self.size + (col - 1)]

    def is_zero(self) -> bool:
        return all(c.units == 0 and c.intent_value == 0 and c.reality_value == 0 for c in self.cells)

    def to_dict(self) -> dict[str, Any]:
        return {
            "dimensions": self.dimensions,
            "categoryCodes": list(self.category_codes),
            "grandTotal": self.grand_total,
            "cells": [c.to_dict() for c in self.cells],
            "statistics": {
                "upperTriangle": self.upper.to_dict(),
                "lowerTriangle": self.lower.to_dict(),
                "diagonal": self.diagonal.to_dict(),
                "asymmetryRatio": round(self.asymmetry_ratio, 4),
                "targetAsymmetryRatio": self.target_asymmetry_ratio,
                "asymmetryError": round(self.asymmetry_error, 6),
                "asymmetryTolerance": self.asymmetry_tolerance,
                "asymmetryWithinTolerance": self.within_tolerance,
            },
            "submatrices": [s.to_dict() for s in self.submatrices],
        }


def asymmetry(upper_total: float, lower_total: float, target: float) -> tuple[float, float]:
    """(ratio, relative error against ``target``); ratio is 0 when the lower total is 0."""
    ratio = upper_total / lower_total if lower_total > 0 else 0.0
    return ratio, abs(ratio - target) / target


def compute_submatrices(taxonomy: Taxonomy) -> tuple[Submatrix, ...]:
    blocks = []
    for root in taxonomy.roots():
        descendants = taxonomy.descendants(root.code)
        members = (root, *descendants)
        positions = [m.position for m in members]
        start, end = min(positions), max(positions)
        child_positions = [d.position for d in descendants]
        blocks.append(
            Submatrix(
                root_code=root.code,
                name=root.name,
                start_row=start,
                end_row=end,
                start_col=start,
                end_col=end,
                members=len(members),
                root_row=root.position,
                child_start_row=min(child_positions) if child_positions else None,
                child_end_row=max(child_positions) if child_positions else None,
            )
        )
    return tuple(blocks)


def build_matrix(
    taxonomy: Taxonomy,
    unit_totals: Mapping[str, float],
    settings: MatrixSettings | None = None,
) -> EvidenceMatrix:
    """
    Build the evidence matrix for ``taxonomy``.

    Args:
        taxonomy: Ranked categories; row/col values are their positions
        unit_totals: Units per category code; missing codes count as 0
        settings: Calibration and shares; defaults to ``MatrixSettings()``
    """
    settings = settings or MatrixSettings()
    n = len(taxonomy)
    grand_total = float(sum(unit_totals.get(code, 0.0) for code in taxonomy.codes))

    upper_share, lower_share, diagonal_share = settings.shares()
    off_diagonal_cells = n * (n - 1) // 2
    counts = {Triangle.UPPER: off_diagonal_cells, Triangle.LOWER: off_diagonal_cells, Triangle.DIAGONAL: n}
    allotment = {
        Triangle.UPPER: grand_total * upper_share,
        Triangle.LOWER: grand_total * lower_share,
        Triangle.DIAGONAL: grand_total * diagonal_share,
    }
    if not off_diagonal_cells:
        # a single category has no triangles; the diagonal holds everything
        allotment = {Triangle.UPPER: 0.0, Triangle.LOWER: 0.0, Triangle.DIAGONAL: grand_total}
    per_cell = {t: (allotment[t] / counts[t] if counts[t] else 0.0) for t in Triangle}

    dominant = settings.dominant_share
    minor = 1.0 - dominant
    # (intent share, reality share) per region
    split = {
        Triangle.UPPER: (minor, dominant),
        Triangle.LOWER: (dominant, minor),
        Triangle.DIAGONAL: (0.5, 0.5),
    }

    cells = []
    for row_category in taxonomy:
        for col_category in taxonomy:
            region = Triangle.of(row_category.position, col_category.position)
            avg = per_cell[region]
            intent_share, reality_share = split[region]
            cells.append(
                MatrixCell(
                    row=row_category.position,
                    col=col_category.position,
                    intent_value=avg * intent_share,
                    reality_value=avg * reality_share,
                    units=avg,
                )
            )

    totals = dict.fromkeys(Triangle, 0.0)
    for cell in cells:
        totals[cell.triangle] += cell.units

    ratio, error = asymmetry(totals[Triangle.UPPER], totals[Triangle.LOWER], settings.target_asymmetry_ratio)

    matrix = EvidenceMatrix(
        size=n,
        cells=tuple(cells),
        grand_total=grand_total,
        upper=TriangleStats(counts[Triangle.UPPER], totals[Triangle.UPPER]),
        lower=TriangleStats(counts[Triangle.LOWER], totals[Triangle.LOWER]),
        diagonal=TriangleStats(counts[Triangle.DIAGONAL], totals[Triangle.DIAGONAL]),
        asymmetry_ratio=ratio,
        target_asymmetry_ratio=settings.target_asymmetry_ratio,
        asymmetry_error=error,
        asymmetry_tolerance=settings.asymmetry_tolerance,
        submatrices=compute_submatrices(taxonomy),
        category_codes=taxonomy.codes,
    )

    if not matrix.within_tolerance:
        log.warning(
            "matrix.asymmetry_out_of_tolerance",
            ratio=round(ratio, 4),
            target=settings.target_asymmetry_ratio,
            error=round(error, 6),
            tolerance=settings.asymmetry_tolerance,
        )
    log.info("matrix.built", size=n, cells=len(cells), grand_total=grand_total, ratio=round(ratio, 4))
    return matrix

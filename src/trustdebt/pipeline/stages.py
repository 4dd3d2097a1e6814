"""
The seven Trust Debt stages.

Each stage loads its predecessors' artifacts, calls one engine function and
returns the artifact payload; the runner writes it. No stage reaches into
another stage's objects: the taxonomy, the index and the reports travel
between stages only as artifacts.

    1 taxonomy ─► 2 indexer ─► 3 matrix ─► 4 distribution ─► 5 grading ─► 6 alignment
         └───────────────┴───────────┴──────────────┴──────────────┴────────────┴──► 7 audit
"""

from __future__ import annotations

from typing import Any

from trustdebt.core.errors import MalformedArtifactError
from trustdebt.engine.alignment import analyze_alignment
from trustdebt.engine.audit import EXPECTED_STAGES, AuditInputs, run_audit
from trustdebt.engine.distribution import DistributionReport, analyze_distribution
from trustdebt.engine.grading import GradingReport, grade_categories
from trustdebt.engine.indexer import KeywordIndex, KeywordIndexer
from trustdebt.engine.matrix import build_matrix
from trustdebt.engine.models import CategoryEvidence
from trustdebt.engine.taxonomy import OrderState, Taxonomy, TaxonomyBuilder
from trustdebt.framework.logging import get_logger
from trustdebt.framework.registry import register_stage
from trustdebt.framework.stages import Stage

log = get_logger(__name__)

UNITS_FROM_INDEXER = "indexer"
UNITS_FROM_TAXONOMY = "taxonomy"


class _TaxonomyConsumer(Stage):
    def taxonomy(self) -> Taxonomy:
        return Taxonomy.from_dicts(self.require("taxonomy")["categories"])


@register_stage("taxonomy", 1)
class TaxonomyStage(Stage):
    description = "Rank the configured categories in ShortLex order"

    def run(self) -> dict[str, Any]:
        config = self.context.config
        builder = TaxonomyBuilder(config.raw_categories())
        taxonomy = builder.build()
        if self.context.store is not None:
            self.context.store.write_categories(taxonomy)
        return {
            "name": config.name,
            "configDigest": config.digest(),
            "categories": taxonomy.to_dicts(),
            "statistics": {
                "categories": len(taxonomy),
                "roots": len(taxonomy.roots()),
                "reordered": OrderState.REORDERED in builder.history,
            },
        }


@register_stage("indexer", 2)
class IndexerStage(_TaxonomyConsumer):
    description = "Count keyword occurrences in the Intent and Reality corpora"

    def run(self) -> dict[str, Any]:
        indexer = KeywordIndexer(self.context.config.keyword_dictionary(), self.taxonomy())
        index = indexer.index(self.context.intent, self.context.reality)
        if self.context.store is not None:
            self.context.store.write_mappings(index.mappings)
        return index.to_dict()


@register_stage("matrix", 3)
class MatrixStage(_TaxonomyConsumer):
    description = "Build the asymmetric N x N evidence matrix"

    def run(self) -> dict[str, Any]:
        taxonomy = self.taxonomy()
        loaded = self.context.artifacts.load("indexer")
        if loaded.is_ok():
            unit_totals = KeywordIndex.from_dict(loaded.unwrap()).unit_totals
            source = UNITS_FROM_INDEXER
        else:
            log.warning("matrix.units_fallback", reason=str(loaded.error), source=UNITS_FROM_TAXONOMY)
            unit_totals = {c.code: c.units for c in taxonomy}
            source = UNITS_FROM_TAXONOMY

        matrix = build_matrix(taxonomy, unit_totals, self.context.settings.matrix)
        if self.context.store is not None:
            self.context.store.write_cells(matrix.cells)
        payload = matrix.to_dict()
        payload["unitSource"] = source
        return payload


@register_stage("distribution", 4)
class DistributionStage(Stage):
    description = "Entropy, Gini and dominant/weak categories over Reality strength"

    def run(self) -> dict[str, Any]:
        evidence = [CategoryEvidence.from_dict(e) for e in self.require("indexer")["evidence"]]
        return analyze_distribution(evidence, self.context.settings.distribution).to_dict()


@register_stage("grading", 5)
class GradingStage(_TaxonomyConsumer):
    description = "Score and letter-grade every category; compute sovereignty"

    def run(self) -> dict[str, Any]:
        taxonomy = self.taxonomy()
        distribution = DistributionReport.from_dict(self.require("distribution"))
        return grade_categories(taxonomy, distribution, self.context.settings.grading).to_dict()


@register_stage("alignment", 6)
class AlignmentStage(_TaxonomyConsumer):
    description = "Compare Intent emphasis with graded Reality"

    def run(self) -> dict[str, Any]:
        taxonomy = self.taxonomy()
        grading = GradingReport.from_dict(self.require("grading"))
        report = analyze_alignment(
            taxonomy,
            grading,
            self.context.config.intent_dictionary(),
            self.context.intent,
            self.context.settings.alignment,
        )
        return report.to_dict()


@register_stage("audit", 7)
class AuditStage(Stage):
    description = "Cross-check every upstream artifact"

    def run(self) -> dict[str, Any]:
        payloads: dict[str, Any] = {}
        missing: dict[str, str] = {}
        for stage in EXPECTED_STAGES:
            loaded = self.context.artifacts.load(stage)
            if loaded.is_ok():
                payloads[stage] = loaded.unwrap()
            else:
                payloads[stage] = None
                missing[stage] = "malformed" if isinstance(loaded.error, MalformedArtifactError) else "missing"
        return run_audit(AuditInputs(missing=missing, **payloads)).to_dict()

"""
Keyword indexer.

Counts case-insensitive whole-word occurrences of every dictionary keyword,
independently in the Intent and the Reality corpus, and emits one
``KeywordMapping`` per (keyword, category) pair. A keyword mapped to several
categories yields several rows sharing the same counts.

Alongside the mappings it derives what the later stages need:

- per-category unit totals (sum of ``totalCount`` over the category's rows),
  consumed by the matrix builder
- per-category strength evidence from the Reality corpus, consumed by the
  distribution analyzer and the grading engine::

      density  = matches / max(1, words / 100)
      strength = min(1, log2(1 + density) / 3)

Keywords are always visited in sorted order and documents in ``doc_id`` order,
so the output is a pure function of corpora and dictionary.

Tags:
    indexer, keywords, evidence, trustdebt-core
"""

from __future__ import annotations

import math
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from trustdebt.core.errors import OrphanReferenceError
from trustdebt.engine.config import KeywordDictionary
from trustdebt.engine.corpus import Corpus, Document
from trustdebt.engine.models import CategoryEvidence, KeywordMapping
from trustdebt.engine.taxonomy import Taxonomy
from trustdebt.framework.logging import get_logger, log_step

log = get_logger(__name__)

TOP_KEYWORDS = 10


def compile_keyword_pattern(keyword: str) -> re.Pattern[str]:
    """Whole-word, case-insensitive pattern; inner whitespace matches any run of whitespace."""
    body = r"\s+".join(re.escape(part) for part in keyword.split())
    return re.compile(rf"(?<!\w){body}(?!\w)", re.IGNORECASE)


def document_strength(matches: int, word_count: int) -> float:
    """Saturating strength of ``matches`` in a document of ``word_count`` words."""
    if matches <= 0:
        return 0.0
    density = matches / max(1.0, word_count / 100)
    return min(1.0, math.log2(1 + density) / 3)


@dataclass(frozen=True)
class KeywordIndex:
    """Indexer output: mappings plus the derived per-category aggregates."""

    mappings: tuple[KeywordMapping, ...]
    evidence: tuple[CategoryEvidence, ...]
    unit_totals: Mapping[str, float]
    statistics: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "unit_totals", MappingProxyType(dict(self.unit_totals)))
        object.__setattr__(self, "statistics", MappingProxyType(dict(self.statistics)))

    def to_dict(self) -> dict[str, Any]:
        return {
            "mappings": [m.to_dict() for m in self.mappings],
            "evidence": [e.to_dict() for e in self.evidence],
            "unitTotals": dict(self.unit_totals),
            "statistics": dict(self.statistics),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> KeywordIndex:
        return cls(
            mappings=tuple(KeywordMapping.from_dict(m) for m in data["mappings"]),
            evidence=tuple(CategoryEvidence.from_dict(e) for e in data["evidence"]),
            unit_totals={str(k): float(v) for k, v in data["unitTotals"].items()},
            statistics=data.get("statistics", {}),
        )


class KeywordIndexer:
    """Indexes corpora against a keyword dictionary for one taxonomy."""

    def __init__(self, dictionary: KeywordDictionary, taxonomy: Taxonomy) -> None:
        orphans = sorted({code for kw in dictionary for code in dictionary[kw] if code not in taxonomy})
        if orphans:
            raise OrphanReferenceError(
                f"Dictionary references categories missing from the taxonomy: {', '.join(orphans)}",
                orphans=orphans,
            )
        self.dictionary = dictionary
        self.taxonomy = taxonomy
        self._patterns = {kw: compile_keyword_pattern(kw) for kw in dictionary}

    def _count_document(self, document: Document) -> dict[str, int]:
        return {kw: len(pattern.findall(document.text)) for kw, pattern in self._patterns.items()}

    def _count_corpus(self, corpus: Corpus) -> tuple[dict[str, int], list[tuple[Document, dict[str, int]]]]:
        totals = dict.fromkeys(self._patterns, 0)
        per_document = []
        for document in corpus.documents:
            counts = self._count_document(document)
            per_document.append((document, counts))
            for kw, n in counts.items():
                totals[kw] += n
        return totals, per_document

    def _evidence(self, per_document: list[tuple[Document, dict[str, int]]]) -> tuple[CategoryEvidence, ...]:
        strength = dict.fromkeys(self.taxonomy.codes, 0.0)
        documents = dict.fromkeys(self.taxonomy.codes, 0)

        for document, counts in per_document:
            words = document.word_count
            for code in self.taxonomy.codes:
                matches = sum(counts[kw] for kw in self.dictionary.keywords_for(code))
                if matches > 0:
                    strength[code] += document_strength(matches, words)
                    documents[code] += 1

        grand_total = sum(strength.values())
        return tuple(
            CategoryEvidence(
                category_code=code,
                total_strength=round(strength[code], 6),
                document_count=documents[code],
                avg_strength=round(strength[code] / documents[code], 6) if documents[code] else 0.0,
                percent_of_corpus=round(strength[code] / grand_total * 100, 4) if grand_total > 0 else 0.0,
            )
            for code in self.taxonomy.codes
        )

    def index(self, intent: Corpus, reality: Corpus) -> KeywordIndex:
        with log_step(
            "indexer.scan",
            keywords=len(self.dictionary),
            intent_documents=len(intent),
            reality_documents=len(reality),
        ) as timer:
            intent_totals, _ = self._count_corpus(intent)
            reality_totals, reality_documents = self._count_corpus(reality)

            mappings = tuple(
                KeywordMapping(
                    keyword=kw,
                    category_code=code,
                    intent_count=intent_totals[kw],
                    reality_count=reality_totals[kw],
                )
                for kw in self.dictionary
                for code in self.dictionary[kw]
            )

            unit_totals = dict.fromkeys(self.taxonomy.codes, 0.0)
            for mapping in mappings:
                unit_totals[mapping.category_code] += mapping.total_count

            evidence = self._evidence(reality_documents)
            statistics = self._statistics(intent, reality, intent_totals, reality_totals, mappings, unit_totals)
            timer.add_metric("mappings", len(mappings))

        if intent.is_empty or reality.is_empty:
            log.warning(
                "indexer.empty_corpus",
                intent_documents=len(intent),
                reality_documents=len(reality),
            )

        return KeywordIndex(mappings=mappings, evidence=evidence, unit_totals=unit_totals, statistics=statistics)

    def _statistics(
        self,
        intent: Corpus,
        reality: Corpus,
        intent_totals: dict[str, int],
        reality_totals: dict[str, int],
        mappings: tuple[KeywordMapping, ...],
        unit_totals: dict[str, float],
    ) -> dict[str, Any]:
        intent_occurrences = sum(intent_totals.values())
        reality_occurrences = sum(reality_totals.values())
        covered = sum(1 for total in unit_totals.values() if total > 0)

        ranked = sorted(
            (kw for kw in self.dictionary if intent_totals[kw] + reality_totals[kw] > 0),
            key=lambda kw: (-(intent_totals[kw] + reality_totals[kw]), kw),
        )
        top_keywords = [
            {
                "keyword": kw,
                "count": intent_totals[kw] + reality_totals[kw],
                "categories": list(self.dictionary[kw]),
            }
            for kw in ranked[:TOP_KEYWORDS]
        ]

        return {
            "intentDocuments": len(intent),
            "realityDocuments": len(reality),
            "keywords": len(self.dictionary),
            "mappings": len(mappings),
            "intentOccurrences": intent_occurrences,
            "realityOccurrences": reality_occurrences,
            "realityIntentRatio": round(reality_occurrences / intent_occurrences, 4) if intent_occurrences else 0.0,
            "categoryCoverage": round(covered / len(self.taxonomy) * 100, 2) if len(self.taxonomy) else 0.0,
            "topKeywords": top_keywords,
        }


def count_keywords(dictionary: KeywordDictionary, corpus: Corpus) -> dict[str, int]:
    """Total whole-word occurrences of each dictionary keyword in ``corpus``."""
    patterns = {kw: compile_keyword_pattern(kw) for kw in dictionary}
    return {kw: sum(len(p.findall(text)) for text in corpus.texts()) for kw, p in patterns.items()}

"""Versioned taxonomy and keyword configuration.

The YAML document carries the raw category list, the keyword dictionary used
by the indexer, and the smaller intent keyword set used by alignment::

    version: 1
    name: default
    categories:
      - code: A
        name: Core Engine
      - code: A.1
        name: Algorithm
    keywords:
      algorithm: [A.1]
    intent_keywords:
      A.1: [algorithm]

Shape problems are rejected by pydantic; references to category codes that do
not exist are rejected right after, at load time, as ``OrphanReferenceError``.
Nothing downstream ever sees a dictionary entry it cannot resolve.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from importlib import resources
from pathlib import Path
from types import MappingProxyType
from typing import Any, Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from trustdebt.core.errors import ConfigError, OrphanReferenceError
from trustdebt.core.hashing import digest_payload
from trustdebt.engine.models import Category
from trustdebt.engine.taxonomy import check_hierarchy, shortlex_key
from trustdebt.framework.logging import get_logger

log = get_logger(__name__)

CODE_PATTERN = r"^[A-Za-z0-9_]+(\.[A-Za-z0-9_]+)*$"


def normalize_keyword(keyword: str) -> str:
    """Lowercase and collapse internal whitespace."""
    return " ".join(keyword.split()).lower()


class CategorySpec(BaseModel):
    """One raw category entry."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    code: str = Field(..., pattern=CODE_PATTERN, description="Dotted hierarchical code")
    name: str = Field(..., min_length=1)
    parent: str | None = Field(default=None, description="Parent code; inferred from the code when omitted")
    units: float = Field(default=0.0, ge=0, description="Assigned weight")

    def resolved_parent(self) -> str | None:
        if self.parent is not None:
            return self.parent
        return self.code.rsplit(".", 1)[0] if "." in self.code else None

    def to_category(self) -> Category:
        return Category(code=self.code, name=self.name, parent_code=self.resolved_parent(), units=self.units)


class TaxonomyConfig(BaseModel):
    """Root model of a taxonomy/keyword configuration document."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    version: Literal[1] = Field(default=1, description="Configuration schema version")
    name: str = Field(default="default", min_length=1)
    categories: list[CategorySpec] = Field(..., min_length=1)
    keywords: dict[str, list[str]] = Field(default_factory=dict, description="keyword -> category codes")
    intent_keywords: dict[str, list[str]] = Field(default_factory=dict, description="category code -> keywords")

    @field_validator("keywords")
    @classmethod
    def validate_keywords(cls, v: dict[str, list[str]]) -> dict[str, list[str]]:
        for keyword, codes in v.items():
            if not normalize_keyword(keyword):
                raise ValueError("Empty keyword in dictionary")
            if not codes:
                raise ValueError(f"Keyword '{keyword}' maps to no categories")
        return v

    @field_validator("intent_keywords")
    @classmethod
    def validate_intent_keywords(cls, v: dict[str, list[str]]) -> dict[str, list[str]]:
        for code, keywords in v.items():
            if any(not normalize_keyword(k) for k in keywords):
                raise ValueError(f"Empty intent keyword for category '{code}'")
        return v

    def raw_categories(self) -> list[Category]:
        """Categories in document order, unranked."""
        return [spec.to_category() for spec in self.categories]

    def check_references(self) -> None:
        """Reject hierarchy problems and orphaned category references."""
        check_hierarchy(self.raw_categories())

        known = {spec.code for spec in self.categories}
        orphans = {code for codes in self.keywords.values() for code in codes if code not in known}
        if orphans:
            raise OrphanReferenceError(
                f"Keyword dictionary references unknown categories: {', '.join(sorted(orphans))}",
                orphans=list(orphans),
            )

        intent_orphans = set(self.intent_keywords) - known
        if intent_orphans:
            raise OrphanReferenceError(
                f"Intent keywords reference unknown categories: {', '.join(sorted(intent_orphans))}",
                orphans=list(intent_orphans),
            )

    def keyword_dictionary(self) -> KeywordDictionary:
        return KeywordDictionary(self.keywords)

    def intent_dictionary(self) -> KeywordDictionary:
        inverted: dict[str, list[str]] = {}
        for code, keywords in self.intent_keywords.items():
            for keyword in keywords:
                inverted.setdefault(keyword, []).append(code)
        return KeywordDictionary(inverted)

    def digest(self) -> str:
        return digest_payload(self.model_dump(mode="json"))


class KeywordDictionary(Mapping[str, tuple[str, ...]]):
    """
    Immutable keyword -> category codes mapping.

    Keywords are normalized; codes for one keyword are deduplicated and kept
    in ShortLex order. Iteration is always over sorted keywords.
    """

    __slots__ = ("_entries", "_by_category")

    def __init__(self, entries: Mapping[str, Iterable[str]]) -> None:
        merged: dict[str, set[str]] = {}
        for keyword, codes in entries.items():
            merged.setdefault(normalize_keyword(keyword), set()).update(codes)
        ordered = {kw: tuple(sorted(merged[kw], key=shortlex_key)) for kw in sorted(merged)}
        by_category: dict[str, list[str]] = {}
        for keyword, codes in ordered.items():
            for code in codes:
                by_category.setdefault(code, []).append(keyword)
        self._entries = MappingProxyType(ordered)
        self._by_category = MappingProxyType({code: tuple(kws) for code, kws in by_category.items()})

    def __getitem__(self, keyword: str) -> tuple[str, ...]:
        return self._entries[normalize_keyword(keyword)]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def categories_for(self, keyword: str) -> tuple[str, ...]:
        return self._entries.get(normalize_keyword(keyword), ())

    def keywords_for(self, code: str) -> tuple[str, ...]:
        """Sorted keywords mapped to ``code``."""
        return self._by_category.get(code, ())

    def covers(self, code: str) -> bool:
        return code in self._by_category

    def to_dict(self) -> dict[str, list[str]]:
        return {kw: list(codes) for kw, codes in self._entries.items()}

    def __repr__(self) -> str:
        return f"KeywordDictionary({len(self)} keywords)"


# =============================================================================
# LOADING
# =============================================================================


def parse_config(data: Any, source: str = "<memory>") -> TaxonomyConfig:
    """Validate a decoded configuration document."""
    if not isinstance(data, Mapping):
        raise ConfigError(f"Configuration {source} must be a mapping, got {type(data).__name__}")
    try:
        config = TaxonomyConfig.model_validate(dict(data))
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration {source}: {e.error_count()} error(s)", cause=e).with_context(
            artifact=source
        ) from e
    config.check_references()
    log.debug(
        "config.loaded",
        source=source,
        categories=len(config.categories),
        keywords=len(config.keywords),
        intent_categories=len(config.intent_keywords),
    )
    return config


def load_config(path: str | Path | None = None) -> TaxonomyConfig:
    """Load a YAML configuration, or the packaged default when ``path`` is None."""
    if path is None:
        source = "default.yaml"
        text = resources.files("trustdebt.config").joinpath("default.yaml").read_text(encoding="utf-8")
    else:
        source = str(path)
        try:
            text = Path(path).read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigError(f"Cannot read configuration {source}", cause=e) from e

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigError(f"Configuration {source} is not valid YAML", cause=e) from e

    return parse_config(data, source=source)

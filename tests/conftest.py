"""
Shared pytest fixtures and configuration for trustdebt tests.

This module provides:
- Logging configured once per session (stderr, WARNING)
- Stage registry snapshot and restore for registry tests
- A small five-category configuration listed out of ShortLex order
- Intent/Reality corpora in memory and on disk
"""

import sys
from pathlib import Path
from typing import Any, Generator

import pytest

# Ensure trustdebt package is importable
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from trustdebt.engine.config import TaxonomyConfig, parse_config
from trustdebt.engine.corpus import Corpus, Provenance
from trustdebt.engine.taxonomy import Taxonomy, build_taxonomy
from trustdebt.framework.logging import configure_logging
from trustdebt.framework.registry import clear_registry, list_stages, register_stage


@pytest.fixture(scope="session", autouse=True)
def _logging() -> None:
    configure_logging(level="WARNING", format="console", force=True)


# =============================================================================
# Registry Cleanup Fixtures
# =============================================================================


@pytest.fixture
def isolated_stage_registry() -> Generator[None, None, None]:
    """
    Snapshot the stage registry and restore it after the test.

    Stages registered inside the test are dropped; the built-in stages stay.
    """
    snapshot = list_stages()
    yield
    clear_registry()
    for cls in snapshot:
        register_stage(cls.name, cls.index)(cls)


# =============================================================================
# Configuration Fixtures
# =============================================================================


SMALL_CONFIG: dict[str, Any] = {
    "version": 1,
    "name": "small",
    # Hierarchical listing: the builder must reorder to A, B, A.1, A.2, B.1
    "categories": [
        {"code": "A", "name": "Core", "units": 2},
        {"code": "A.1", "name": "Parsing"},
        {"code": "A.2", "name": "Lexing"},
        {"code": "B", "name": "Security", "units": 1},
        {"code": "B.1", "name": "Encryption"},
    ],
    "keywords": {
        "engine": ["A"],
        "parser": ["A.1"],
        "token": ["A.1", "A.2"],
        "lexer": ["A.2"],
        "security": ["B"],
        "encryption": ["B.1"],
        "threat model": ["B"],
    },
    "intent_keywords": {
        "A.1": ["parser"],
        "B.1": ["encryption"],
    },
}

INTENT_TEXTS = {
    "README.md": "The parser is the heart of this engine. The parser must be fast.\n",
    "docs/security.md": "Encryption everywhere. We keep a threat model for every release.\n",
}

REALITY_TEXTS = {
    "src/parser.py": "def parser(token):\n    # parser walks each token\n    return token\n",
    "src/lexer.py": "class Lexer:\n    '''lexer emits token objects'''\n",
    "src/engine.py": "engine = build_engine()  # engine entry\n",
}


@pytest.fixture
def small_config_data() -> dict[str, Any]:
    """A fresh copy of the five-category configuration document."""
    import copy

    return copy.deepcopy(SMALL_CONFIG)


@pytest.fixture
def small_config(small_config_data: dict[str, Any]) -> TaxonomyConfig:
    return parse_config(small_config_data, source="small")


@pytest.fixture
def small_taxonomy(small_config: TaxonomyConfig) -> Taxonomy:
    return build_taxonomy(small_config.raw_categories())


@pytest.fixture
def intent_corpus() -> Corpus:
    return Corpus.from_texts(Provenance.INTENT, INTENT_TEXTS)


@pytest.fixture
def reality_corpus() -> Corpus:
    return Corpus.from_texts(Provenance.REALITY, REALITY_TEXTS)


def _write_tree(root: Path, texts: dict[str, str]) -> Path:
    for rel, text in texts.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
    return root


@pytest.fixture
def corpus_dirs(tmp_path: Path) -> tuple[Path, Path]:
    """(intent_dir, reality_dir) on disk with the sample documents."""
    return (
        _write_tree(tmp_path / "intent", INTENT_TEXTS),
        _write_tree(tmp_path / "reality", REALITY_TEXTS),
    )


@pytest.fixture
def small_config_file(tmp_path: Path) -> Path:
    import yaml

    path = tmp_path / "small.yaml"
    path.write_text(yaml.safe_dump(SMALL_CONFIG, sort_keys=False), encoding="utf-8")
    return path

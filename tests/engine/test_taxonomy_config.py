"""Tests for trustdebt.engine.config — YAML loading and the keyword dictionary."""

from __future__ import annotations

import pytest

from trustdebt.core.errors import ConfigError, OrphanReferenceError
from trustdebt.engine.config import KeywordDictionary, load_config, normalize_keyword, parse_config
from trustdebt.engine.taxonomy import build_taxonomy


class TestDefaultConfig:
    def test_packaged_default_loads(self):
        config = load_config()
        assert config.name == "default"
        assert len(config.categories) == 45

    def test_default_ranks_roots_first(self):
        taxonomy = build_taxonomy(load_config().raw_categories())
        assert taxonomy.codes[:5] == ("A", "B", "C", "D", "E")
        assert taxonomy.codes[5] == "A.1"
        assert taxonomy.get("E.8").position == 45

    def test_default_root_percentages(self):
        taxonomy = build_taxonomy(load_config().raw_categories())
        assert [c.percentage for c in taxonomy.roots()] == pytest.approx([20.0] * 5)


class TestParseConfig:
    def test_parent_inferred_from_code(self, small_config):
        parents = {c.code: c.parent_code for c in small_config.raw_categories()}
        assert parents == {"A": None, "A.1": "A", "A.2": "A", "B": None, "B.1": "B"}

    def test_orphan_keyword_rejected_at_load(self, small_config_data):
        small_config_data["keywords"]["ghost"] = ["Z.9"]
        with pytest.raises(OrphanReferenceError) as exc:
            parse_config(small_config_data)
        assert exc.value.orphans == ["Z.9"]

    def test_orphan_intent_category_rejected(self, small_config_data):
        small_config_data["intent_keywords"]["C"] = ["performance"]
        with pytest.raises(OrphanReferenceError, match="Intent keywords"):
            parse_config(small_config_data)

    def test_duplicate_codes_rejected(self, small_config_data):
        small_config_data["categories"].append({"code": "A", "name": "Again"})
        with pytest.raises(ConfigError, match="Duplicate"):
            parse_config(small_config_data)

    @pytest.mark.parametrize(
        "patch",
        [
            {"version": 2},
            {"categories": []},
            {"unexpected": True},
            {"keywords": {"engine": []}},
            {"categories": [{"code": "a b", "name": "Bad"}]},
        ],
    )
    def test_invalid_shape(self, small_config_data, patch):
        small_config_data.update(patch)
        with pytest.raises(ConfigError):
            parse_config(small_config_data)

    def test_non_mapping(self):
        with pytest.raises(ConfigError, match="must be a mapping"):
            parse_config(["A"])

    def test_digest_stable(self, small_config_data):
        assert parse_config(small_config_data).digest() == parse_config(small_config_data).digest()


class TestLoadConfig:
    def test_from_file(self, small_config_file):
        assert load_config(small_config_file).name == "small"

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="Cannot read"):
            load_config(tmp_path / "nope.yaml")

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("categories: [\n", encoding="utf-8")
        with pytest.raises(ConfigError, match="not valid YAML"):
            load_config(path)


class TestKeywordDictionary:
    def test_normalize(self):
        assert normalize_keyword("  Threat   Model ") == "threat model"

    def test_merge_and_order(self):
        d = KeywordDictionary({"Token": ["A.1"], "token": ["A", "A.1"], "alpha": ["B"]})
        assert list(d) == ["alpha", "token"]
        assert d["TOKEN"] == ("A", "A.1")

    def test_reverse_lookup(self, small_config):
        d = small_config.keyword_dictionary()
        assert d.keywords_for("B") == ("security", "threat model")
        assert d.covers("A.2")
        assert d.categories_for("missing") == ()

    def test_intent_dictionary_is_inverted(self, small_config):
        d = small_config.intent_dictionary()
        assert dict(d.to_dict()) == {"encryption": ["B.1"], "parser": ["A.1"]}

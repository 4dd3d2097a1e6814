"""Tests for trustdebt.framework.artifacts — stage-indexed JSON documents."""

from __future__ import annotations

from trustdebt.core.errors import MalformedArtifactError, MissingInputError
from trustdebt.framework.artifacts import ArtifactStore, encode_artifact


class TestLayout:
    def test_path_for(self, tmp_path):
        store = ArtifactStore(tmp_path)
        assert store.path_for(3, "matrix") == tmp_path / "3-matrix" / "3-matrix.json"

    def test_encoding_is_canonical(self):
        text = encode_artifact({"b": 1, "a": [1, 2]})
        assert text == '{\n  "a": [\n    1,\n    2\n  ],\n  "b": 1\n}\n'

    def test_write_then_load(self, tmp_path):
        store = ArtifactStore(tmp_path)
        path = store.write(5, "grading", {"z": 1, "a": "ü"})
        assert path.read_bytes().endswith(b"\n")
        assert "ü" in path.read_text(encoding="utf-8")
        assert store.load("grading").unwrap() == {"z": 1, "a": "ü"}

    def test_find_ignores_index(self, tmp_path):
        store = ArtifactStore(tmp_path)
        store.write(9, "audit", {})
        assert store.find("audit") == tmp_path / "9-audit" / "9-audit.json"
        assert store.exists("audit")

    def test_stages_in_index_order(self, tmp_path):
        store = ArtifactStore(tmp_path)
        store.write(2, "indexer", {})
        store.write(1, "taxonomy", {})
        assert store.stages() == ["taxonomy", "indexer"]


class TestLoadFailures:
    def test_missing(self, tmp_path):
        result = ArtifactStore(tmp_path).load("grading")
        assert result.is_err()
        assert type(result.error) is MissingInputError
        assert result.error.context.artifact == "grading"

    def test_missing_run_dir(self, tmp_path):
        assert ArtifactStore(tmp_path / "nope").load("taxonomy").is_err()

    def test_malformed_json(self, tmp_path):
        store = ArtifactStore(tmp_path)
        path = store.path_for(4, "distribution")
        path.parent.mkdir(parents=True)
        path.write_text("{not json", encoding="utf-8")
        result = store.load("distribution")
        assert isinstance(result.error, MalformedArtifactError)
        assert isinstance(result.error, MissingInputError)

    def test_non_object_is_malformed(self, tmp_path):
        store = ArtifactStore(tmp_path)
        path = store.path_for(1, "taxonomy")
        path.parent.mkdir(parents=True)
        path.write_text("[1, 2]\n", encoding="utf-8")
        assert isinstance(store.load("taxonomy").error, MalformedArtifactError)

    def test_discard(self, tmp_path):
        store = ArtifactStore(tmp_path)
        store.write(6, "alignment", {})
        assert store.discard(6, "alignment")
        assert not store.discard(6, "alignment")
        assert store.load("alignment").is_err()

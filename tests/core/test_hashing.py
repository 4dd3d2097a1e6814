"""Tests for trustdebt.core.hashing."""

from trustdebt.core.hashing import canonical_json, compute_hash, digest_payload


class TestComputeHash:
    def test_order_matters(self):
        assert compute_hash("a", "b") != compute_hash("b", "a")

    def test_length(self):
        assert len(compute_hash("x")) == 32
        assert len(compute_hash("x", length=64)) == 64


class TestDigestPayload:
    def test_key_order_irrelevant(self):
        assert digest_payload({"a": 1, "b": [1, 2]}) == digest_payload({"b": [1, 2], "a": 1})

    def test_list_order_relevant(self):
        assert digest_payload([1, 2]) != digest_payload([2, 1])

    def test_canonical_form(self):
        assert canonical_json({"b": "ü", "a": 1.5}) == '{"a":1.5,"b":"ü"}'

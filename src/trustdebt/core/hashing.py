"""
Deterministic hashing for run fingerprints and artifact digests.

Two runs over byte-identical corpora and configuration must produce the same
fingerprint and byte-identical artifacts. These helpers give both a stable,
order-dependent SHA-256 identity.

Examples:
    >>> compute_hash("a", "b") != compute_hash("b", "a")
    True
    >>> len(compute_hash("test", length=12))
    12
    >>> canonical_json({"b": 1, "a": 2})
    '{"a":2,"b":1}'

Tags:
    hashing, determinism, fingerprint, trustdebt-core
"""

import hashlib
import json
from typing import Any


def compute_hash(*values: Any, length: int = 32) -> str:
    """
    Compute a deterministic hash from values.

    Values are stringified, joined with ``|`` and hashed with SHA-256.

    Args:
        *values: Values to hash (order matters)
        length: Number of hex characters to return (max 64)
    """
    content = "|".join(str(v) for v in values)
    return hashlib.sha256(content.encode("utf-8")).hexdigest()[:length]


def canonical_json(payload: Any) -> str:
    """Serialize with sorted keys and no whitespace, for hashing."""
    return json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def digest_payload(payload: Any, length: int = 64) -> str:
    """SHA-256 of the canonical JSON form of ``payload``."""
    return hashlib.sha256(canonical_json(payload).encode("utf-8")).hexdigest()[:length]

"""trustdebt core -- errors, results, settings, hashing and the indexed store.

Architecture::

    errors.py      Structured error hierarchy (TrustDebtError, ErrorCategory)
    result.py      Result[T] envelope (Ok / Err / try_result)
    settings.py    TrustDebtSettings and the computation thresholds
    hashing.py     Deterministic digests for fingerprints
    schema.py      DDL for the indexed store
    store.py       IndexStore, the per-run sqlite lookup tables

Modules are imported directly (``from trustdebt.core.errors import ...``);
this package re-exports nothing so that importing one primitive never pulls
in the store or the engine models.
"""

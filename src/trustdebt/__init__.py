"""
trustdebt - Category-matrix computation of Trust Debt.

Measures drift between what a repository's documentation says (Intent) and
what its code and history show (Reality):

- trustdebt.core: errors, results, settings, hashing and the indexed store
- trustdebt.framework: logging, stage registry, artifacts and the runner
- trustdebt.engine: taxonomy, indexer, matrix, distribution, grading,
  alignment and audit computations
- trustdebt.pipeline: the seven registered stages
- trustdebt.cli: the ``trustdebt`` command
"""

__version__ = "0.1.0"

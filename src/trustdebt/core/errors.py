"""
Structured error types for the Trust Debt engine.

Every failure the engine can report is a ``TrustDebtError`` carrying a
category, structured context, and an optional chained cause. Stage code raises
these; the pipeline runner turns them into failed stage results so one broken
stage never takes down the whole run.

Manifesto:
    - **Typed hierarchy:** Missing input, malformed artifacts, structural
      violations and configuration problems are distinct types
    - **Rich context:** Errors name the run, stage, artifact or category involved
    - **Error chaining:** The original exception is preserved as ``cause``
    - **Fatal is rare:** Only an unsortable taxonomy is unrecoverable

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────┐
        │                      TrustDebtError                          │
        │               (category, context, cause)                     │
        ├─────────────────────────────────────────────────────────────┤
        │                                                              │
        │  ConfigError            MissingInputError     StorageError   │
        │  (CONFIG)               (MISSING_INPUT)       (STORAGE)      │
        │      │                       │                               │
        │  OrphanReferenceError   MalformedArtifactError               │
        │                         (MALFORMED_ARTIFACT)                 │
        │                                                              │
        │  StructuralViolationError          StageNotFoundError        │
        │  (STRUCTURAL)                      (PIPELINE)                │
        │      │                                                       │
        │  TaxonomyOrderError                                          │
        └─────────────────────────────────────────────────────────────┘

Examples:
    >>> err = MissingInputError("grading artifact not found")
    >>> err.with_context(stage="alignment", artifact="5-grading")
    MissingInputError('grading artifact not found', category=MISSING_INPUT)
    >>> err.to_dict()["context"]["stage"]
    'alignment'

Tags:
    exception, error-hierarchy, error-context, trustdebt-core

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories for classification and reporting."""

    CONFIG = "CONFIG"
    VALIDATION = "VALIDATION"
    MISSING_INPUT = "MISSING_INPUT"
    MALFORMED_ARTIFACT = "MALFORMED_ARTIFACT"
    STRUCTURAL = "STRUCTURAL"
    OUT_OF_RANGE = "OUT_OF_RANGE"
    STORAGE = "STORAGE"
    PIPELINE = "PIPELINE"
    INTERNAL = "INTERNAL"


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error.

    Only fields that are set end up in ``to_dict()``, so log lines stay short.

    Attributes:
        run_id: Pipeline run identifier
        stage: Stage name where the error occurred
        artifact: Artifact location or stage key involved
        category_code: Taxonomy code involved, if any
        metadata: Additional key-value pairs
    """

    run_id: str | None = None
    stage: str | None = None
    artifact: str | None = None
    category_code: str | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["run_id", "stage", "artifact", "category_code"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class TrustDebtError(Exception):
    """
    Base exception for all Trust Debt engine errors.

    Subclasses set ``default_category``; callers can override it per instance.
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> TrustDebtError:
        """
        Add context to this error (fluent API).

        Usage:
            raise MissingInputError("no grading artifact").with_context(
                stage="alignment", artifact="5-grading"
            )
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result: dict[str, Any] = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================


class ConfigError(TrustDebtError):
    """Invalid taxonomy, keyword dictionary, or settings."""

    default_category = ErrorCategory.CONFIG


class OrphanReferenceError(ConfigError):
    """
    Configuration references a category code that does not exist.

    Raised at load time, never at use time, so a broken dictionary cannot
    reach the indexer.
    """

    def __init__(self, message: str, *, orphans: list[str] | None = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.orphans = sorted(orphans or [])
        if self.orphans:
            self.context.metadata["orphans"] = self.orphans


# =============================================================================
# INPUT ERRORS
# =============================================================================


class MissingInputError(TrustDebtError):
    """An expected upstream artifact or input is absent."""

    default_category = ErrorCategory.MISSING_INPUT


class MalformedArtifactError(MissingInputError):
    """An artifact exists but cannot be parsed; handled exactly like a missing one."""

    default_category = ErrorCategory.MALFORMED_ARTIFACT


# =============================================================================
# STRUCTURAL ERRORS
# =============================================================================


class StructuralViolationError(TrustDebtError):
    """A structural invariant is broken and no deterministic repair exists."""

    default_category = ErrorCategory.STRUCTURAL


class TaxonomyOrderError(StructuralViolationError):
    """
    Category ordering could not be established even after reordering.

    Unreachable while the ShortLex comparator is a total order; its presence
    guards the comparator itself.
    """


# =============================================================================
# INFRASTRUCTURE ERRORS
# =============================================================================


class StorageError(TrustDebtError):
    """The indexed store could not be read or written."""

    default_category = ErrorCategory.STORAGE


class StageNotFoundError(TrustDebtError):
    """A stage name or index is not registered."""

    default_category = ErrorCategory.PIPELINE

    def __init__(self, stage: str, available: list[str] | None = None):
        available_text = ", ".join(available or [])
        super().__init__(f"Stage '{stage}' not found. Available: {available_text}")
        self.stage = stage

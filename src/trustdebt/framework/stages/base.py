"""Base stage interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any

from trustdebt.core.errors import MissingInputError, TrustDebtError

if TYPE_CHECKING:
    from trustdebt.core.settings import TrustDebtSettings
    from trustdebt.core.store import IndexStore
    from trustdebt.engine.config import TaxonomyConfig
    from trustdebt.engine.corpus import Corpus
    from trustdebt.framework.artifacts import ArtifactStore


class StageStatus(str, Enum):
    """Stage outcome."""

    COMPLETED = "completed"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class StageResult:
    """Tagged outcome of one stage: an artifact path, a failure reason, or a skip."""

    name: str
    index: int
    status: StageStatus
    artifact_path: Path | None = None
    reason: str | None = None
    error: dict[str, Any] | None = None
    duration_seconds: float | None = None

    @classmethod
    def completed(cls, name: str, index: int, artifact_path: Path, duration_seconds: float | None = None) -> StageResult:
        return cls(name, index, StageStatus.COMPLETED, artifact_path=artifact_path, duration_seconds=duration_seconds)

    @classmethod
    def failed(cls, name: str, index: int, error: Exception, duration_seconds: float | None = None) -> StageResult:
        if isinstance(error, TrustDebtError):
            details = error.to_dict()
        else:
            details = {"error_type": type(error).__name__, "message": str(error)}
        return cls(
            name,
            index,
            StageStatus.FAILED,
            reason=str(error),
            error=details,
            duration_seconds=duration_seconds,
        )

    @classmethod
    def skipped(cls, name: str, index: int, reason: str) -> StageResult:
        return cls(name, index, StageStatus.SKIPPED, reason=reason)

    @property
    def ok(self) -> bool:
        return self.status is StageStatus.COMPLETED

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"name": self.name, "index": self.index, "status": self.status.value}
        if self.artifact_path is not None:
            data["artifactPath"] = self.artifact_path.as_posix()
        if self.reason is not None:
            data["reason"] = self.reason
        if self.error is not None:
            data["error"] = self.error
        if self.duration_seconds is not None:
            data["durationMs"] = round(self.duration_seconds * 1000, 2)
        return data


@dataclass
class StageContext:
    """Everything a stage may read. Stages talk to each other only through ``artifacts``."""

    run_id: str
    run_dir: Path
    settings: TrustDebtSettings
    config: TaxonomyConfig
    intent: Corpus
    reality: Corpus
    artifacts: ArtifactStore
    store: IndexStore | None = None
    extras: dict[str, Any] = field(default_factory=dict)


class Stage(ABC):
    """Base class for all pipeline stages."""

    # Set by @register_stage
    name: str = ""
    index: int = 0
    description: str = ""

    def __init__(self, context: StageContext) -> None:
        self.context = context

    @abstractmethod
    def run(self) -> dict[str, Any]:
        """Compute and return this stage's artifact payload."""
        ...

    def require(self, stage: str) -> dict[str, Any]:
        """
        Load a predecessor's artifact or raise ``MissingInputError``.

        Malformed artifacts raise ``MalformedArtifactError``, a subclass, so
        callers handle both the same way.
        """
        result = self.context.artifacts.load(stage)
        if result.is_err():
            error = result.error
            if isinstance(error, MissingInputError):
                raise error.with_context(stage=self.name, run_id=self.context.run_id)
            raise MissingInputError(f"Cannot load '{stage}' artifact: {error}", cause=error).with_context(
                stage=self.name, artifact=stage
            )
        return result.unwrap()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r}, index={self.index})"

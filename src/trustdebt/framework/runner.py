"""Sequential pipeline runner.

Manifesto:
    The runner executes stages with consistent lifecycle hooks
    (start → execute → write artifact → record result) so stage code never
    manages its own timing, error capture, or artifact layout.

    A failing stage never stops the run: its outcome is recorded as a
    ``failed`` StageResult and the next stage starts anyway. Downstream
    stages then see a missing artifact and either fall back to a default or
    fail in turn. The audit stage reports the damage.

Tags:
    trustdebt-core, framework, runner, synchronous, lifecycle

Doc-Types:
    api-reference
"""

from __future__ import annotations

import json
import time
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from trustdebt.core.hashing import digest_payload
from trustdebt.core.settings import TrustDebtSettings
from trustdebt.core.store import STORE_FILENAME, IndexStore
from trustdebt.engine.config import TaxonomyConfig
from trustdebt.engine.corpus import Corpus
from trustdebt.framework.artifacts import ArtifactStore, encode_artifact
from trustdebt.framework.logging import clear_context, get_logger, log_step, push_context, set_context
from trustdebt.framework.registry import list_stages
from trustdebt.framework.stages import Stage, StageContext, StageResult, StageStatus

log = get_logger(__name__)

RUN_REPORT_FILENAME = "run-report.json"


@dataclass(frozen=True)
class RunInputs:
    """Configuration and corpora for one run."""

    config: TaxonomyConfig
    intent: Corpus
    reality: Corpus


def fingerprint(inputs: RunInputs, settings: TrustDebtSettings) -> str:
    """SHA-256 over the configuration, the thresholds and both corpora."""
    return digest_payload(
        {
            "config": inputs.config.digest(),
            "thresholds": settings.thresholds(),
            "intent": inputs.intent.digest(),
            "reality": inputs.reality.digest(),
        }
    )


@dataclass
class RunReport:
    run_id: str
    fingerprint: str
    run_dir: Path
    results: list[StageResult] = field(default_factory=list)
    audit_overall: str | None = None

    def by_status(self, status: StageStatus) -> list[StageResult]:
        return [r for r in self.results if r.status is status]

    @property
    def completed(self) -> list[StageResult]:
        return self.by_status(StageStatus.COMPLETED)

    @property
    def failed(self) -> list[StageResult]:
        return self.by_status(StageStatus.FAILED)

    @property
    def skipped(self) -> list[StageResult]:
        return self.by_status(StageStatus.SKIPPED)

    def result_for(self, name: str) -> StageResult | None:
        for result in self.results:
            if result.name == name:
                return result
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "runId": self.run_id,
            "fingerprint": self.fingerprint,
            "auditOverall": self.audit_overall,
            "stages": [r.to_dict() for r in self.results],
            "summary": {s.value: len(self.by_status(s)) for s in StageStatus},
        }

    def write(self) -> Path:
        path = self.run_dir / RUN_REPORT_FILENAME
        with open(path, "w", encoding="utf-8", newline="\n") as fh:
            fh.write(encode_artifact(self.to_dict()))
        return path

    @classmethod
    def read(cls, run_dir: str | Path) -> dict[str, Any]:
        """Raw ``run-report.json`` of a finished run."""
        return json.loads((Path(run_dir) / RUN_REPORT_FILENAME).read_text(encoding="utf-8"))


class PipelineRunner:
    """
    Synchronous pipeline runner.

    Executes registered stages in index order in the current thread.
    """

    def __init__(self, settings: TrustDebtSettings | None = None) -> None:
        self.settings = settings or TrustDebtSettings()

    def _skip_reason(self, stage_cls: type[Stage], start: int, stop: int | None, skip: set[str]) -> str | None:
        if stage_cls.name in skip:
            return "skipped by request"
        if stage_cls.index < start:
            return f"before start stage {start}; existing artifact reused"
        if stop is not None and stage_cls.index > stop:
            return f"after stop stage {stop}"
        return None

    def _run_stage(self, stage_cls: type[Stage], context: StageContext) -> StageResult:
        started = time.perf_counter()
        token = push_context(stage=stage_cls.name, stage_index=stage_cls.index)
        try:
            with log_step("stage.run", stage=stage_cls.name, index=stage_cls.index):
                payload = stage_cls(context).run()
                path = context.artifacts.write(stage_cls.index, stage_cls.name, payload)
        except Exception as e:
            log.error("runner.stage_failed", stage=stage_cls.name, error=str(e), error_type=type(e).__name__)
            context.artifacts.discard(stage_cls.index, stage_cls.name)
            return StageResult.failed(stage_cls.name, stage_cls.index, e, time.perf_counter() - started)
        finally:
            token.restore()
        return StageResult.completed(stage_cls.name, stage_cls.index, path, time.perf_counter() - started)

    def run(
        self,
        inputs: RunInputs,
        *,
        run_dir: str | Path | None = None,
        run_id: str | None = None,
        start: int = 1,
        stop: int | None = None,
        skip: Iterable[str] = (),
    ) -> RunReport:
        """
        Run the pipeline.

        Args:
            inputs: Configuration and corpora
            run_dir: Artifact directory; defaults to ``<runs_dir>/<run_id>``
            run_id: Defaults to ``run-`` plus the first 12 hex digits of the fingerprint
            start: First stage index to execute; earlier artifacts are reused
            stop: Last stage index to execute
            skip: Stage names not to execute

        Returns:
            RunReport with one StageResult per registered stage
        """
        digest = fingerprint(inputs, self.settings)
        run_id = run_id or f"run-{digest[:12]}"
        run_dir = Path(run_dir) if run_dir is not None else self.settings.runs_dir / run_id
        run_dir.mkdir(parents=True, exist_ok=True)
        skip_set = set(skip)

        set_context(run_id=run_id)
        log.info("runner.start", run_dir=str(run_dir), fingerprint=digest[:12], start=start, stop=stop)

        report = RunReport(run_id=run_id, fingerprint=digest, run_dir=run_dir)
        artifacts = ArtifactStore(run_dir)
        try:
            with IndexStore(run_dir / STORE_FILENAME) as store:
                context = StageContext(
                    run_id=run_id,
                    run_dir=run_dir,
                    settings=self.settings,
                    config=inputs.config,
                    intent=inputs.intent,
                    reality=inputs.reality,
                    artifacts=artifacts,
                    store=store,
                )
                for stage_cls in list_stages():
                    reason = self._skip_reason(stage_cls, start, stop, skip_set)
                    if reason is not None:
                        log.info("runner.stage_skipped", stage=stage_cls.name, reason=reason)
                        report.results.append(StageResult.skipped(stage_cls.name, stage_cls.index, reason))
                        continue
                    report.results.append(self._run_stage(stage_cls, context))

            audit = artifacts.load("audit")
            if audit.is_ok():
                report.audit_overall = audit.unwrap().get("overall")
            report.write()
            log.info(
                "runner.completed",
                completed=len(report.completed),
                failed=len(report.failed),
                skipped=len(report.skipped),
                audit=report.audit_overall,
            )
        finally:
            clear_context()
        return report

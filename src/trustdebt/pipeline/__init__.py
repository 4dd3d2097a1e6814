"""Registered pipeline stages and the one-call pipeline entry point."""

from __future__ import annotations

from pathlib import Path

from trustdebt.core.settings import TrustDebtSettings
from trustdebt.engine.config import load_config
from trustdebt.engine.corpus import Provenance, load_corpus
from trustdebt.framework.runner import PipelineRunner, RunInputs, RunReport


def run_pipeline(
    intent_dir: str | Path,
    reality_dir: str | Path,
    *,
    settings: TrustDebtSettings | None = None,
    run_dir: str | Path | None = None,
    start: int = 1,
    stop: int | None = None,
    skip: tuple[str, ...] = (),
) -> RunReport:
    """Load configuration and corpora from disk and run every stage."""
    settings = settings or TrustDebtSettings()
    inputs = RunInputs(
        config=load_config(settings.config_path),
        intent=load_corpus(intent_dir, Provenance.INTENT),
        reality=load_corpus(reality_dir, Provenance.REALITY),
    )
    return PipelineRunner(settings).run(inputs, run_dir=run_dir, start=start, stop=stop, skip=skip)


__all__ = ["run_pipeline"]

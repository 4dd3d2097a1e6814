"""
CLI: ``trustdebt audit`` — show the stored audit findings of a run.
"""

from __future__ import annotations

from pathlib import Path

import typer

from trustdebt.cli.utils import fail, print_findings, print_json
from trustdebt.framework.artifacts import ArtifactStore


def audit_command(
    run_dir: Path = typer.Argument(..., help="Run directory"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Print the audit findings of a finished run. Exits 1 when the audit failed."""
    loaded = ArtifactStore(run_dir).load("audit")
    if loaded.is_err():
        fail(str(loaded.error))
    audit = loaded.unwrap()

    if json_out:
        print_json(audit)
    else:
        print_findings(audit, title=f"Audit: {run_dir.name}")

    if audit.get("overall") == "fail":
        raise typer.Exit(code=1)

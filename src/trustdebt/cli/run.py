"""
CLI: ``trustdebt run`` — execute the pipeline over two corpus directories.
"""

from __future__ import annotations

from pathlib import Path

import typer

from trustdebt.cli.utils import _print_table, cli_errors, console, make_settings, print_findings, print_json
from trustdebt.framework.artifacts import ArtifactStore


def run_command(
    intent_dir: Path = typer.Argument(..., help="Directory of Intent documents (docs, specs)"),
    reality_dir: Path = typer.Argument(..., help="Directory of Reality documents (code, commit logs)"),
    out: Path | None = typer.Option(None, "--out", "-o", help="Run directory (default: <runs_dir>/<run_id>)"),
    config: Path | None = typer.Option(None, "--config", "-c", help="Taxonomy/keyword YAML"),
    start: int = typer.Option(1, "--start", help="First stage index to execute"),
    stop: int | None = typer.Option(None, "--stop", help="Last stage index to execute"),
    skip: list[str] | None = typer.Option(None, "--skip", help="Stage name to skip (repeatable)"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Run the Trust Debt pipeline. Exits 1 when the audit fails."""
    from trustdebt.pipeline import run_pipeline

    settings = make_settings(config)
    with cli_errors():
        report = run_pipeline(
            intent_dir,
            reality_dir,
            settings=settings,
            run_dir=out,
            start=start,
            stop=stop,
            skip=tuple(skip or ()),
        )

    audit = ArtifactStore(report.run_dir).load("audit")

    if json_out:
        print_json({"run": report.to_dict(), "audit": audit.unwrap_or(None)})
    else:
        console.print(f"[bold]Run[/bold] {report.run_id}  [dim]{report.run_dir}[/dim]")
        _print_table(
            [
                {
                    "#": r.index,
                    "stage": r.name,
                    "status": r.status.value,
                    "detail": r.reason or (r.artifact_path.name if r.artifact_path else ""),
                }
                for r in report.results
            ],
            title="Stages",
        )
        if audit.is_ok():
            print_findings(audit.unwrap())
        else:
            console.print("[yellow]No audit artifact for this run.[/yellow]")

    if report.audit_overall == "fail":
        raise typer.Exit(code=1)

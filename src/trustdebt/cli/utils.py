"""
CLI utility helpers — output formatting and error handling.
"""

from __future__ import annotations

import json
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.table import Table

from trustdebt.core.errors import TrustDebtError
from trustdebt.core.settings import TrustDebtSettings

console = Console()
err_console = Console(stderr=True)

SEVERITY_STYLES = {"error": "bold red", "warning": "yellow", "info": "green"}
OVERALL_STYLES = {"pass": "bold green", "warning": "bold yellow", "fail": "bold red"}


# ── Settings helper ──────────────────────────────────────────────────────


def make_settings(config: Path | None = None, runs_dir: Path | None = None) -> TrustDebtSettings:
    """Environment-driven settings with CLI overrides applied."""
    settings = TrustDebtSettings()
    update: dict[str, Any] = {}
    if config is not None:
        update["config_path"] = config
    if runs_dir is not None:
        update["runs_dir"] = runs_dir
    return settings.model_copy(update=update) if update else settings


# ── Error handling ───────────────────────────────────────────────────────


def fail(message: str, code: int = 1) -> None:
    err_console.print(f"[bold red]Error[/bold red]: {message}")
    raise typer.Exit(code=code)


@contextmanager
def cli_errors() -> Iterator[None]:
    """Turn a ``TrustDebtError`` into a one-line message and exit code 1."""
    try:
        yield
    except TrustDebtError as e:
        err_console.print(f"[bold red]Error[/bold red] ({e.category.value}): {e.message}")
        raise typer.Exit(code=1) from e


# ── Output helpers ───────────────────────────────────────────────────────


def print_json(payload: Any) -> None:
    console.print_json(json.dumps(payload, default=str, sort_keys=True))


def _print_table(items: list[dict[str, Any]], *, title: str = "") -> None:
    """Render a list of dicts as a Rich table."""
    if not items:
        console.print("[dim]No items.[/dim]")
        return
    table = Table(title=title or None, show_lines=False, pad_edge=False)
    for col in items[0]:
        table.add_column(col, overflow="fold")
    for item in items:
        table.add_row(*("" if v is None else str(v) for v in item.values()))
    console.print(table)


def _print_dict(data: dict[str, Any], *, title: str = "") -> None:
    """Render a single dict as key-value pairs."""
    if title:
        console.print(f"[bold]{title}[/bold]")
    for k, v in data.items():
        console.print(f"  [cyan]{k}[/cyan]: {v}")


def print_findings(audit: dict[str, Any], *, title: str = "Audit") -> None:
    """Findings table plus a one-line overall verdict."""
    table = Table(title=title, pad_edge=False)
    table.add_column("check")
    table.add_column("passed")
    table.add_column("severity")
    table.add_column("message", overflow="fold")
    for finding in audit["findings"]:
        style = SEVERITY_STYLES.get(finding["severity"], "")
        table.add_row(
            finding["checkName"],
            "yes" if finding["passed"] else "no",
            f"[{style}]{finding['severity']}[/{style}]" if style else finding["severity"],
            finding["message"],
        )
    console.print(table)
    overall = audit["overall"]
    style = OVERALL_STYLES.get(overall, "bold")
    console.print(f"Overall: [{style}]{overall}[/{style}]")

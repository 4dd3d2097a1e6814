"""
Root Typer application for the trustdebt CLI.
"""

from __future__ import annotations

import typer
from typer import Typer

from trustdebt.framework.logging import configure_logging

app = Typer(
    name="trustdebt",
    help="trustdebt — category-matrix computation of Intent/Reality drift.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from importlib.metadata import PackageNotFoundError
        from importlib.metadata import version as pkg_version

        try:
            v = pkg_version("trustdebt-core")
        except PackageNotFoundError:
            from trustdebt import __version__ as v
        typer.echo(f"trustdebt {v}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    log_level: str | None = typer.Option(None, "--log-level", help="DEBUG, INFO, WARNING or ERROR"),
    log_format: str | None = typer.Option(None, "--log-format", help="console or json"),
) -> None:
    """trustdebt CLI — run the pipeline, inspect taxonomies, audits and indexed stores."""
    configure_logging(
        level=log_level.upper() if log_level else None,
        format=log_format.lower() if log_format else None,
        force=True,
    )


# ── Sub-command registration ─────────────────────────────────────────────

from trustdebt.cli.audit import audit_command  # noqa: E402
from trustdebt.cli.query import app as query_app  # noqa: E402
from trustdebt.cli.run import run_command  # noqa: E402
from trustdebt.cli.taxonomy import app as taxonomy_app  # noqa: E402

app.command("run")(run_command)
app.command("audit")(audit_command)
app.add_typer(taxonomy_app, name="taxonomy", help="Taxonomy inspection and validation.")
app.add_typer(query_app, name="query", help="Lookups against a run's indexed store.")

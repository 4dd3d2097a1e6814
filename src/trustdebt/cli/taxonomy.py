"""
CLI: ``trustdebt taxonomy`` — inspect and validate category configurations.
"""

from __future__ import annotations

from pathlib import Path

import typer

from trustdebt.cli.utils import _print_table, cli_errors, console, make_settings, print_json
from trustdebt.engine.config import load_config
from trustdebt.engine.taxonomy import OrderState, TaxonomyBuilder

app = typer.Typer(no_args_is_help=True)


@app.command("show")
def show_taxonomy(
    config: Path | None = typer.Option(None, "--config", "-c", help="Taxonomy/keyword YAML"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Show the ranked taxonomy."""
    settings = make_settings(config)
    with cli_errors():
        taxonomy = TaxonomyBuilder(load_config(settings.config_path).raw_categories()).build()

    if json_out:
        print_json(taxonomy.to_dicts())
        return
    _print_table(
        [
            {"position": c.position, "code": c.code, "name": c.name, "parent": c.parent_code, "units": c.units}
            for c in taxonomy
        ],
        title=f"Taxonomy ({len(taxonomy)} categories)",
    )


@app.command("validate")
def validate_taxonomy(
    file: Path = typer.Argument(..., help="Taxonomy/keyword YAML to validate"),
) -> None:
    """Validate a configuration file: schema, references and ordering."""
    with cli_errors():
        config = load_config(file)
        builder = TaxonomyBuilder(config.raw_categories())
        taxonomy = builder.build()

    note = " (reordered to ShortLex)" if OrderState.REORDERED in builder.history else ""
    console.print(
        f"[green]Valid[/green]: {len(taxonomy)} categories{note}, "
        f"{len(config.keywords)} keywords, {len(config.intent_keywords)} intent sections"
    )

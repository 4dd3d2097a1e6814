"""
CLI: ``trustdebt query`` — lookups against a run's indexed store.
"""

from __future__ import annotations

from pathlib import Path

import typer

from trustdebt.cli.utils import _print_dict, _print_table, cli_errors, fail, print_json
from trustdebt.core.store import STORE_FILENAME, IndexStore

app = typer.Typer(no_args_is_help=True)

RUN_OPTION = typer.Option(..., "--run", "-r", help="Run directory")


def _open_store(run_dir: Path) -> IndexStore:
    path = run_dir / STORE_FILENAME
    if not path.is_file():
        fail(f"No indexed store at {path}")
    return IndexStore(path)


@app.command("keyword")
def query_keyword(
    word: str = typer.Argument(..., help="Keyword (case-insensitive)"),
    run_dir: Path = RUN_OPTION,
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Categories a keyword maps to, with its counts."""
    with cli_errors(), _open_store(run_dir) as store:
        mappings = store.mappings_for_keyword(word)
    if not mappings:
        fail(f"Keyword '{word}' is not in the dictionary of this run")
    if json_out:
        print_json([m.to_dict() for m in mappings])
    else:
        _print_table([m.to_dict() for m in mappings], title=f"Keyword: {word}")


@app.command("category")
def query_category(
    code: str = typer.Argument(..., help="Category code, e.g. B.1"),
    run_dir: Path = RUN_OPTION,
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """A category and the keyword mappings that feed it."""
    with cli_errors(), _open_store(run_dir) as store:
        category = store.category(code)
        mappings = store.mappings_for_category(code)
    if category is None:
        fail(f"Category '{code}' not found in this run")
    if json_out:
        print_json({"category": category.to_dict(), "mappings": [m.to_dict() for m in mappings]})
        return
    _print_dict(category.to_dict(), title=f"Category: {code}")
    _print_table([m.to_dict() for m in mappings], title="Mappings")


@app.command("cell")
def query_cell(
    row: int = typer.Argument(..., help="Row position (1-based)"),
    col: int = typer.Argument(..., help="Column position (1-based)"),
    run_dir: Path = RUN_OPTION,
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """One matrix cell."""
    with cli_errors(), _open_store(run_dir) as store:
        cell = store.cell(row, col)
    if cell is None:
        fail(f"No matrix cell at ({row}, {col})")
    if json_out:
        print_json(cell.to_dict())
    else:
        _print_dict(cell.to_dict(), title=f"Cell ({row}, {col})")

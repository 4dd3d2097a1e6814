"""
trustdebt CLI — Typer-based command-line interface.

Entry point: ``trustdebt`` (registered in pyproject.toml).
"""

from __future__ import annotations


def main() -> None:
    """CLI entry point."""
    from trustdebt.cli.app import app

    app()

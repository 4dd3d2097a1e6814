"""Indexed sqlite store for one run.

The indexer persists keyword mappings here and the matrix builder persists
its cells, so later stages and CLI queries can look up a keyword, a category
or a matrix row without re-scanning corpora.

Each run owns its own database file inside its run directory; separate runs
never share a store. Writes replace the previous contents of a table, which
keeps re-running a stage idempotent.

Usage::

    from trustdebt.core.store import IndexStore

    with IndexStore(run_dir / "trust-debt.db") as store:
        store.write_mappings(mappings)
        store.mappings_for_category("B.1")
"""

from __future__ import annotations

import sqlite3
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from trustdebt.core.errors import StorageError
from trustdebt.core.schema import create_store_tables
from trustdebt.engine.models import Category, KeywordMapping, MatrixCell
from trustdebt.framework.logging import get_logger, log_db_operation

log = get_logger(__name__)

STORE_FILENAME = "trust-debt.db"


class IndexStore:
    """Synchronous sqlite adapter for the three lookup tables.

    Keeps one connection with ``sqlite3.Row`` rows. Any ``sqlite3.Error`` is
    re-raised as :class:`StorageError`.
    """

    def __init__(self, path: str | Path = ":memory:") -> None:
        self.path = str(path)
        try:
            self._conn = sqlite3.connect(self.path, check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
            create_store_tables(self._conn)
        except sqlite3.Error as e:
            raise StorageError(f"Cannot open store at {self.path}", cause=e) from e

    # -- lifecycle ---------------------------------------------------------

    def close(self) -> None:
        self._conn.close()

    def __enter__(self) -> IndexStore:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    @property
    def raw(self) -> sqlite3.Connection:
        """Access the underlying ``sqlite3.Connection``."""
        return self._conn

    # -- writes ------------------------------------------------------------

    def _replace(self, table: str, sql: str, rows: list[tuple]) -> int:
        with log_db_operation("replace", table, rows=len(rows)):
            try:
                with self._conn:
                    self._conn.execute(f"DELETE FROM {table}")
                    self._conn.executemany(sql, rows)
            except sqlite3.Error as e:
                raise StorageError(f"Write to {table} failed", cause=e).with_context(artifact=table) from e
        return len(rows)

    def write_categories(self, categories: Iterable[Category]) -> int:
        rows = [(c.code, c.name, c.parent_code, c.position, c.units, c.percentage) for c in categories]
        return self._replace(
            "categories",
            "INSERT INTO categories (code, name, parent_code, position, units, percentage) VALUES (?, ?, ?, ?, ?, ?)",
            rows,
        )

    def write_mappings(self, mappings: Iterable[KeywordMapping]) -> int:
        rows = [
            (m.keyword, m.category_code, m.intent_count, m.reality_count, m.total_count)
            for m in mappings
        ]
        return self._replace(
            "keyword_mappings",
            "INSERT INTO keyword_mappings (keyword, category_code, intent_count, reality_count, total_count) "
            "VALUES (?, ?, ?, ?, ?)",
            rows,
        )

    def write_cells(self, cells: Iterable[MatrixCell]) -> int:
        rows = [
            (c.row, c.col, c.intent_value, c.reality_value, c.units, c.triangle.value)
            for c in cells
        ]
        return self._replace(
            "matrix_cells",
            "INSERT INTO matrix_cells (\"row\", col, intent_value, reality_value, units, triangle) "
            "VALUES (?, ?, ?, ?, ?, ?)",
            rows,
        )

    # -- reads -------------------------------------------------------------

    def _query(self, sql: str, params: tuple = ()) -> list[sqlite3.Row]:
        try:
            return self._conn.execute(sql, params).fetchall()
        except sqlite3.Error as e:
            raise StorageError("Store query failed", cause=e) from e

    @staticmethod
    def _category(row: sqlite3.Row) -> Category:
        return Category(
            code=row["code"],
            name=row["name"],
            parent_code=row["parent_code"],
            position=row["position"],
            units=row["units"],
            percentage=row["percentage"],
        )

    @staticmethod
    def _mapping(row: sqlite3.Row) -> KeywordMapping:
        return KeywordMapping(
            keyword=row["keyword"],
            category_code=row["category_code"],
            intent_count=row["intent_count"],
            reality_count=row["reality_count"],
        )

    @staticmethod
    def _cell(row: sqlite3.Row) -> MatrixCell:
        return MatrixCell(
            row=row["row"],
            col=row["col"],
            intent_value=row["intent_value"],
            reality_value=row["reality_value"],
            units=row["units"],
        )

    def categories(self) -> list[Category]:
        return [self._category(r) for r in self._query("SELECT * FROM categories ORDER BY position")]

    def category(self, code: str) -> Category | None:
        rows = self._query("SELECT * FROM categories WHERE code = ?", (code,))
        return self._category(rows[0]) if rows else None

    def mappings_for_keyword(self, keyword: str) -> list[KeywordMapping]:
        rows = self._query(
            "SELECT m.* FROM keyword_mappings m LEFT JOIN categories c ON c.code = m.category_code "
            "WHERE m.keyword = ? ORDER BY c.position, m.category_code",
            (keyword.strip().lower(),),
        )
        return [self._mapping(r) for r in rows]

    def mappings_for_category(self, code: str) -> list[KeywordMapping]:
        rows = self._query(
            "SELECT * FROM keyword_mappings WHERE category_code = ? ORDER BY keyword",
            (code,),
        )
        return [self._mapping(r) for r in rows]

    def cell(self, row: int, col: int) -> MatrixCell | None:
        rows = self._query("SELECT * FROM matrix_cells WHERE \"row\" = ? AND col = ?", (row, col))
        return self._cell(rows[0]) if rows else None

    def row_cells(self, row: int) -> list[MatrixCell]:
        return [self._cell(r) for r in self._query("SELECT * FROM matrix_cells WHERE \"row\" = ? ORDER BY col", (row,))]

    def column_cells(self, col: int) -> list[MatrixCell]:
        return [self._cell(r) for r in self._query("SELECT * FROM matrix_cells WHERE col = ? ORDER BY \"row\"", (col,))]

    def counts(self) -> dict[str, int]:
        """Row count per table."""
        return {
            table: self._query(f"SELECT COUNT(*) AS n FROM {table}")[0]["n"]
            for table in ("categories", "keyword_mappings", "matrix_cells")
        }

    def __repr__(self) -> str:
        return f"IndexStore({self.path!r})"

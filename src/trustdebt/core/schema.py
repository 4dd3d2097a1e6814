"""
Indexed store tables.

Three logical tables back keyword, category and matrix lookups for a single
run: ``categories``, ``keyword_mappings`` and ``matrix_cells``. Their columns
are exactly the entity attributes; lookups are indexed by keyword, category,
and matrix row/column.

Tags:
    schema, ddl, sqlite, trustdebt-core
"""

# =============================================================================
# TABLE NAMES
# =============================================================================

STORE_TABLES = {
    "categories": "categories",
    "keyword_mappings": "keyword_mappings",
    "matrix_cells": "matrix_cells",
}


# =============================================================================
# DDL STATEMENTS
# =============================================================================

STORE_DDL = {
    "categories": """
        CREATE TABLE IF NOT EXISTS categories (
            code TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            parent_code TEXT,               -- NULL for roots
            position INTEGER NOT NULL,      -- 1-indexed ShortLex rank
            units REAL NOT NULL DEFAULT 0,
            percentage REAL NOT NULL DEFAULT 0
        )
    """,
    "keyword_mappings": """
        CREATE TABLE IF NOT EXISTS keyword_mappings (
            keyword TEXT NOT NULL,
            category_code TEXT NOT NULL,
            intent_count INTEGER NOT NULL CHECK (intent_count >= 0),
            reality_count INTEGER NOT NULL CHECK (reality_count >= 0),
            total_count INTEGER NOT NULL,   -- always intent_count + reality_count
            PRIMARY KEY (keyword, category_code)
        )
    """,
    "matrix_cells": """
        CREATE TABLE IF NOT EXISTS matrix_cells (
            "row" INTEGER NOT NULL,
            col INTEGER NOT NULL,
            intent_value REAL NOT NULL,
            reality_value REAL NOT NULL,
            units REAL NOT NULL,
            triangle TEXT NOT NULL,         -- upper, lower, diagonal
            PRIMARY KEY ("row", col)
        )
    """,
    "keyword_mappings_idx_keyword": """
        CREATE INDEX IF NOT EXISTS idx_keyword_mappings_keyword
        ON keyword_mappings(keyword)
    """,
    "keyword_mappings_idx_category": """
        CREATE INDEX IF NOT EXISTS idx_keyword_mappings_category
        ON keyword_mappings(category_code)
    """,
    "matrix_cells_idx_row": """
        CREATE INDEX IF NOT EXISTS idx_matrix_cells_row
        ON matrix_cells("row")
    """,
    "matrix_cells_idx_col": """
        CREATE INDEX IF NOT EXISTS idx_matrix_cells_col
        ON matrix_cells(col)
    """,
}


def create_store_tables(conn) -> None:
    """
    Create all store tables and indexes.

    Safe to call multiple times (CREATE IF NOT EXISTS).
    """
    for _name, ddl in STORE_DDL.items():
        conn.execute(ddl)
    conn.commit()

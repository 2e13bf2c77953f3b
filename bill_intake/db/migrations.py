"""Idempotent schema migrations for billing tables."""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)

# Columns added after the first release; older databases get them on startup.
_ADDED_COLUMNS = [
    ("users", "address", "TEXT"),
    ("users", "postcode", "VARCHAR(16)"),
    ("invoices", "provider_name", "VARCHAR(255)"),
    ("invoices", "account_number", "VARCHAR(64)"),
    ("invoices", "rate_per_unit", "NUMERIC"),
    ("monthly_invoices", "updated_at", "TIMESTAMP DEFAULT CURRENT_TIMESTAMP"),
]

# Numeric columns first created narrower. None as precision means unconstrained NUMERIC.
_WIDENED_COLUMNS = [
    ("invoices", "usage", None, None),
    ("invoices", "rate_per_unit", None, None),
    ("invoices", "subtotal", 18, 2),
    ("invoices", "markup", 18, 2),
    ("invoices", "total_cost", 18, 2),
    ("monthly_invoices", "total_usage", None, None),
    ("monthly_invoices", "total_cost_before_markup", 18, 2),
    ("monthly_invoices", "total_markup", 18, 2),
    ("monthly_invoices", "total_cost_with_markup", 18, 2),
]


def migrate_all(conn) -> None:
    """Run all non-destructive migrations (add columns/indexes if missing)."""
    _migrate_add_columns(conn)
    _migrate_widen_numeric_columns(conn)
    _migrate_monthly_unique_key(conn)


def _column_exists(cur, table, column) -> bool:
    cur.execute(
        """
        SELECT column_name FROM information_schema.columns
        WHERE table_name = %s AND column_name = %s
        """,
        (table, column),
    )
    return cur.fetchone() is not None


def _migrate_add_columns(conn):
    with conn.cursor() as cur:
        for table, column, col_type in _ADDED_COLUMNS:
            if not _column_exists(cur, table, column):
                logger.info("Adding %s column to %s...", column, table)
                cur.execute(f"ALTER TABLE {table} ADD COLUMN {column} {col_type}")


def _numeric_precision(cur, table, column):
    cur.execute(
        """
        SELECT numeric_precision FROM information_schema.columns
        WHERE table_name = %s AND column_name = %s
        """,
        (table, column),
    )
    row = cur.fetchone()
    return row[0] if row else None


def _migrate_widen_numeric_columns(conn):
    with conn.cursor() as cur:
        for table, column, precision, scale in _WIDENED_COLUMNS:
            current = _numeric_precision(cur, table, column)
            if current is None:
                continue
            if precision is None:
                col_type = "NUMERIC"
            elif current < precision:
                col_type = f"NUMERIC({precision},{scale})"
            else:
                continue
            logger.info("Widening %s.%s to %s...", table, column, col_type)
            cur.execute(f"ALTER TABLE {table} ALTER COLUMN {column} TYPE {col_type}")


def _migrate_monthly_unique_key(conn):
    """
    One monthly row per (user, year, month, unit).

    Consolidation upserts against this index; without it re-runs would insert
    duplicates instead of updating sums.
    """
    with conn.cursor() as cur:
        cur.execute(
            """
            CREATE UNIQUE INDEX IF NOT EXISTS uq_monthly_invoices_period
            ON monthly_invoices(user_id, year, month, usage_unit)
            """
        )

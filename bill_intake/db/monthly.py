"""DB operations for `monthly_invoices`."""

from __future__ import annotations

from psycopg2.extras import RealDictCursor

from bill_intake.models import MonthlyAggregate, MonthlySums, PaymentStatus

_MONTHLY_COLUMNS = """
    id, user_id, month, year, total_usage, usage_unit,
    total_cost_before_markup, total_markup, total_cost_with_markup,
    paid_status, created_at
"""


def _one(cur):
    row = cur.fetchone()
    return MonthlyAggregate.from_row(row) if row else None


def get_monthly_by_id(pool, user_id, monthly_id):
    with pool.connection() as conn:
        with conn.cursor(cursor_factory=RealDictCursor) as cur:
            cur.execute(
                f"""
                SELECT {_MONTHLY_COLUMNS}
                FROM monthly_invoices
                WHERE id = %s AND user_id = %s
                """,
                (monthly_id, user_id),
            )
            return _one(cur)


def upsert_monthly_sums(pool, user_id, year, month, usage_unit, sums: MonthlySums) -> MonthlyAggregate:
    """
    Insert the monthly row as unpaid, or overwrite only the four sums.

    paid_status and created_at are never touched on conflict.
    """
    with pool.connection() as conn:
        with conn.cursor(cursor_factory=RealDictCursor) as cur:
            cur.execute(
                f"""
                INSERT INTO monthly_invoices
                (user_id, month, year, total_usage, usage_unit,
                 total_cost_before_markup, total_markup, total_cost_with_markup, paid_status)
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s)
                ON CONFLICT (user_id, year, month, usage_unit) DO UPDATE SET
                    total_usage = EXCLUDED.total_usage,
                    total_cost_before_markup = EXCLUDED.total_cost_before_markup,
                    total_markup = EXCLUDED.total_markup,
                    total_cost_with_markup = EXCLUDED.total_cost_with_markup,
                    updated_at = CURRENT_TIMESTAMP
                RETURNING {_MONTHLY_COLUMNS}
                """,
                (
                    user_id,
                    month,
                    year,
                    sums.total_usage,
                    usage_unit,
                    sums.total_cost_before_markup,
                    sums.total_markup,
                    sums.total_cost_with_markup,
                    PaymentStatus.UNPAID.value,
                ),
            )
            return _one(cur)


def list_monthly_for_user(pool, user_id):
    with pool.connection() as conn:
        with conn.cursor(cursor_factory=RealDictCursor) as cur:
            cur.execute(
                f"""
                SELECT {_MONTHLY_COLUMNS}
                FROM monthly_invoices
                WHERE user_id = %s
                ORDER BY year DESC, month DESC, usage_unit
                """,
                (user_id,),
            )
            return [MonthlyAggregate.from_row(row) for row in cur.fetchall()]


def mark_monthly_paid(pool, monthly_id):
    """Flip a monthly row to paid. Returns the row, or None if it does not exist."""
    with pool.connection() as conn:
        with conn.cursor(cursor_factory=RealDictCursor) as cur:
            cur.execute(
                f"""
                UPDATE monthly_invoices
                SET paid_status = %s, updated_at = CURRENT_TIMESTAMP
                WHERE id = %s
                RETURNING {_MONTHLY_COLUMNS}
                """,
                (PaymentStatus.PAID.value, monthly_id),
            )
            return _one(cur)

"""DB operations for `invoices`."""

from __future__ import annotations

from psycopg2.extras import RealDictCursor

from bill_intake.models import InvoiceRecord

_INVOICE_COLUMNS = """
    id, user_id, utility_type, provider_name, account_number,
    billing_period_start, billing_period_end, usage, unit_type, rate_per_unit,
    subtotal, markup, total_cost, created_at
"""


def insert_invoice(pool, invoice: InvoiceRecord) -> InvoiceRecord:
    """Insert one invoice in a single statement. Returns the stored row."""
    with pool.connection() as conn:
        with conn.cursor(cursor_factory=RealDictCursor) as cur:
            cur.execute(
                f"""
                INSERT INTO invoices
                (user_id, utility_type, provider_name, account_number,
                 billing_period_start, billing_period_end, usage, unit_type,
                 rate_per_unit, subtotal, markup, total_cost)
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
                RETURNING {_INVOICE_COLUMNS}
                """,
                (
                    invoice.user_id,
                    invoice.utility_type,
                    invoice.provider_name,
                    invoice.account_number,
                    invoice.billing_period_start,
                    invoice.billing_period_end,
                    invoice.usage,
                    invoice.unit_type,
                    invoice.rate_per_unit,
                    invoice.subtotal,
                    invoice.markup,
                    invoice.total_cost,
                ),
            )
            return InvoiceRecord.from_row(cur.fetchone())


def get_invoices_for_user(pool, user_id):
    with pool.connection() as conn:
        with conn.cursor(cursor_factory=RealDictCursor) as cur:
            cur.execute(
                f"""
                SELECT {_INVOICE_COLUMNS}
                FROM invoices
                WHERE user_id = %s
                ORDER BY id
                """,
                (user_id,),
            )
            return [InvoiceRecord.from_row(row) for row in cur.fetchall()]

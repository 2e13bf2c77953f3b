"""Schema creation for bill intake tables."""

from __future__ import annotations

import logging

from bill_intake.db.migrations import migrate_all

logger = logging.getLogger(__name__)


def init_billing_tables(pool) -> None:
    """Create the users, invoices and monthly_invoices tables if missing, then run safe migrations."""
    with pool.connection() as conn:
        with conn.cursor() as cur:
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS users (
                    id VARCHAR(255) PRIMARY KEY,
                    name VARCHAR(255),
                    email VARCHAR(255),
                    address TEXT,
                    postcode VARCHAR(16),
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                );
                """
            )

            # Billing dates stay as the DD/MM/YYYY text found in the document;
            # impossible dates such as 31/02/2024 must still be storable.
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS invoices (
                    id SERIAL PRIMARY KEY,
                    user_id VARCHAR(255) NOT NULL,
                    utility_type VARCHAR(16) NOT NULL
                        CHECK (utility_type IN ('electric', 'gas', 'water')),
                    provider_name VARCHAR(255),
                    account_number VARCHAR(64),
                    billing_period_start VARCHAR(10),
                    billing_period_end VARCHAR(10),
                    usage NUMERIC,
                    unit_type VARCHAR(16),
                    rate_per_unit NUMERIC,
                    subtotal NUMERIC(18,2),
                    markup NUMERIC(18,2),
                    total_cost NUMERIC(18,2),
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    CHECK (subtotal IS NOT NULL OR (markup IS NULL AND total_cost IS NULL))
                );

                CREATE INDEX IF NOT EXISTS idx_invoices_user
                ON invoices(user_id);
                """
            )

            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS monthly_invoices (
                    id SERIAL PRIMARY KEY,
                    user_id VARCHAR(255) NOT NULL,
                    month SMALLINT NOT NULL CHECK (month BETWEEN 1 AND 12),
                    year INTEGER NOT NULL,
                    total_usage NUMERIC,
                    usage_unit VARCHAR(16) NOT NULL,
                    total_cost_before_markup NUMERIC(18,2),
                    total_markup NUMERIC(18,2),
                    total_cost_with_markup NUMERIC(18,2),
                    paid_status VARCHAR(10) NOT NULL DEFAULT 'unpaid'
                        CHECK (paid_status IN ('unpaid', 'paid')),
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                );

                CREATE INDEX IF NOT EXISTS idx_monthly_invoices_user
                ON monthly_invoices(user_id);
                """
            )

        migrate_all(conn)

    logger.info("Billing tables initialized")

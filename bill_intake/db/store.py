"""
Store facade injected into the billing services.

Every method takes one pooled connection for a single statement; there are no
multi-statement transactions across service steps.
"""

from __future__ import annotations

from bill_intake.db import accounts, invoices, monthly
from bill_intake.db.connection import ConnectionPool, get_pool
from bill_intake.db.schema import init_billing_tables


class PostgresBillingStore:

    def __init__(self, pool: ConnectionPool | None = None):
        self.pool = pool or get_pool()

    def init_schema(self):
        init_billing_tables(self.pool)

    # invoices
    def insert_invoice(self, invoice):
        return invoices.insert_invoice(self.pool, invoice)

    def get_invoices_for_user(self, user_id):
        return invoices.get_invoices_for_user(self.pool, user_id)

    # monthly aggregates
    def upsert_monthly_sums(self, user_id, year, month, usage_unit, sums):
        return monthly.upsert_monthly_sums(self.pool, user_id, year, month, usage_unit, sums)

    def list_monthly_for_user(self, user_id):
        return monthly.list_monthly_for_user(self.pool, user_id)

    def get_monthly_by_id(self, user_id, monthly_id):
        return monthly.get_monthly_by_id(self.pool, user_id, monthly_id)

    def mark_monthly_paid(self, monthly_id):
        return monthly.mark_monthly_paid(self.pool, monthly_id)

    # profiles
    def get_user_profile(self, user_id):
        return accounts.get_user_profile(self.pool, user_id)

    def update_user_profile(self, user_id, profile):
        return accounts.update_user_profile(self.pool, user_id, profile)

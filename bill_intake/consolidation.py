"""
Consolidation Service
=====================
Rolls a user's invoices up into one monthly row per (year, month, unit).

The month comes from the invoice's billing_period_start (DD/MM/YYYY).
Invoices whose start date is missing or not a real date are left out.
Re-running with no new invoices writes the same sums again, and an existing
row's paid_status is never reset.
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple

from bill_intake.models import InvoiceRecord, MonthlyAggregate, MonthlySums, parse_billing_date

logger = logging.getLogger(__name__)

GroupKey = Tuple[int, int, str]


def _add(total: Optional[Decimal], value: Optional[Decimal]) -> Optional[Decimal]:
    # Like SQL SUM: nulls are skipped, an all-null group stays null.
    if value is None:
        return total
    return value if total is None else total + value


def group_invoices(invoices: Iterable[InvoiceRecord]) -> Dict[GroupKey, MonthlySums]:
    """Sum invoices by (year, month, unit), ordered by key."""
    groups: Dict[GroupKey, MonthlySums] = {}
    skipped = 0
    for invoice in invoices:
        start = parse_billing_date(invoice.billing_period_start)
        if start is None or not invoice.unit_type:
            skipped += 1
            continue
        key = (start.year, start.month, invoice.unit_type)
        sums = groups.setdefault(key, MonthlySums())
        sums.total_usage = _add(sums.total_usage, invoice.usage)
        sums.total_cost_before_markup = _add(sums.total_cost_before_markup, invoice.subtotal)
        sums.total_markup = _add(sums.total_markup, invoice.markup)
        sums.total_cost_with_markup = _add(sums.total_cost_with_markup, invoice.total_cost)

    if skipped:
        logger.debug("Skipped %s invoice(s) without a usable billing period", skipped)
    return OrderedDict(sorted(groups.items()))


class ConsolidationService:

    def __init__(self, store):
        self.store = store

    def consolidate(self, user_id: str) -> List[MonthlyAggregate]:
        """Upsert every monthly row for `user_id` and return them. PersistenceFailure propagates."""
        invoices = self.store.get_invoices_for_user(user_id)
        groups = group_invoices(invoices)

        updated = []
        for (year, month, unit), sums in groups.items():
            updated.append(self.store.upsert_monthly_sums(user_id, year, month, unit, sums))

        logger.info(
            "Consolidated %s invoice(s) into %s monthly row(s) for user %s",
            len(invoices),
            len(updated),
            user_id,
        )
        return updated

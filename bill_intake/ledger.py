"""Read-only view of a user's monthly rows, newest period first."""

from __future__ import annotations

from typing import List

from bill_intake.models import MonthlyAggregateView


class MonthlyLedgerReader:

    def __init__(self, store):
        self.store = store

    def list(self, user_id: str) -> List[MonthlyAggregateView]:
        rows = self.store.list_monthly_for_user(user_id)
        # Newest period first; ties broken by unit.
        rows = sorted(rows, key=lambda r: (-r.year, -r.month, r.usage_unit))
        return [MonthlyAggregateView.from_aggregate(r) for r in rows]

"""Shared pytest fixtures: an in-memory billing store and a Flask test client."""

import copy
import itertools
from datetime import datetime

import pytest

from bill_intake.errors import ExtractionFailure, PersistenceFailure
from bill_intake.models import MonthlyAggregate, PaymentStatus


class InMemoryBillingStore:
    """Implements the PostgresBillingStore interface over dicts."""

    def __init__(self):
        self.invoices = []
        self.monthly = {}
        self.profiles = {}
        self.fail_writes = False
        self._invoice_ids = itertools.count(1)
        self._monthly_ids = itertools.count(1)

    def init_schema(self):
        pass

    def _check(self):
        if self.fail_writes:
            raise PersistenceFailure("database is down")

    def insert_invoice(self, invoice):
        self._check()
        stored = copy.copy(invoice)
        stored.id = next(self._invoice_ids)
        stored.created_at = datetime(2024, 5, 1, 12, 0, 0)
        self.invoices.append(stored)
        return copy.copy(stored)

    def get_invoices_for_user(self, user_id):
        return [copy.copy(i) for i in self.invoices if i.user_id == user_id]

    def upsert_monthly_sums(self, user_id, year, month, usage_unit, sums):
        self._check()
        key = (user_id, year, month, usage_unit)
        row = self.monthly.get(key)
        if row is None:
            row = MonthlyAggregate(
                user_id=user_id,
                year=year,
                month=month,
                usage_unit=usage_unit,
                id=next(self._monthly_ids),
                created_at=datetime(2024, 5, 2, 9, 30, 0),
            )
            self.monthly[key] = row
        row.total_usage = sums.total_usage
        row.total_cost_before_markup = sums.total_cost_before_markup
        row.total_markup = sums.total_markup
        row.total_cost_with_markup = sums.total_cost_with_markup
        return copy.copy(row)

    def list_monthly_for_user(self, user_id):
        rows = [copy.copy(r) for r in self.monthly.values() if r.user_id == user_id]
        return sorted(rows, key=lambda r: (-r.year, -r.month, r.usage_unit))

    def get_monthly_by_id(self, user_id, monthly_id):
        for row in self.monthly.values():
            if row.id == monthly_id and row.user_id == user_id:
                return copy.copy(row)
        return None

    def mark_monthly_paid(self, monthly_id):
        self._check()
        for row in self.monthly.values():
            if row.id == monthly_id:
                row.paid_status = PaymentStatus.PAID
                return copy.copy(row)
        return None

    def get_user_profile(self, user_id):
        profile = self.profiles.get(user_id)
        return dict(profile) if profile else None

    def update_user_profile(self, user_id, profile):
        self._check()
        stored = {"id": user_id}
        stored.update({k: profile.get(k) for k in ("name", "email", "address", "postcode")})
        self.profiles[user_id] = stored
        return dict(stored)


class StubTextExtractor:
    """Treats the document bytes as UTF-8 text; b"%CORRUPT" is unreadable."""

    def __init__(self):
        self.calls = 0

    def extract_text(self, document):
        self.calls += 1
        if not document or document.startswith(b"%CORRUPT"):
            raise ExtractionFailure("PDF could not be opened")
        return document.decode("utf-8")


APRIL_BILL = (
    "Supplier: Bright Energy Ltd\n"
    "Account Number: 1234 5678\n"
    "Billing period 01/04/2024 - 30/04/2024\n"
    "Electricity used 350.5 kWh\n"
    "Amount due £120.00\n"
)


@pytest.fixture
def store():
    return InMemoryBillingStore()


@pytest.fixture
def text_extractor():
    return StubTextExtractor()


@pytest.fixture
def app(store, text_extractor, tmp_path):
    from app import create_app

    cfg = {
        "app": {"cors": {"origins": "*"}, "max_upload_mb": 5},
        "logging": {"level": "WARNING"},
        "billing": {"markup_rate": "0.10", "uploads_dir": str(tmp_path / "uploads")},
        "payments": {"currency": "gbp", "product_name": "Consolidated Utility Bill", "frontend_url": "https://bills.example"},
    }
    flask_app = create_app(cfg, store=store, text_extractor=text_extractor)
    flask_app.config["TESTING"] = True
    return flask_app


@pytest.fixture
def client(app):
    return app.test_client()

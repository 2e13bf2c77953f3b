import hashlib
import hmac
import json
import time
from decimal import Decimal

import pytest

from bill_intake.models import MonthlySums, PaymentStatus
from services import stripe_checkout

HEADERS = {"X-User-Id": "user-42"}


@pytest.fixture
def monthly_row(store):
    return store.upsert_monthly_sums(
        "user-42", 2024, 4, "kWh",
        MonthlySums(total_usage=Decimal("350.5"), total_cost_before_markup=Decimal("120.00"),
                    total_markup=Decimal("12.00"), total_cost_with_markup=Decimal("132.00")),
    )


def _signed(payload, secret, ts=None):
    ts = int(ts if ts is not None else time.time())
    sig = hmac.new(secret.encode(), f"{ts}.".encode() + payload, hashlib.sha256).hexdigest()
    return f"t={ts},v1={sig}"


def test_checkout_session_created(client, monthly_row, monkeypatch):
    captured = {}

    def fake_create(amount, **kwargs):
        captured["amount"] = amount
        captured.update(kwargs)
        return {"id": "cs_test_1", "url": "https://checkout.stripe.test/cs_test_1"}

    monkeypatch.setattr(stripe_checkout, "create_checkout_session", fake_create)
    resp = client.post("/api/payments/checkout-session",
                       json={"monthly_invoice_id": monthly_row.id, "email": "ada@example.com"},
                       headers=HEADERS)

    assert resp.status_code == 200
    assert resp.get_json()["url"] == "https://checkout.stripe.test/cs_test_1"
    assert captured["amount"] == Decimal("132.00")
    assert captured["currency"] == "gbp"
    assert captured["email"] == "ada@example.com"
    assert captured["frontend_url"] == "https://bills.example"
    assert captured["metadata"]["monthly_invoice_id"] == monthly_row.id


def test_checkout_other_users_row_is_404(client, monthly_row):
    resp = client.post("/api/payments/checkout-session",
                       json={"monthly_invoice_id": monthly_row.id},
                       headers={"X-User-Id": "intruder"})
    assert resp.status_code == 404


def test_checkout_already_paid(client, store, monthly_row):
    store.mark_monthly_paid(monthly_row.id)
    resp = client.post("/api/payments/checkout-session",
                       json={"monthly_invoice_id": monthly_row.id}, headers=HEADERS)
    assert resp.status_code == 409


def test_checkout_without_stripe_key(client, monthly_row, monkeypatch):
    monkeypatch.delenv("STRIPE_SECRET_KEY", raising=False)
    resp = client.post("/api/payments/checkout-session",
                       json={"monthly_invoice_id": monthly_row.id}, headers=HEADERS)
    assert resp.status_code == 503


def test_webhook_marks_paid(client, store, monthly_row, monkeypatch):
    monkeypatch.setenv("STRIPE_WEBHOOK_SECRET", "whsec_test")
    payload = json.dumps({
        "type": "checkout.session.completed",
        "data": {"object": {"metadata": {"monthly_invoice_id": str(monthly_row.id), "user_id": "user-42"}}},
    }).encode()

    resp = client.post("/api/payments/webhook", data=payload,
                       headers={"Stripe-Signature": _signed(payload, "whsec_test"),
                                "Content-Type": "application/json"})

    assert resp.status_code == 200
    assert store.get_monthly_by_id("user-42", monthly_row.id).paid_status is PaymentStatus.PAID


def test_webhook_bad_signature(client, store, monthly_row, monkeypatch):
    monkeypatch.setenv("STRIPE_WEBHOOK_SECRET", "whsec_test")
    payload = json.dumps({"type": "checkout.session.completed",
                          "data": {"object": {"metadata": {"monthly_invoice_id": str(monthly_row.id)}}}}).encode()
    resp = client.post("/api/payments/webhook", data=payload,
                       headers={"Stripe-Signature": _signed(payload, "wrong-secret")})
    assert resp.status_code == 400
    assert store.get_monthly_by_id("user-42", monthly_row.id).paid_status is PaymentStatus.UNPAID


def test_webhook_ignores_other_events(client, monkeypatch):
    monkeypatch.setenv("STRIPE_WEBHOOK_SECRET", "whsec_test")
    payload = json.dumps({"type": "payment_intent.created", "data": {"object": {}}}).encode()
    resp = client.post("/api/payments/webhook", data=payload,
                       headers={"Stripe-Signature": _signed(payload, "whsec_test")})
    assert resp.status_code == 200
    assert resp.get_json()["ignored"] == "payment_intent.created"


def test_config_endpoint(client, monkeypatch):
    monkeypatch.setenv("STRIPE_SECRET_KEY", "sk_test_x")
    body = client.get("/api/config").get_json()
    assert body == {"paymentsEnabled": True, "markupRate": 0.1}


def test_checkout_provider_unreachable(client, monthly_row, monkeypatch):
    def fake_create(amount, **kwargs):
        raise stripe_checkout.StripeUnreachable("Request timed out")

    monkeypatch.setattr(stripe_checkout, "create_checkout_session", fake_create)
    resp = client.post("/api/payments/checkout-session",
                       json={"monthly_invoice_id": monthly_row.id}, headers=HEADERS)
    assert resp.status_code == 504
    assert resp.get_json()["success"] is False

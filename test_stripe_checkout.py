import hashlib
import hmac
import time
from decimal import Decimal
from types import SimpleNamespace

import pytest
import stripe

from bill_intake.errors import PaymentProviderError
from services import stripe_checkout
from services.stripe_checkout import InvalidWebhookSignature, StripeNotConfigured, StripeUnreachable


def _signed(payload, secret, ts):
    sig = hmac.new(secret.encode(), f"{ts}.".encode() + payload, hashlib.sha256).hexdigest()
    return f"t={ts},v1={sig}"


def test_minor_units():
    assert stripe_checkout.to_minor_units(Decimal("132.00")) == 13200
    assert stripe_checkout.to_minor_units(Decimal("0.285")) == 29


def test_create_session_params(monkeypatch):
    monkeypatch.setenv("STRIPE_SECRET_KEY", "sk_test_x")
    seen = {}

    def fake_create(**kwargs):
        seen.update(kwargs)
        return SimpleNamespace(id="cs_1", url="https://pay.test/cs_1")

    monkeypatch.setattr(stripe.checkout.Session, "create", fake_create)
    session = stripe_checkout.create_checkout_session(
        Decimal("165.00"), email="a@b.c", currency="gbp",
        product_name="Consolidated Utility Bill", frontend_url="https://app.test",
        metadata={"monthly_invoice_id": 7},
    )

    assert session == {"id": "cs_1", "url": "https://pay.test/cs_1"}
    assert seen["api_key"] == "sk_test_x"
    assert seen["mode"] == "payment"
    item = seen["line_items"][0]
    assert item["price_data"]["unit_amount"] == 16500
    assert item["price_data"]["currency"] == "gbp"
    assert item["quantity"] == 1
    assert seen["customer_email"] == "a@b.c"
    assert seen["success_url"] == "https://app.test/payment-success"
    assert seen["metadata"] == {"monthly_invoice_id": "7"}


def test_create_session_without_email_omits_customer_email(monkeypatch):
    monkeypatch.setenv("STRIPE_SECRET_KEY", "sk_test_x")
    seen = {}

    def fake_create(**kwargs):
        seen.update(kwargs)
        return SimpleNamespace(id="cs_2", url="https://pay.test/cs_2")

    monkeypatch.setattr(stripe.checkout.Session, "create", fake_create)
    stripe_checkout.create_checkout_session(
        Decimal("1.00"), email=None, currency="gbp", product_name="p", frontend_url="",
    )
    assert "customer_email" not in seen


def test_create_session_api_error(monkeypatch):
    monkeypatch.setenv("STRIPE_SECRET_KEY", "sk_test_x")

    def fake_create(**kwargs):
        raise stripe.InvalidRequestError("Invalid currency: xxx", "currency")

    monkeypatch.setattr(stripe.checkout.Session, "create", fake_create)
    with pytest.raises(PaymentProviderError, match="Invalid currency"):
        stripe_checkout.create_checkout_session(
            Decimal("1.00"), email=None, currency="xxx", product_name="p", frontend_url="",
        )


def test_create_session_connection_error(monkeypatch):
    monkeypatch.setenv("STRIPE_SECRET_KEY", "sk_test_x")

    def fake_create(**kwargs):
        raise stripe.APIConnectionError("Request timed out")

    monkeypatch.setattr(stripe.checkout.Session, "create", fake_create)
    with pytest.raises(StripeUnreachable):
        stripe_checkout.create_checkout_session(
            Decimal("1.00"), email=None, currency="gbp", product_name="p", frontend_url="",
        )


def test_create_session_not_configured(monkeypatch):
    monkeypatch.delenv("STRIPE_SECRET_KEY", raising=False)
    with pytest.raises(StripeNotConfigured):
        stripe_checkout.create_checkout_session(
            Decimal("1.00"), email=None, currency="gbp", product_name="p", frontend_url="",
        )


def test_webhook_valid_signature(monkeypatch):
    monkeypatch.setenv("STRIPE_WEBHOOK_SECRET", "whsec_test")
    payload = b'{"type": "checkout.session.completed"}'
    header = _signed(payload, "whsec_test", int(time.time()))

    assert stripe_checkout.verify_webhook(payload, header)["type"] == "checkout.session.completed"


def test_webhook_stale_timestamp(monkeypatch):
    monkeypatch.setenv("STRIPE_WEBHOOK_SECRET", "whsec_test")
    payload = b'{"type": "x"}'
    header = _signed(payload, "whsec_test", int(time.time()) - stripe_checkout.SIGNATURE_TOLERANCE_S - 60)

    with pytest.raises(InvalidWebhookSignature):
        stripe_checkout.verify_webhook(payload, header)


def test_webhook_wrong_secret(monkeypatch):
    monkeypatch.setenv("STRIPE_WEBHOOK_SECRET", "whsec_test")
    payload = b'{"type": "x"}'
    header = _signed(payload, "whsec_other", int(time.time()))

    with pytest.raises(InvalidWebhookSignature):
        stripe_checkout.verify_webhook(payload, header)


def test_webhook_malformed_header(monkeypatch):
    monkeypatch.setenv("STRIPE_WEBHOOK_SECRET", "whsec_test")
    with pytest.raises(InvalidWebhookSignature):
        stripe_checkout.verify_webhook(b"{}", "garbage")
    with pytest.raises(InvalidWebhookSignature):
        stripe_checkout.verify_webhook(b"{}", None)


def test_webhook_not_configured(monkeypatch):
    monkeypatch.delenv("STRIPE_WEBHOOK_SECRET", raising=False)
    with pytest.raises(StripeNotConfigured):
        stripe_checkout.verify_webhook(b"{}", "t=1,v1=abc")

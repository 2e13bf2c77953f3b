from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Optional

import json
import os

import stripe

from bill_intake.errors import PaymentProviderError

SIGNATURE_TOLERANCE_S = 300


class StripeNotConfigured(PaymentProviderError):
    pass


class StripeUnreachable(PaymentProviderError):
    pass


class InvalidWebhookSignature(PaymentProviderError):
    pass


def get_secret_key() -> Optional[str]:
    return os.getenv("STRIPE_SECRET_KEY") or None


def get_webhook_secret() -> Optional[str]:
    return os.getenv("STRIPE_WEBHOOK_SECRET") or None


def to_minor_units(amount: Decimal) -> int:
    return int((Decimal(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def create_checkout_session(
    amount: Decimal,
    *,
    email: Optional[str],
    currency: str,
    product_name: str,
    frontend_url: str,
    metadata: Optional[Dict[str, Any]] = None,
    timeout_s: float = 10.0,
) -> Dict[str, Any]:
    """Create a one-line-item card checkout session. Returns {"id", "url"}."""
    secret_key = get_secret_key()
    if not secret_key:
        raise StripeNotConfigured("Stripe is not configured. Set STRIPE_SECRET_KEY (env or .env).")

    params: Dict[str, Any] = {
        "payment_method_types": ["card"],
        "mode": "payment",
        "line_items": [
            {
                "price_data": {
                    "currency": currency,
                    "product_data": {"name": product_name},
                    "unit_amount": to_minor_units(amount),
                },
                "quantity": 1,
            }
        ],
        "success_url": f"{frontend_url}/payment-success",
        "cancel_url": f"{frontend_url}/payment-cancelled",
        "metadata": {key: str(value) for key, value in (metadata or {}).items()},
    }
    if email:
        params["customer_email"] = email

    stripe.default_http_client = stripe.RequestsClient(timeout=timeout_s)
    try:
        session = stripe.checkout.Session.create(api_key=secret_key, **params)
    except stripe.APIConnectionError as e:
        raise StripeUnreachable(f"Stripe unreachable: {e.user_message or e}") from e
    except stripe.StripeError as e:
        raise PaymentProviderError(f"Stripe checkout failed: {e.user_message or e}") from e

    return {"id": session.id, "url": session.url}


def verify_webhook(payload: bytes, signature_header: Optional[str]) -> Dict[str, Any]:
    """
    Check a `Stripe-Signature` header against the raw body and return the event as a dict.

    Signatures older than SIGNATURE_TOLERANCE_S are rejected.
    """
    secret = get_webhook_secret()
    if not secret:
        raise StripeNotConfigured("Stripe webhook secret is not configured. Set STRIPE_WEBHOOK_SECRET.")
    if not signature_header:
        raise InvalidWebhookSignature("Missing Stripe-Signature header")

    try:
        stripe.Webhook.construct_event(payload, signature_header, secret, tolerance=SIGNATURE_TOLERANCE_S)
    except stripe.SignatureVerificationError as e:
        raise InvalidWebhookSignature(str(e)) from e
    except ValueError as e:
        raise InvalidWebhookSignature("Webhook payload is not JSON") from e

    return json.loads(payload.decode("utf-8"))

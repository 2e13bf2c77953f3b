"""
Payment routes.

Checkout is a one-way hand-off to Stripe: the monthly row is read, a session
is created and the client is redirected. The row only becomes paid when the
signed checkout.session.completed webhook arrives.
"""

from __future__ import annotations

import logging

from flask import Blueprint, current_app, jsonify, request

from bill_intake.errors import PaymentProviderError, PersistenceFailure
from bill_intake.models import PaymentStatus
from routes.common import billing, current_user_id, error_response
from services import stripe_checkout
from services.stripe_checkout import InvalidWebhookSignature, StripeNotConfigured, StripeUnreachable

payments_api_bp = Blueprint("payments_api", __name__)
logger = logging.getLogger(__name__)


@payments_api_bp.post("/api/payments/checkout-session")
def create_checkout_session():
    user_id = current_user_id()
    if not user_id:
        return error_response("Missing X-User-Id", 401)

    payload = request.get_json(silent=True) or {}
    try:
        monthly_id = int(payload.get("monthly_invoice_id"))
    except (TypeError, ValueError):
        return error_response("monthly_invoice_id required", 400)

    store = billing()["store"]
    try:
        aggregate = store.get_monthly_by_id(user_id, monthly_id)
        email = payload.get("email")
        if not email:
            profile = store.get_user_profile(user_id) or {}
            email = profile.get("email")
    except PersistenceFailure:
        logger.exception("Checkout lookup failed")
        return error_response("Error reading monthly invoice", 500)

    if aggregate is None:
        return error_response("Monthly invoice not found", 404)
    if aggregate.paid_status is PaymentStatus.PAID:
        return error_response("Monthly invoice is already paid", 409)
    if not aggregate.total_cost_with_markup:
        return error_response("Monthly invoice has no amount to pay", 400)

    pay_cfg = current_app.config.get("APP_CFG", {}).get("payments", {})
    try:
        session = stripe_checkout.create_checkout_session(
            aggregate.total_cost_with_markup,
            email=email,
            currency=pay_cfg.get("currency", "gbp"),
            product_name=pay_cfg.get("product_name", "Consolidated Utility Bill"),
            frontend_url=pay_cfg.get("frontend_url", ""),
            metadata={"monthly_invoice_id": aggregate.id, "user_id": user_id},
        )
    except StripeNotConfigured as e:
        return error_response(str(e), 503)
    except StripeUnreachable:
        return error_response("Payment provider unreachable", 504)
    except PaymentProviderError:
        logger.exception("Stripe session error")
        return error_response("Stripe checkout failed", 502)

    logger.info("Checkout session %s created for monthly invoice %s", session.get("id"), aggregate.id)
    return jsonify({"success": True, "url": session.get("url")}), 200


@payments_api_bp.post("/api/payments/webhook")
def payment_webhook():
    try:
        event = stripe_checkout.verify_webhook(request.get_data(), request.headers.get("Stripe-Signature"))
    except StripeNotConfigured as e:
        return error_response(str(e), 503)
    except InvalidWebhookSignature as e:
        logger.warning("Rejected payment webhook: %s", e)
        return error_response(str(e), 400)

    if event.get("type") != "checkout.session.completed":
        return jsonify({"received": True, "ignored": event.get("type")}), 200

    session = (event.get("data") or {}).get("object") or {}
    metadata = session.get("metadata") or {}
    try:
        monthly_id = int(metadata.get("monthly_invoice_id"))
    except (TypeError, ValueError):
        return error_response("Session metadata has no monthly_invoice_id", 400)

    try:
        aggregate = billing()["store"].mark_monthly_paid(monthly_id)
    except PersistenceFailure:
        logger.exception("Could not mark monthly invoice %s paid", monthly_id)
        return error_response("Error recording payment", 500)
    if aggregate is None:
        return error_response("Monthly invoice not found", 404)

    logger.info("Monthly invoice %s marked paid", monthly_id)
    return jsonify({"received": True, "monthly_invoice_id": monthly_id, "paid_status": aggregate.paid_status.value}), 200

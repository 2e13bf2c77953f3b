from __future__ import annotations

from flask import Blueprint, current_app, jsonify

from services.stripe_checkout import get_secret_key

config_api_bp = Blueprint("config_api", __name__)


@config_api_bp.get("/api/config")
def get_config():
    """
    Return client-facing configuration.
    Used by the frontend to decide whether to offer card payment.
    """
    policy = current_app.extensions["bill_intake"]["ingestion"].cost_policy
    return jsonify({
        "paymentsEnabled": bool(get_secret_key()),
        "markupRate": float(policy.markup_rate),
    })

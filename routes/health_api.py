from __future__ import annotations

from flask import Blueprint, jsonify

health_bp = Blueprint("health", __name__)


@health_bp.route("/health")
def health_check():
    """
    Health check endpoint for deployment monitoring.

    Returns immediately without database dependency so workers report alive
    before the database is reachable.
    """
    return jsonify({"status": "ok", "service": "utility-billing"}), 200

"""Helpers shared by the billing blueprints."""

from __future__ import annotations

import logging
import threading

from flask import current_app, jsonify, request

from bill_intake.errors import PersistenceFailure

logger = logging.getLogger(__name__)

_store_init_lock = threading.Lock()


def billing():
    """Services wired onto the app in create_app()."""
    return current_app.extensions["bill_intake"]


def current_user_id():
    """The authenticated user id forwarded by the gateway, or None."""
    user_id = (request.headers.get("X-User-Id") or "").strip()
    return user_id or None


def error_response(message, status):
    return jsonify({"success": False, "error": message}), status


def ensure_store_initialized() -> bool:
    """Create tables on first use rather than at startup, so the app boots without a database."""
    services = billing()
    if services.get("store_initialized"):
        return True
    with _store_init_lock:
        if services.get("store_initialized"):
            return True
        try:
            services["store"].init_schema()
        except PersistenceFailure as e:
            logger.warning("Could not initialize billing tables: %s", e)
            return False
        services["store_initialized"] = True
        logger.info("Billing tables initialized (lazy)")
        return True


STORE_BACKED_PREFIXES = ("/api/invoices", "/api/account", "/api/payments")


def init_store_on_demand():
    """before_request hook: 503 for store-backed routes while the database is unreachable."""
    if request.path.startswith(STORE_BACKED_PREFIXES):
        if not ensure_store_initialized():
            return error_response("Billing database is not configured/reachable. Set DATABASE_URL.", 503)
    return None

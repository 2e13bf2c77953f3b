from __future__ import annotations

import logging

from flask import Blueprint, jsonify, request

from bill_intake.errors import PersistenceFailure
from bill_intake.validation import validate_profile
from routes.common import billing, current_user_id, error_response

account_api_bp = Blueprint("account_api", __name__)
logger = logging.getLogger(__name__)


@account_api_bp.get("/api/account")
def get_account():
    user_id = current_user_id()
    if not user_id:
        return error_response("Missing X-User-Id", 401)
    try:
        profile = billing()["store"].get_user_profile(user_id)
    except PersistenceFailure:
        logger.exception("Error fetching account info")
        return error_response("Error fetching account info", 500)
    if profile is None:
        return error_response("User not found", 404)
    return jsonify(profile), 200


@account_api_bp.put("/api/account")
def update_account():
    user_id = current_user_id()
    if not user_id:
        return error_response("Missing X-User-Id", 401)

    cleaned, errors = validate_profile(request.get_json(silent=True))
    if errors:
        return error_response("; ".join(errors), 400)

    try:
        profile = billing()["store"].update_user_profile(user_id, cleaned)
    except PersistenceFailure:
        logger.exception("Error updating account info")
        return error_response("Error updating account info", 500)
    return jsonify({"success": True, "message": "Account updated successfully", "account": profile}), 200

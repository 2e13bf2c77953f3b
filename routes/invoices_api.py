"""Invoice upload, consolidation and monthly ledger routes."""

from __future__ import annotations

import logging
import os
import uuid
from datetime import datetime

from flask import Blueprint, jsonify, request
from werkzeug.utils import secure_filename

from bill_intake.errors import IngestionError, PersistenceFailure
from bill_intake.ingestion import remove_upload
from bill_intake.models import UtilityType
from routes.common import billing, current_user_id, error_response

invoices_bp = Blueprint("invoices", __name__)
logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {"pdf"}


@invoices_bp.post("/api/invoices/upload")
def upload_invoice():
    """Upload a bill PDF and ingest it. The saved upload is removed once ingestion finishes."""
    user_id = current_user_id()
    if not user_id:
        return error_response("Missing X-User-Id", 401)

    file = request.files.get("invoice") or request.files.get("file")
    if file is None:
        return error_response("No file uploaded", 400)
    if not file.filename:
        return error_response("No file selected", 400)
    if "." not in file.filename or file.filename.rsplit(".", 1)[1].lower() not in ALLOWED_EXTENSIONS:
        return error_response("Allowed file types: PDF", 400)

    try:
        utility_type = UtilityType.parse(request.form.get("utilityType"))
    except ValueError as e:
        return error_response(str(e), 400)

    services = billing()
    uploads_dir = services["uploads_dir"]
    os.makedirs(uploads_dir, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    unique_filename = (
        f"{secure_filename(user_id) or 'user'}_{timestamp}_{uuid.uuid4().hex[:8]}_"
        f"{secure_filename(file.filename) or 'invoice.pdf'}"
    )
    file_path = os.path.join(uploads_dir, unique_filename)

    try:
        try:
            file.save(file_path)
        except OSError:
            logger.exception("Could not save upload %s", file_path)
            return error_response("Failed to store upload", 500)
        report = services["ingestion"].ingest_upload(user_id, utility_type, file_path)
    except IngestionError as e:
        status = 422 if e.reason == IngestionError.UNREADABLE_DOCUMENT else 500
        return error_response(f"Failed to process invoice: {e.reason}", status)
    finally:
        remove_upload(file_path)

    body = {"success": True, "message": "Invoice uploaded and processed successfully"}
    body.update(report.to_dict())
    return jsonify(body), 201


@invoices_bp.post("/api/invoices/consolidate")
def consolidate_invoices():
    user_id = current_user_id()
    if not user_id:
        return error_response("Missing X-User-Id", 401)
    try:
        aggregates = billing()["consolidation"].consolidate(user_id)
    except PersistenceFailure:
        logger.exception("Consolidation failed for user %s", user_id)
        return error_response("Error consolidating invoices", 500)
    return jsonify({
        "success": True,
        "message": "Monthly invoices consolidated",
        "data": [a.to_dict() for a in aggregates],
    })


@invoices_bp.get("/api/invoices/monthly")
def list_monthly_invoices():
    user_id = current_user_id()
    if not user_id:
        return error_response("Missing X-User-Id", 401)
    try:
        ledger = billing()["ledger"].list(user_id)
    except PersistenceFailure:
        logger.exception("Fetching monthly invoices failed for user %s", user_id)
        return error_response("Error fetching monthly invoices", 500)
    return jsonify({"success": True, "invoices": [row.to_dict() for row in ledger]})

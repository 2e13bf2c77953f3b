"""
Utility Billing - Flask Backend
===============================

OVERVIEW:
Accepts uploaded utility bills, pulls billing facts out of their text, applies
the markup policy and stores one invoice per document. Invoices are rolled up
on demand into monthly rows that the client lists and pays.

API ENDPOINTS:
- POST /api/invoices/upload               - Upload + ingest one bill PDF
- POST /api/invoices/consolidate          - Rebuild the caller's monthly rows
- GET  /api/invoices/monthly              - Monthly rows, newest first
- GET  /api/account, PUT /api/account     - Profile
- POST /api/payments/checkout-session     - Start card payment for a monthly row
- POST /api/payments/webhook              - Stripe payment completion
- GET  /api/config, GET /health

IDENTITY:
- The gateway in front of this service authenticates callers and forwards the
  user id as X-User-Id. This service trusts it.
"""

import logging

# Load environment variables from .env file (if it exists) before reading config.
try:
    from dotenv import load_dotenv, find_dotenv
    _dotenv_path = find_dotenv(usecwd=True)
    if _dotenv_path:
        load_dotenv(dotenv_path=_dotenv_path, override=False)
except ImportError:
    pass

from flask import Flask
from flask_cors import CORS

from bill_intake.consolidation import ConsolidationService
from bill_intake.db.connection import get_pool
from bill_intake.db.store import PostgresBillingStore
from bill_intake.extraction.text import PdfTextExtractor
from bill_intake.ingestion import IngestionService
from bill_intake.ledger import MonthlyLedgerReader
from bill_intake.pricing import CostPolicy
from config_loader import get_config
from logging_setup import init_request_logging, setup_logging
from routes.account_api import account_api_bp
from routes.common import init_store_on_demand
from routes.config_api import config_api_bp
from routes.health_api import health_bp
from routes.invoices_api import invoices_bp
from routes.payments_api import payments_api_bp

logger = logging.getLogger(__name__)


def create_app(cfg=None, *, store=None, text_extractor=None) -> Flask:
    """
    Build the Flask app.

    `store` and `text_extractor` default to PostgreSQL (pooled) and PyMuPDF.
    """
    cfg = cfg if cfg is not None else get_config()
    setup_logging(cfg)

    app = Flask(__name__, static_folder=None)
    app.config["APP_CFG"] = cfg
    app.config["MAX_CONTENT_LENGTH"] = int(cfg.get("app", {}).get("max_upload_mb", 10)) * 1024 * 1024
    CORS(app, origins=cfg.get("app", {}).get("cors", {}).get("origins", "*"))
    init_request_logging(app)
    app.before_request(init_store_on_demand)

    store = store or PostgresBillingStore(get_pool(cfg))
    ingestion = IngestionService(
        store,
        text_extractor or PdfTextExtractor(),
        cost_policy=CostPolicy.from_config(cfg),
    )
    app.extensions["bill_intake"] = {
        "store": store,
        "ingestion": ingestion,
        "consolidation": ConsolidationService(store),
        "ledger": MonthlyLedgerReader(store),
        "uploads_dir": str(cfg.get("billing", {}).get("uploads_dir", "uploads")),
    }

    app.register_blueprint(health_bp)
    app.register_blueprint(config_api_bp)
    app.register_blueprint(invoices_bp)
    app.register_blueprint(account_api_bp)
    app.register_blueprint(payments_api_bp)

    logger.info("App ready (markup_rate=%s)", ingestion.cost_policy.markup_rate)
    return app


app = create_app()

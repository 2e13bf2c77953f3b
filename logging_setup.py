"""
Central logging setup.

- stdlib logging configured through dictConfig
- every record carries `request_id` (the X-Request-Id of the current request, or "-")
"""

from __future__ import annotations

import logging
import logging.config
import time
import uuid
from typing import Any, Dict, Optional

from flask import Flask, g, has_request_context, request

DEFAULT_FORMAT = "%(asctime)s %(levelname)s %(name)s [%(request_id)s] %(message)s"


class RequestIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        request_id = None
        if has_request_context():
            request_id = getattr(g, "request_id", None)
        record.request_id = request_id or "-"
        return True


def setup_logging(cfg: Optional[Dict[str, Any]] = None) -> None:
    cfg = cfg or {}
    log_cfg = cfg.get("logging", {}) if isinstance(cfg, dict) else {}
    level = str(log_cfg.get("level", "INFO")).upper()
    fmt = str(log_cfg.get("format", DEFAULT_FORMAT))

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "filters": {"request_id": {"()": RequestIdFilter}},
            "formatters": {"default": {"format": fmt}},
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                    "filters": ["request_id"],
                }
            },
            "root": {"handlers": ["console"], "level": level},
        }
    )


def init_request_logging(app: Flask) -> None:
    logger = logging.getLogger("http")

    @app.before_request
    def _start_request_timer() -> None:
        g._request_start = time.time()
        g.request_id = request.headers.get("X-Request-Id") or str(uuid.uuid4())

    @app.after_request
    def _log_request(response):  # type: ignore[no-untyped-def]
        start = getattr(g, "_request_start", None)
        dur_ms = None if start is None else round((time.time() - start) * 1000, 2)
        logger.info(
            "%s %s status=%s dur_ms=%s user=%s",
            request.method,
            request.path,
            response.status_code,
            dur_ms,
            request.headers.get("X-User-Id", "-"),
        )
        response.headers["X-Request-Id"] = getattr(g, "request_id", "")
        return response

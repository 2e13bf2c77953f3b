"""
YAML-backed configuration loader with environment-variable overrides.

- Defaults live in config.yml (missing file means built-in defaults)
- Environment variables override deployment-specific values
- Secrets (DATABASE_URL, STRIPE_*) are read from the environment only
"""

from __future__ import annotations

import os
from typing import Any, Dict, Optional

import yaml

DEFAULTS: Dict[str, Any] = {
    "app": {"cors": {"origins": "*"}, "max_upload_mb": 10},
    "logging": {"level": "INFO"},
    "database": {"pool_min": 1, "pool_max": 10},
    "billing": {"markup_rate": "0.10", "uploads_dir": "uploads"},
    "payments": {"currency": "gbp", "product_name": "Consolidated Utility Bill", "frontend_url": "http://localhost:3000"},
}


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge override into base (override wins)."""
    out: Dict[str, Any] = dict(base)
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _deep_merge(out[k], v)
        else:
            out[k] = v
    return out


def _parse_int(value: Optional[str]) -> Optional[int]:
    if value is None or not value.strip():
        return None
    try:
        return int(value.strip())
    except ValueError:
        return None


def _env_override_dict() -> Dict[str, Any]:
    """
    Map env vars to config keys.
    Keep this small and explicit.
    """
    overrides: Dict[str, Any] = {}

    cors_origins = os.getenv("CORS_ORIGINS")
    if cors_origins:
        origins = [o.strip() for o in cors_origins.split(",") if o.strip()]
        overrides = _deep_merge(overrides, {"app": {"cors": {"origins": origins}}})

    log_level = os.getenv("LOG_LEVEL")
    if log_level:
        overrides = _deep_merge(overrides, {"logging": {"level": log_level}})

    pool_min = _parse_int(os.getenv("DB_POOL_MIN"))
    if pool_min is not None:
        overrides = _deep_merge(overrides, {"database": {"pool_min": pool_min}})
    pool_max = _parse_int(os.getenv("DB_POOL_MAX"))
    if pool_max is not None:
        overrides = _deep_merge(overrides, {"database": {"pool_max": pool_max}})

    markup_rate = os.getenv("BILLING_MARKUP_RATE")
    if markup_rate:
        overrides = _deep_merge(overrides, {"billing": {"markup_rate": markup_rate.strip()}})

    uploads_dir = os.getenv("BILL_UPLOADS_DIR")
    if uploads_dir:
        overrides = _deep_merge(overrides, {"billing": {"uploads_dir": uploads_dir}})

    frontend_url = os.getenv("FRONTEND_URL")
    if frontend_url:
        overrides = _deep_merge(overrides, {"payments": {"frontend_url": frontend_url.rstrip("/")}})

    currency = os.getenv("PAYMENT_CURRENCY")
    if currency:
        overrides = _deep_merge(overrides, {"payments": {"currency": currency.strip().lower()}})

    return overrides


def load_config(path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load config.yml over the defaults and apply environment overrides.
    """
    config_path = path or os.getenv("APP_CONFIG_PATH", "config.yml")
    if not os.path.exists(config_path):
        file_cfg: Dict[str, Any] = {}
    else:
        with open(config_path, "r", encoding="utf-8") as f:
            file_cfg = yaml.safe_load(f) or {}

    return _deep_merge(_deep_merge(DEFAULTS, file_cfg), _env_override_dict())


_CONFIG_CACHE: Optional[Dict[str, Any]] = None


def get_config(path: Optional[str] = None, *, force_reload: bool = False) -> Dict[str, Any]:
    global _CONFIG_CACHE
    if _CONFIG_CACHE is None or force_reload:
        _CONFIG_CACHE = load_config(path)
    return _CONFIG_CACHE

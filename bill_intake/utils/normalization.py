"""
Normalization helpers shared across the bill intake pipeline.

Centralizing these keeps the extractor and the store agreeing on spellings.
"""

from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation
from typing import Optional

# Canonical unit spellings. Grouping in consolidation is by exact unit string,
# so "KWH" and "kWh" must not become two months.
_UNIT_ALIASES = {
    "kwh": "kWh",
    "m3": "m3",
    "m³": "m3",
}


def normalize_unit(raw: Optional[str]) -> Optional[str]:
    if not raw:
        return None
    key = raw.strip().lower()
    return _UNIT_ALIASES.get(key, raw.strip())


def parse_amount(raw: Optional[str]) -> Optional[Decimal]:
    """Parse '1,234.56' style numbers. Thousands separators are stripped; None if unparseable."""
    if raw is None:
        return None
    cleaned = str(raw).replace(",", "").strip()
    if not cleaned:
        return None
    try:
        value = Decimal(cleaned)
    except InvalidOperation:
        return None
    if not value.is_finite():
        return None
    return value


def normalize_account_number(raw):
    """Strip spaces, punctuation; return digits only, or None if nothing usable remains."""
    if not raw:
        return None
    raw_str = str(raw).strip()
    if raw_str.upper() in ("UNKNOWN", "N/A", "NA", "NONE", ""):
        return None
    digits = re.sub(r"[^0-9]", "", raw_str)
    if not digits:
        return None
    return digits


def normalize_provider_name(raw: str | None) -> str | None:
    """Collapse whitespace and trailing punctuation from a provider label."""
    if not raw:
        return None
    name = re.sub(r"\s+", " ", raw).strip().rstrip(",;:.")
    return name or None

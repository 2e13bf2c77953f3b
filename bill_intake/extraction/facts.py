"""
Regex extraction of billing facts from document text.

Every pattern is optional: a miss leaves the field as None and never raises.
Only the first match of each pattern is used.
"""

from __future__ import annotations

import logging
import re
from typing import Optional

from bill_intake.models import ExtractedFacts
from bill_intake.utils.normalization import (
    normalize_account_number,
    normalize_provider_name,
    normalize_unit,
    parse_amount,
)

logger = logging.getLogger(__name__)

# Plain decimal, or comma-grouped thousands. Alternate decimal separators are not supported.
_NUMBER = r"(\d{1,3}(?:,\d{3})+(?:\.\d+)?|\d+(?:\.\d+)?)"
_UNIT = r"(kwh|m3|m³)"

PERIOD_PATTERN = re.compile(r"(\d{2}/\d{2}/\d{4})\s*[-\u2010-\u2015]\s*(\d{2}/\d{2}/\d{4})")

USAGE_PATTERN = re.compile(r"(?<![\d.])" + _NUMBER + r"\s*" + _UNIT + r"(?![A-Za-z0-9])", re.IGNORECASE)

# Amounts quoted per unit are rates, never the bill subtotal.
_PER_UNIT = r"\s*(?:/|per\s+)\s*" + _UNIT
COST_PATTERN = re.compile(r"£\s?" + _NUMBER + r"(?![\d,.]*" + _PER_UNIT + r")", re.IGNORECASE)
RATE_PATTERN = re.compile(r"£\s?" + _NUMBER + _PER_UNIT, re.IGNORECASE)

PROVIDER_PATTERNS = [
    re.compile(r"Supplier\s*:\s*([^\n]{2,80})", re.IGNORECASE),
    re.compile(r"Provider\s*:\s*([^\n]{2,80})", re.IGNORECASE),
]

ACCOUNT_PATTERNS = [
    re.compile(r"Account\s*(?:Number|No\.?|#)\s*:?\s*([0-9][0-9 \-]{2,30}[0-9])", re.IGNORECASE),
    re.compile(r"Acct\.?\s*#?\s*:?\s*([0-9][0-9 \-]{2,30}[0-9])", re.IGNORECASE),
]


def _first_group(patterns, text: str) -> Optional[str]:
    for pattern in patterns:
        match = pattern.search(text)
        if match:
            return match.group(1)
    return None


class FactExtractor:
    """Pulls period, usage/unit, cost, rate, provider and account number out of bill text."""

    def extract(self, text: Optional[str]) -> ExtractedFacts:
        facts = ExtractedFacts()
        if not text:
            return facts

        period = PERIOD_PATTERN.search(text)
        if period:
            facts.period_start, facts.period_end = period.group(1), period.group(2)

        usage = USAGE_PATTERN.search(text)
        if usage:
            facts.usage = parse_amount(usage.group(1))
            facts.unit = normalize_unit(usage.group(2))

        cost = COST_PATTERN.search(text)
        if cost:
            facts.subtotal = parse_amount(cost.group(1))

        rate = RATE_PATTERN.search(text)
        if rate:
            facts.rate_per_unit = parse_amount(rate.group(1))

        facts.provider_name = normalize_provider_name(_first_group(PROVIDER_PATTERNS, text))
        facts.account_number = normalize_account_number(_first_group(ACCOUNT_PATTERNS, text))

        logger.debug(
            "Extracted facts: period=%s..%s usage=%s %s subtotal=%s rate=%s",
            facts.period_start,
            facts.period_end,
            facts.usage,
            facts.unit,
            facts.subtotal,
            facts.rate_per_unit,
        )
        return facts


def extract_facts(text: Optional[str]) -> ExtractedFacts:
    return FactExtractor().extract(text)

"""Validation helpers for extracted bill facts and profile payloads."""

from __future__ import annotations

import re


def validate_extraction(facts, subtotal=None):
    """
    Report which billing facts the document did not yield.

    Missing facts are not errors; the list lets a client prompt the user to
    fill them in by hand. `subtotal` overrides the extracted one when it was
    computed from usage x rate.

    Returns:
        {
            'is_valid': bool,
            'missing_fields': list of strings describing what's missing
        }
    """
    missing_fields = []

    if facts is None:
        return {"is_valid": False, "missing_fields": ["No extraction data"]}

    if not facts.period_start or not facts.period_end:
        missing_fields.append("missing billing_period")
    if facts.usage is None:
        missing_fields.append("missing usage")
    if (subtotal if subtotal is not None else facts.subtotal) is None:
        missing_fields.append("missing subtotal")

    return {"is_valid": len(missing_fields) == 0, "missing_fields": missing_fields}


_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+$")
_PROFILE_LIMITS = {"name": 255, "email": 255, "address": 2000, "postcode": 16}


def validate_profile(payload):
    """
    Check an account profile update. Returns (cleaned, errors).

    Only name/email/address/postcode are accepted; everything else is ignored.
    """
    errors = []
    cleaned = {}
    if not isinstance(payload, dict):
        return {}, ["request body must be a JSON object"]

    for field, limit in _PROFILE_LIMITS.items():
        value = payload.get(field)
        if value is None:
            cleaned[field] = None
            continue
        if not isinstance(value, str):
            errors.append(f"{field} must be a string")
            continue
        value = value.strip()
        if len(value) > limit:
            errors.append(f"{field} is longer than {limit} characters")
        cleaned[field] = value or None

    if not cleaned.get("email"):
        errors.append("email is required")
    elif not _EMAIL_RE.match(cleaned["email"]):
        errors.append("email is not valid")

    if cleaned.get("postcode"):
        cleaned["postcode"] = cleaned["postcode"].upper()

    return cleaned, errors

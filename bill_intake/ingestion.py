"""
Ingestion Service
=================
One uploaded document becomes one invoice row:

    document -> text -> facts -> markup -> insert -> report

Pattern misses are not failures. Only an unreadable document or a failed
insert aborts, and neither leaves a row behind. The uploaded file is removed
on every exit path.
"""

from __future__ import annotations

import logging
import os
from typing import Optional, Union

from bill_intake.errors import ExtractionFailure, IngestionError, PersistenceFailure
from bill_intake.extraction.facts import FactExtractor
from bill_intake.models import IngestedInvoiceReport, InvoiceRecord, UtilityType
from bill_intake.pricing import CostPolicy
from bill_intake.validation import validate_extraction

logger = logging.getLogger(__name__)

ENERGY_UNIT = "kWh"
VOLUME_UNIT = "m3"


def default_unit_for(utility_type: UtilityType) -> str:
    return VOLUME_UNIT if utility_type is UtilityType.WATER else ENERGY_UNIT


class IngestionService:
    """Extract, price and persist a single utility bill."""

    def __init__(self, store, text_extractor, fact_extractor: Optional[FactExtractor] = None,
                 cost_policy: Optional[CostPolicy] = None):
        self.store = store
        self.text_extractor = text_extractor
        self.fact_extractor = fact_extractor or FactExtractor()
        self.cost_policy = cost_policy or CostPolicy()

    def ingest(self, user_id: str, utility_type: Union[str, UtilityType, None], document: bytes) -> IngestedInvoiceReport:
        """
        Ingest an in-memory document for `user_id`.

        Raises:
            ValueError: unknown utility type
            IngestionError: unreadable document or storage failure
        """
        utility = utility_type if isinstance(utility_type, UtilityType) else UtilityType.parse(utility_type)

        try:
            text = self.text_extractor.extract_text(document)
        except ExtractionFailure as e:
            logger.warning("Unreadable document for user %s: %s", user_id, e)
            raise IngestionError(IngestionError.UNREADABLE_DOCUMENT, str(e)) from e

        facts = self.fact_extractor.extract(text)
        unit_type = facts.unit or default_unit_for(utility)

        subtotal = facts.subtotal
        if subtotal is None:
            subtotal = self.cost_policy.subtotal_from_rate(facts.usage, facts.rate_per_unit)
        cost = self.cost_policy.apply(subtotal)

        record = InvoiceRecord(
            user_id=user_id,
            utility_type=utility.value,
            provider_name=facts.provider_name,
            account_number=facts.account_number,
            billing_period_start=facts.period_start,
            billing_period_end=facts.period_end,
            usage=facts.usage,
            unit_type=unit_type,
            rate_per_unit=facts.rate_per_unit,
            subtotal=cost.subtotal,
            markup=cost.markup,
            total_cost=cost.total,
        )

        try:
            stored = self.store.insert_invoice(record)
        except PersistenceFailure as e:
            logger.error("Invoice insert failed for user %s: %s", user_id, e)
            raise IngestionError(IngestionError.STORAGE_FAILURE, str(e)) from e

        validation = validate_extraction(facts, subtotal=cost.subtotal)
        logger.info(
            "Ingested invoice id=%s user=%s type=%s period=%s..%s total=%s missing=%s",
            stored.id,
            user_id,
            utility.value,
            facts.period_start,
            facts.period_end,
            cost.total,
            validation["missing_fields"],
        )
        return IngestedInvoiceReport(
            invoice_id=stored.id,
            utility_type=utility.value,
            facts=facts,
            unit_type=unit_type,
            subtotal=cost.subtotal,
            markup=cost.markup,
            total_cost=cost.total,
            missing_fields=validation["missing_fields"],
        )

    def ingest_upload(self, user_id: str, utility_type, upload_path: str) -> IngestedInvoiceReport:
        """Ingest a document saved to disk, deleting it afterwards whatever happens."""
        try:
            try:
                with open(upload_path, "rb") as f:
                    document = f.read()
            except OSError as e:
                raise IngestionError(IngestionError.UNREADABLE_DOCUMENT, str(e)) from e
            return self.ingest(user_id, utility_type, document)
        finally:
            remove_upload(upload_path)


def remove_upload(path: str) -> None:
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.error("Could not remove uploaded file %s: %s", path, e)

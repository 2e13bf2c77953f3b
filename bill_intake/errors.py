"""Exception types raised by the bill intake pipeline."""

from __future__ import annotations


class BillIntakeError(RuntimeError):
    pass


class ExtractionFailure(BillIntakeError):
    """The document text could not be recovered."""


class PersistenceFailure(BillIntakeError):
    """A read or write against the store failed."""


class PaymentProviderError(BillIntakeError):
    pass


class IngestionError(BillIntakeError):
    """Ingestion aborted. `reason` is safe to show to the caller."""

    UNREADABLE_DOCUMENT = "unreadable document"
    STORAGE_FAILURE = "storage failure"

    def __init__(self, reason: str, detail: str | None = None):
        self.reason = reason
        self.detail = detail
        super().__init__(f"{reason}: {detail}" if detail else reason)

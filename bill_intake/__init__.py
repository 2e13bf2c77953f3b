"""
Bill Intake
===========
Document ingestion and monthly consolidation for utility bills.

Uploaded documents are reduced to text, billing facts are pulled out with a
small set of regular expressions, a flat markup is applied and one invoice row
is written. Consolidation later folds a user's invoices into one row per
(year, month, unit).
"""

from .consolidation import ConsolidationService
from .ingestion import IngestionService
from .ledger import MonthlyLedgerReader
from .pricing import CostPolicy

__all__ = ['IngestionService', 'ConsolidationService', 'MonthlyLedgerReader', 'CostPolicy']

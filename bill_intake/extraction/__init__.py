from .facts import FactExtractor, extract_facts
from .text import PdfTextExtractor

__all__ = ['FactExtractor', 'extract_facts', 'PdfTextExtractor']

"""
Document Text Extraction
========================
Recovers native text from uploaded PDF bills with PyMuPDF.

Scanned (image-only) documents are not OCR'd; they come back as empty text
and the fact extractor simply finds nothing.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict

import pymupdf  # PyMuPDF 1.26+ uses pymupdf, not fitz

from bill_intake.errors import ExtractionFailure

logger = logging.getLogger(__name__)


@dataclass
class TextExtractionResult:
    """Result of text extraction."""
    text: str
    metadata: Dict[str, Any]


class PdfTextExtractor:
    """
    Text extraction collaborator for the ingestion service.

    `extract_text(document_bytes)` returns the concatenated page text or raises
    ExtractionFailure when the bytes are not a readable PDF.
    """

    PDF_MAGIC = b"%PDF"

    def extract(self, document: bytes) -> TextExtractionResult:
        if not document:
            raise ExtractionFailure("Empty document")
        if document.lstrip()[:4] != self.PDF_MAGIC:
            raise ExtractionFailure("Document is not a PDF")

        try:
            doc = pymupdf.open(stream=document, filetype="pdf")
        except Exception as e:
            raise ExtractionFailure(f"PDF could not be opened: {e}") from e

        try:
            if doc.needs_pass:
                raise ExtractionFailure("PDF is password protected")
            page_count = len(doc)
            if page_count == 0:
                raise ExtractionFailure("PDF has no pages")
            text_parts = []
            for page in doc:
                text = page.get_text("text")
                if text:
                    text_parts.append(text)
        except ExtractionFailure:
            raise
        except Exception as e:
            raise ExtractionFailure(f"PDF text could not be read: {e}") from e
        finally:
            doc.close()

        text = "\n".join(text_parts)
        char_count = len(text.strip())
        logger.info("PDF native text: %s chars across %s page(s)", char_count, page_count)
        return TextExtractionResult(
            text=text,
            metadata={"method": "pdf_native", "pages": page_count, "char_count": char_count},
        )

    def extract_text(self, document: bytes) -> str:
        return self.extract(document).text

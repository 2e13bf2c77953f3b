"""Tests for PDF text extraction with PyMuPDF, using PDFs built in memory."""

import pymupdf
import pytest

from bill_intake.errors import ExtractionFailure
from bill_intake.extraction.text import PdfTextExtractor


def _pdf_with_text(*lines):
    doc = pymupdf.open()
    page = doc.new_page()
    y = 72
    for line in lines:
        page.insert_text((72, y), line)
        y += 18
    data = doc.tobytes()
    doc.close()
    return data


def test_extracts_native_text():
    pdf = _pdf_with_text("Billing period 01/04/2024 - 30/04/2024", "Usage 350.5 kWh")
    result = PdfTextExtractor().extract(pdf)
    assert "01/04/2024 - 30/04/2024" in result.text
    assert "350.5 kWh" in result.text
    assert result.metadata["pages"] == 1


def test_blank_pdf_gives_empty_text():
    doc = pymupdf.open()
    doc.new_page()
    data = doc.tobytes()
    doc.close()
    assert PdfTextExtractor().extract_text(data).strip() == ""


@pytest.mark.parametrize("payload", [b"", b"hello world", b"%PDF-1.7 truncated garbage"])
def test_unreadable_documents(payload):
    with pytest.raises(ExtractionFailure):
        PdfTextExtractor().extract_text(payload)

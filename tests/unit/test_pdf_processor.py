"""Unit tests for the PDF processor."""

from io import BytesIO
from unittest.mock import Mock, patch

import pytest
from PyPDF2 import PdfWriter

from pdfbot.exceptions import PDFExtractionError
from pdfbot.services.pdf_processor import PDFProcessor
from tests.fakes import make_pdf


def _blank_pdf() -> bytes:
    writer = PdfWriter()
    writer.add_blank_page(width=72, height=72)
    buffer = BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


@pytest.mark.unit
def test_extract_text_joins_pages_with_blank_lines(fake_pdf_reader) -> None:
    processor = PDFProcessor()

    text, page_count = processor.extract_text(make_pdf("Page one", "Page   two\r\nmore"), "doc.pdf")

    assert page_count == 2
    assert text == "Page one\n\nPage two\nmore"


@pytest.mark.unit
def test_extract_pages_skips_empty_pages_and_keeps_page_numbers(fake_pdf_reader) -> None:
    processor = PDFProcessor()

    pages, total = processor.extract_pages(make_pdf("first", "   ", "third"), "doc.pdf")

    assert total == 3
    assert [p.page_content for p in pages] == ["first", "third"]
    assert [p.metadata["page"] for p in pages] == [1, 3]
    assert pages[0].metadata["source"] == "doc.pdf"


@pytest.mark.unit
def test_extract_text_without_any_text_raises(fake_pdf_reader) -> None:
    processor = PDFProcessor()

    with pytest.raises(PDFExtractionError, match="No text could be extracted"):
        processor.extract_text(make_pdf("  ", "\n"), "scan.pdf")


@pytest.mark.unit
def test_page_that_fails_to_extract_is_skipped() -> None:
    good = Mock()
    good.extract_text.return_value = "Readable"
    bad = Mock()
    bad.extract_text.side_effect = KeyError("/Font")
    reader = Mock()
    reader.pages = [bad, good]

    with patch("pdfbot.services.pdf_processor.PyPDF2.PdfReader", return_value=reader):
        text, page_count = PDFProcessor().extract_text(b"%PDF-1.7", "mixed.pdf")

    assert text == "Readable"
    assert page_count == 2


@pytest.mark.unit
def test_unreadable_bytes_raise_extraction_error() -> None:
    with pytest.raises(PDFExtractionError, match="Failed to read PDF"):
        PDFProcessor().extract_pages(b"definitely not a pdf", "broken.pdf")


@pytest.mark.unit
def test_validate_pdf_content_accepts_real_pdf() -> None:
    assert PDFProcessor().validate_pdf_content(_blank_pdf(), "blank.pdf") is True


@pytest.mark.unit
@pytest.mark.parametrize("content", [b"", b"plain text, not a pdf"])
def test_validate_pdf_content_rejects_empty_or_garbage(content: bytes) -> None:
    assert PDFProcessor().validate_pdf_content(content, "bad.pdf") is False


@pytest.mark.unit
def test_blank_real_pdf_has_no_extractable_text() -> None:
    with pytest.raises(PDFExtractionError):
        PDFProcessor().extract_text(_blank_pdf(), "blank.pdf")

"""
PDF processing service for extracting text from PDF files.
"""

import PyPDF2
from io import BytesIO
from typing import List, Tuple
from langchain_core.documents import Document

from ..exceptions import PDFExtractionError
from ..utils import (
    measure_time,
    clean_text,
    log_processing_info,
    handle_processing_error
)
import logging

logger = logging.getLogger(__name__)

PAGE_SEPARATOR = "\n\n"


class PDFProcessor:
    """Service for processing PDF files and extracting text."""

    @measure_time
    def extract_pages(self, file_content: bytes, filename: str) -> Tuple[List[Document], int]:
        """
        Extract text from PDF file content, one Document per non-empty page.

        Args:
            file_content: PDF file content as bytes
            filename: Name of the PDF file

        Returns:
            Tuple of (page documents, total page count)
        """
        documents = []

        try:
            pdf_reader = PyPDF2.PdfReader(BytesIO(file_content))
            total_pages = len(pdf_reader.pages)
        except Exception as e:
            error_info = handle_processing_error(
                "pdf_extraction",
                e,
                {"filename": filename, "file_size": len(file_content)}
            )
            raise PDFExtractionError(f"Failed to read PDF {filename}", details=error_info) from e

        log_processing_info("PDF extraction started", {
            "filename": filename,
            "total_pages": total_pages,
            "file_size": len(file_content)
        })

        # Extract text from each page
        for page_num, page in enumerate(pdf_reader.pages):
            try:
                page_text = clean_text(page.extract_text() or "")
            except Exception as page_error:
                error_info = handle_processing_error(
                    "page_extraction",
                    page_error,
                    {"filename": filename, "page": page_num + 1}
                )
                logger.warning(f"Skipping page {page_num + 1}: {error_info}")
                continue

            if page_text:
                documents.append(Document(
                    page_content=page_text,
                    metadata={
                        'source': filename,
                        'page': page_num + 1,
                        'total_pages': total_pages
                    }
                ))

        log_processing_info("PDF extraction completed", {
            "filename": filename,
            "pages_with_text": len(documents),
            "total_pages": total_pages
        })

        return documents, total_pages

    def extract_text(self, file_content: bytes, filename: str) -> Tuple[str, int]:
        """
        Extract the full plain text of a PDF.

        Returns:
            Tuple of (text with pages separated by blank lines, total page count)

        Raises:
            PDFExtractionError: If the PDF cannot be read or has no extractable text
        """
        pages, total_pages = self.extract_pages(file_content, filename)
        if not pages:
            raise PDFExtractionError(
                f"No text could be extracted from {filename}. Scanned PDFs are not supported.",
                details={"filename": filename, "total_pages": total_pages}
            )
        return PAGE_SEPARATOR.join(page.page_content for page in pages), total_pages

    def validate_pdf_content(self, file_content: bytes, filename: str) -> bool:
        """
        Validate PDF file content.

        Args:
            file_content: PDF file content as bytes
            filename: Name of the file

        Returns:
            True if valid, False otherwise
        """
        try:
            # Check if content is not empty
            if not file_content:
                logger.warning(f"Empty file content for {filename}")
                return False

            # Try to read the PDF to validate it
            pdf_reader = PyPDF2.PdfReader(BytesIO(file_content))

            # Check if PDF has pages
            if len(pdf_reader.pages) == 0:
                logger.warning(f"PDF {filename} has no pages")
                return False

            return True

        except Exception as e:
            logger.error(f"PDF validation failed for {filename}: {str(e)}")
            return False

"""Per-page plain text extraction for bank statement PDFs."""

from typing import List, Optional

import pdfplumber
from PyPDF2 import PdfReader
from PyPDF2.errors import PdfReadError

from statement_verifier.utils.exceptions import TextExtractionError
from statement_verifier.utils.logger import get_logger
from statement_verifier.utils.validators import validate_file_path


class PageTextExtractor:
    """Extracts text from each page of a PDF, preserving page order."""

    def __init__(self) -> None:
        """Initialize text extractor."""
        self.logger = get_logger(__name__)

    def extract_text(self, pdf_path: str, password: Optional[str] = None) -> List[str]:
        """Extract the text lines of every page.

        Each entry is that page's text lines, top to bottom, joined by
        newlines, so words printed on one line stay together. Pages without
        text yield an empty string so the list always has one entry per
        physical page.

        Args:
            pdf_path: Path to PDF file.
            password: Optional password for encrypted PDFs.

        Returns:
            List of text strings, one per page.

        Raises:
            PDFNotFoundError: If the PDF does not exist.
            TextExtractionError: If text extraction fails.
        """
        validate_file_path(pdf_path)

        try:
            page_texts = []

            with pdfplumber.open(pdf_path, password=password) as pdf:
                for page_num, page in enumerate(pdf.pages, 1):
                    lines = page.extract_text_lines(return_chars=False)
                    page_texts.append("\n".join(line["text"] for line in lines))
                    if not lines:
                        self.logger.warning(f"No text found on page {page_num}")
                    else:
                        self.logger.debug(f"Extracted {len(lines)} lines from page {page_num}")

        except Exception as e:
            raise TextExtractionError(f"Failed to extract text from PDF: {str(e)}") from e

        self.logger.info(f"Extracted text from {len(page_texts)} pages")
        return page_texts

    def count_pages(self, pdf_path: str, password: Optional[str] = None) -> int:
        """Count the physical pages of a PDF.

        Raises:
            PDFNotFoundError: If the PDF does not exist.
            TextExtractionError: If the PDF cannot be read or decrypted.
        """
        validate_file_path(pdf_path)

        try:
            with open(pdf_path, "rb") as file:
                reader = PdfReader(file)
                if reader.is_encrypted and not reader.decrypt(password or ""):
                    raise TextExtractionError("Failed to decrypt PDF with provided password")
                return len(reader.pages)
        except (PdfReadError, OSError, ValueError) as e:
            raise TextExtractionError(f"PDF read error: {str(e)}") from e

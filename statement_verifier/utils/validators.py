"""Input checks run before a statement reaches the rasterizer or the analyzer."""

import os
from typing import List, Optional

from statement_verifier.config.settings import (
    MAX_FILE_SIZE_MB,
    SUPPORTED_PDF_FORMATS,
)
from statement_verifier.utils.exceptions import PDFNotFoundError

PDF_MAGIC = b"%PDF-"
# Some producers write a few junk bytes before the header
HEADER_SEARCH_BYTES = 1024


class ValidationError(Exception):
    """Raised when an input is present but unusable."""
    pass


def validate_file_path(file_path: str) -> None:
    """Check that a statement path names a readable regular file.

    Raises:
        PDFNotFoundError: If nothing exists at the path.
        ValidationError: If the path is empty, a directory or unreadable.
    """
    if not file_path:
        raise ValidationError("No statement path given")

    if not os.path.exists(file_path):
        raise PDFNotFoundError(f"PDF file not found at path: {file_path}")

    if not os.path.isfile(file_path):
        raise ValidationError(f"Statement path is not a file: {file_path}")

    if not os.access(file_path, os.R_OK):
        raise ValidationError(f"No read permission for statement: {file_path}")


def validate_file_size(file_path: str, max_size_mb: int = MAX_FILE_SIZE_MB) -> None:
    """Reject statements larger than ``max_size_mb``.

    Every page is sent to the inference service as an image, so oversized
    uploads are refused up front.
    """
    size_mb = os.path.getsize(file_path) / (1024 * 1024)
    if size_mb > max_size_mb:
        raise ValidationError(
            f"Statement is {size_mb:.2f}MB, which exceeds the {max_size_mb}MB limit"
        )


def validate_file_extension(
    file_path: str,
    supported_formats: List[str] = SUPPORTED_PDF_FORMATS
) -> None:
    _, ext = os.path.splitext(file_path.lower())
    if ext not in supported_formats:
        raise ValidationError(
            f"Extension '{ext or '(none)'}' not supported; expected one of {', '.join(supported_formats)}"
        )


def validate_pdf_header(file_path: str) -> None:
    """Check that the file starts with a PDF header.

    Raises:
        ValidationError: If no ``%PDF-`` marker is found near the start.
    """
    with open(file_path, "rb") as f:
        head = f.read(HEADER_SEARCH_BYTES)
    if PDF_MAGIC not in head:
        raise ValidationError(f"File does not look like a PDF: {file_path}")


def validate_pdf_file(file_path: str, max_size_mb: int = MAX_FILE_SIZE_MB) -> None:
    """Run every pre-flight check on a statement PDF.

    Args:
        file_path: Path to the statement PDF.
        max_size_mb: Upper size limit in MB.

    Raises:
        PDFNotFoundError: If the file is missing.
        ValidationError: If any other check fails.
    """
    validate_file_path(file_path)
    validate_file_extension(file_path)
    validate_file_size(file_path, max_size_mb)
    validate_pdf_header(file_path)


def validate_directory_path(dir_path: str) -> None:
    """Make sure a report or scratch directory exists and can be written to.

    Missing directories are created.

    Raises:
        ValidationError: If the path is empty, a file, or not writable.
    """
    if not dir_path:
        raise ValidationError("No directory given")

    try:
        os.makedirs(dir_path, exist_ok=True)
    except FileExistsError:
        raise ValidationError(f"Path is not a directory: {dir_path}")
    except OSError as e:
        raise ValidationError(f"Cannot create directory {dir_path}: {str(e)}")

    if not os.access(dir_path, os.W_OK):
        raise ValidationError(f"No write permission for directory: {dir_path}")


def validate_password(password: str) -> None:
    """Check a PDF user password before it is put on a command line.

    Raises:
        ValidationError: If the password is not a usable string.
    """
    if not isinstance(password, str):
        raise ValidationError("PDF password must be text")

    if not password.strip():
        raise ValidationError("PDF password is blank")

    if "\n" in password or "\r" in password:
        raise ValidationError("PDF password must be a single line")


def validate_page_range(
    start_page: int,
    end_page: Optional[int] = None,
    total_pages: Optional[int] = None
) -> None:
    """Check 1-based page numbers against a document's page count.

    Raises:
        ValidationError: If the range is malformed or out of bounds.
    """
    if not isinstance(start_page, int) or start_page < 1:
        raise ValidationError(f"Page numbers start at 1, got {start_page!r}")

    if end_page is None:
        end_page = start_page
    elif not isinstance(end_page, int) or end_page < start_page:
        raise ValidationError(f"Last page {end_page!r} comes before first page {start_page}")

    if total_pages is not None and end_page > total_pages:
        raise ValidationError(f"Page {end_page} exceeds document length of {total_pages} pages")

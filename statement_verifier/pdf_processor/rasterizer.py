"""PDF page rasterization through an external command-line tool.

Pages are rendered by ``pdftoppm`` (poppler-utils) into a scratch directory
that belongs to a single call, then read back, base64-encoded as PNG data
URLs and deleted one by one.
"""

import base64
import os
import re
import subprocess
import uuid
from contextlib import contextmanager
from typing import Callable, Iterator, List, Optional, Tuple

from statement_verifier.config.settings import (
    RASTERIZER_BINARY,
    RASTERIZER_DPI,
    RASTERIZER_TIMEOUT_SECONDS,
    TEMP_DIR,
)
from statement_verifier.utils.exceptions import RasterizerError, RasterizerTimeoutError
from statement_verifier.utils.logger import get_logger
from statement_verifier.utils.validators import validate_file_path

DATA_URL_PREFIX = "data:image/png;base64,"

CommandRunner = Callable[..., subprocess.CompletedProcess]


class PageRasterizer:
    """Renders every page of a PDF to a PNG data URL."""

    def __init__(
        self,
        binary: str = RASTERIZER_BINARY,
        dpi: int = RASTERIZER_DPI,
        timeout_seconds: int = RASTERIZER_TIMEOUT_SECONDS,
        temp_dir: str = TEMP_DIR,
        runner: Optional[CommandRunner] = None
    ) -> None:
        """Initialize the rasterizer.

        Args:
            binary: Name or path of the rasterizer executable.
            dpi: Render resolution.
            timeout_seconds: Hard limit for one rasterizer invocation.
            temp_dir: Parent directory for per-call scratch areas.
            runner: Callable with the ``subprocess.run`` signature.
        """
        self.logger = get_logger(__name__)
        self.binary = binary
        self.dpi = dpi
        self.timeout_seconds = timeout_seconds
        self.temp_dir = temp_dir
        self.runner = runner or subprocess.run

    def build_command(
        self,
        pdf_path: str,
        output_prefix: str,
        password: Optional[str] = None
    ) -> List[str]:
        """Build the rasterizer command line."""
        command = [self.binary, "-png", "-r", str(self.dpi)]
        if password:
            command.extend(["-upw", password])
        command.extend([pdf_path, output_prefix])
        return command

    @contextmanager
    def scratch_area(self) -> Iterator[Tuple[str, str]]:
        """Create a uniquely named scratch directory and remove it on exit.

        Yields:
            Tuple of (token, scratch directory path).
        """
        token = uuid.uuid4().hex
        scratch_dir = os.path.join(self.temp_dir, f"raster-{token}")
        os.makedirs(scratch_dir)
        try:
            yield token, scratch_dir
        finally:
            self._cleanup(scratch_dir, token)

    def _cleanup(self, scratch_dir: str, token: str) -> None:
        for file_name in os.listdir(scratch_dir):
            if token in file_name:
                try:
                    os.remove(os.path.join(scratch_dir, file_name))
                except OSError as e:
                    self.logger.warning(f"Could not remove scratch file {file_name}: {e}")
        try:
            os.rmdir(scratch_dir)
        except OSError as e:
            self.logger.warning(f"Could not remove scratch directory {scratch_dir}: {e}")

    def _run(self, command: List[str]) -> None:
        try:
            self.runner(
                command,
                check=True,
                capture_output=True,
                timeout=self.timeout_seconds,
            )
        except subprocess.TimeoutExpired as e:
            raise RasterizerTimeoutError(
                f"Rasterizer timed out after {self.timeout_seconds} seconds"
            ) from e
        except subprocess.CalledProcessError as e:
            stderr = e.stderr.decode("utf-8", errors="replace") if isinstance(e.stderr, bytes) else e.stderr
            raise RasterizerError(
                f"Rasterizer exited with status {e.returncode}: {(stderr or '').strip()}"
            ) from e
        except OSError as e:
            raise RasterizerError(f"Rasterizer binary '{self.binary}' could not be run: {e}") from e

    @staticmethod
    def collect_page_files(scratch_dir: str, token: str) -> List[Tuple[int, str]]:
        """List the rendered files for a token, sorted by page number.

        Sorting is numeric so that ``page-10`` follows ``page-9``.
        """
        pattern = re.compile(rf"^page-{re.escape(token)}-(\d+)\.png$")
        pages = []
        for file_name in os.listdir(scratch_dir):
            match = pattern.match(file_name)
            if match:
                pages.append((int(match.group(1)), os.path.join(scratch_dir, file_name)))
        return sorted(pages)

    def extract_images(
        self,
        pdf_path: str,
        password: Optional[str] = None,
        expected_pages: Optional[int] = None
    ) -> List[str]:
        """Render each page of a PDF and return PNG data URLs in page order.

        Args:
            pdf_path: Path to the PDF file.
            password: Optional user password for encrypted PDFs.
            expected_pages: Page count the output must match, if known.

        Returns:
            One ``data:image/png;base64,...`` string per page.

        Raises:
            PDFNotFoundError: If the PDF does not exist.
            RasterizerError: If the tool fails or its output is malformed.
        """
        validate_file_path(pdf_path)
        os.makedirs(self.temp_dir, exist_ok=True)

        with self.scratch_area() as (token, scratch_dir):
            output_prefix = os.path.join(scratch_dir, f"page-{token}")
            command = self.build_command(pdf_path, output_prefix, password)

            self.logger.debug(f"Rasterizing {pdf_path} at {self.dpi} DPI")
            try:
                self._run(command)
            except RasterizerError as e:
                self.logger.error(f"Error converting PDF to images: {e}")
                raise

            page_files = self.collect_page_files(scratch_dir, token)
            page_numbers = [number for number, _ in page_files]

            if not page_files:
                raise RasterizerError(f"Rasterizer produced no images for {pdf_path}")
            if page_numbers != list(range(1, len(page_files) + 1)):
                raise RasterizerError(
                    f"Rasterizer produced non-contiguous pages {page_numbers} for {pdf_path}"
                )
            if expected_pages is not None and len(page_files) != expected_pages:
                raise RasterizerError(
                    f"Rasterizer produced {len(page_files)} images, expected {expected_pages}"
                )

            data_urls = []
            for page_number, file_path in page_files:
                with open(file_path, "rb") as f:
                    data = f.read()
                os.remove(file_path)
                data_urls.append(DATA_URL_PREFIX + base64.b64encode(data).decode("ascii"))
                self.logger.debug(f"Encoded page {page_number} ({len(data)} bytes)")

        self.logger.info(f"Rasterized {len(data_urls)} pages from {pdf_path}")
        return data_urls

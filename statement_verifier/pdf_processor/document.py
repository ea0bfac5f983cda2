"""Document and page model tying page images to page text."""

from dataclasses import dataclass
from typing import List, Optional, Tuple

from statement_verifier.pdf_processor.rasterizer import PageRasterizer
from statement_verifier.pdf_processor.text_extractor import PageTextExtractor
from statement_verifier.utils.exceptions import TextExtractionError
from statement_verifier.utils.logger import get_logger
from statement_verifier.utils.validators import validate_page_range

logger = get_logger(__name__)


@dataclass(frozen=True)
class Page:
    """One physical page: 1-based number, rendered image and extracted text."""
    number: int
    image: str
    text: str


@dataclass(frozen=True)
class Document:
    """An input PDF and its pages in physical order."""
    path: str
    pages: Tuple[Page, ...]

    @property
    def page_count(self) -> int:
        return len(self.pages)

    @property
    def images(self) -> List[str]:
        return [page.image for page in self.pages]

    @property
    def texts(self) -> List[str]:
        return [page.text for page in self.pages]

    def page(self, number: int) -> Page:
        """Return the page with the given 1-based number."""
        validate_page_range(number, number, self.page_count)
        return self.pages[number - 1]


def load_document(
    pdf_path: str,
    rasterizer: PageRasterizer,
    text_extractor: PageTextExtractor,
    password: Optional[str] = None
) -> Document:
    """Read a PDF into a Document of aligned image/text pages.

    Raises:
        PDFNotFoundError: If the PDF does not exist.
        TextExtractionError: If the text and page counts disagree.
        RasterizerError: If rasterization fails or yields a different page count.
    """
    page_count = text_extractor.count_pages(pdf_path, password)
    texts = text_extractor.extract_text(pdf_path, password)
    if len(texts) != page_count:
        raise TextExtractionError(
            f"Text extraction returned {len(texts)} pages, document has {page_count}"
        )

    images = rasterizer.extract_images(pdf_path, password, expected_pages=page_count)

    pages = tuple(
        Page(number=number, image=image, text=text)
        for number, (image, text) in enumerate(zip(images, texts), 1)
    )
    logger.info(f"Loaded {len(pages)} pages from {pdf_path}")
    return Document(path=pdf_path, pages=pages)

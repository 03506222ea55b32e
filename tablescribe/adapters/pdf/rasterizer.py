"""
PDF Rasterizer - Renders PDF pages to PNG images with PyMuPDF.

Pages are rendered at ``dpi`` and downscaled when wider than
``max_width`` so a single page image stays within what the vision model
accepts comfortably.
"""

from __future__ import annotations

import io
import logging

import fitz  # PyMuPDF
from PIL import Image

from tablescribe.config.errors import DocumentError
from tablescribe.config.settings import Settings
from tablescribe.domains.extraction.models import PageImage

logger = logging.getLogger(__name__)

__all__ = ["PdfRasterizer"]

PDF_POINTS_PER_INCH = 72


def _downscale_png(png: bytes, max_width: int) -> bytes:
    """Shrink a PNG to ``max_width`` keeping aspect ratio."""
    with Image.open(io.BytesIO(png)) as image:
        if image.width <= max_width:
            return png
        ratio = max_width / float(image.width)
        resized = image.resize((max_width, max(1, int(image.height * ratio))))
        buffer = io.BytesIO()
        resized.save(buffer, format="PNG")
        return buffer.getvalue()


class PdfRasterizer:
    """
    One PNG page image per PDF page, in page order.

    Example:
        >>> rasterizer = PdfRasterizer(dpi=150)
        >>> pages = rasterizer.render(Path("report.pdf").read_bytes())
        >>> pages[0].mime_type
        'image/png'
    """

    def __init__(
        self,
        dpi: int = 150,
        max_width: int = 2000,
        max_pages: int | None = None,
    ) -> None:
        if dpi <= 0:
            raise ValueError("dpi must be positive")
        if max_width <= 0:
            raise ValueError("max_width must be positive")
        if max_pages is not None and max_pages <= 0:
            raise ValueError("max_pages must be positive")
        self.dpi = dpi
        self.max_width = max_width
        self.max_pages = max_pages

    @classmethod
    def from_settings(cls, settings: Settings, max_pages: int | None = None) -> PdfRasterizer:
        """Create a rasterizer from application settings."""
        return cls(
            dpi=settings.render_dpi,
            max_width=settings.render_max_width,
            max_pages=max_pages,
        )

    def render(self, pdf: bytes) -> list[PageImage]:
        """
        Render every page of a PDF.

        Args:
            pdf: Raw PDF file content

        Returns:
            Page images in page order

        Raises:
            DocumentError: The data is not a readable PDF or is encrypted
        """
        if not pdf:
            raise DocumentError("PDF is empty")

        try:
            doc = fitz.open(stream=pdf, filetype="pdf")
        except (RuntimeError, ValueError) as e:
            raise DocumentError(f"Could not open PDF: {e}") from e

        with doc:
            if doc.needs_pass:
                raise DocumentError("PDF is password protected")

            zoom = self.dpi / PDF_POINTS_PER_INCH
            matrix = fitz.Matrix(zoom, zoom)
            total = count = doc.page_count
            if self.max_pages is not None:
                count = min(count, self.max_pages)

            pages = []
            for index in range(count):
                try:
                    pix = doc[index].get_pixmap(matrix=matrix, alpha=False)
                    png = pix.tobytes("png")
                except (RuntimeError, ValueError) as e:
                    raise DocumentError(
                        f"Could not render page {index + 1}: {e}",
                        details={"page_index": index},
                    ) from e
                pages.append(PageImage(index=index, data=_downscale_png(png, self.max_width)))

        logger.info("Rendered %d of %d PDF pages at %d dpi", len(pages), total, self.dpi)
        return pages

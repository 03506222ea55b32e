"""
Extraction Contracts - Interfaces for extraction domain.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from .models import ExtractedTable, PageImage


@runtime_checkable
class TableExtractor(Protocol):
    """
    Contract for single-page table extraction.

    Example:
        >>> class MyExtractor:
        ...     async def extract(self, page: PageImage) -> list[ExtractedTable]:
        ...         ...
        >>> assert isinstance(MyExtractor(), TableExtractor)
    """

    async def extract(self, page: PageImage) -> list[ExtractedTable]:
        """
        Extract tables from one page image.

        Args:
            page: Rasterized page

        Returns:
            Extracted tables, possibly empty
        """
        ...


@runtime_checkable
class PageRasterizer(Protocol):
    """Contract for turning a PDF into page images."""

    def render(self, pdf: bytes) -> list[PageImage]:
        """
        Render every page of a PDF.

        Args:
            pdf: PDF file content

        Returns:
            One image per page, in page order
        """
        ...

"""
Orchestration Contracts - Interfaces for orchestration domain.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Protocol, runtime_checkable

from tablescribe.domains.extraction.models import PageImage

from .models import PipelineResult, ProgressEvent


@runtime_checkable
class ProgressObserver(Protocol):
    """Receives advisory progress updates; must not block."""

    def __call__(self, event: ProgressEvent) -> None:
        """Handle one progress event."""
        ...


@runtime_checkable
class DocumentProcessor(Protocol):
    """Contract for per-document page orchestration.

    The CLI and the HTTP API drive extraction through this interface.
    """

    async def run(
        self,
        pages: Sequence[PageImage | bytes],
        document_name: str | None = None,
        should_cancel: Callable[[], bool] | None = None,
    ) -> PipelineResult:
        """
        Extract tables from every page of one document.

        Args:
            pages: Page images in document order
            document_name: Source file name for reporting
            should_cancel: Checked between pages; True stops the run

        Returns:
            Aggregated tables or a classified failure
        """
        ...

    async def process_pdf(
        self,
        pdf: bytes,
        document_name: str | None = None,
        should_cancel: Callable[[], bool] | None = None,
    ) -> PipelineResult:
        """Render a PDF, then extract tables from every page."""
        ...

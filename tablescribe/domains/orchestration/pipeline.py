"""
Document Pipeline - Drives table extraction across all pages of a PDF.

Pages are processed strictly in order, one remote call at a time:

    INITIALIZING -> PROCESSING_PAGE(i) -> ... -> AGGREGATING -> SUCCEEDED | FAILED

Each page call is wrapped in the rate-limit retry controller. A fatal
failure (rejected credentials) aborts the document at once; any other
page failure is logged and the page contributes no tables. A fixed pacing
delay runs before every page except the first.
"""

from __future__ import annotations

import asyncio
import functools
import logging
import time
from collections.abc import Awaitable, Callable, Sequence
from typing import TYPE_CHECKING

from tablescribe.config.errors import (
    DocumentError,
    ErrorCode,
    NoTablesFoundError,
    PipelineCancelledError,
    TableScribeError,
)
from tablescribe.domains.extraction.models import ExtractedTable, PageImage
from tablescribe.domains.extraction.retry import RetryController, is_rate_limited

from .models import (
    PageOutcome,
    PageStatus,
    PipelineConfig,
    PipelineError,
    PipelineResult,
    PipelineState,
    ProgressEvent,
)

if TYPE_CHECKING:
    from tablescribe.domains.extraction.contracts import PageRasterizer, TableExtractor

    from .contracts import ProgressObserver

logger = logging.getLogger(__name__)

__all__ = ["DocumentPipeline", "classify_error", "is_fatal"]

CREDENTIAL_MARKERS = (
    "API_KEY_INVALID",
    "API key not valid",
    "UNAUTHENTICATED",
    "PERMISSION_DENIED",
)

# Progress milestones (percent)
PROGRESS_START = 10
PROGRESS_PREPARED = 20
PROGRESS_PAGES_SPAN = 75


def classify_error(error: BaseException) -> ErrorCode:
    """Map a page failure onto the error taxonomy."""
    if isinstance(error, TableScribeError):
        return error.code
    if getattr(error, "code", None) in (401, 403):
        return ErrorCode.LLM_AUTH_FAILED
    message = str(error)
    if any(marker in message for marker in CREDENTIAL_MARKERS):
        return ErrorCode.LLM_AUTH_FAILED
    if is_rate_limited(error):
        return ErrorCode.LLM_RATE_LIMITED
    return ErrorCode.LLM_UNAVAILABLE


def is_fatal(code: ErrorCode, transport_errors_fatal: bool = False) -> bool:
    """Check whether a page failure must abort the whole document."""
    if code == ErrorCode.LLM_AUTH_FAILED:
        return True
    return transport_errors_fatal and code == ErrorCode.LLM_UNAVAILABLE


def _error_message(error: BaseException) -> str:
    if isinstance(error, TableScribeError):
        return error.message
    return str(error) or type(error).__name__


class DocumentPipeline:
    """
    Sequential page extraction pipeline for one document at a time.

    Example:
        >>> pipeline = DocumentPipeline(extractor, PipelineConfig(page_delay_seconds=2))
        >>> result = await pipeline.run(page_images, document_name="report.pdf")
        >>> if result.success:
        ...     print(result.table_count)
    """

    def __init__(
        self,
        extractor: TableExtractor,
        config: PipelineConfig | None = None,
        observer: ProgressObserver | None = None,
        rasterizer: PageRasterizer | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """
        Initialize pipeline.

        Args:
            extractor: Single-page table extractor
            config: Pacing and failure policy
            observer: Optional progress callback
            rasterizer: Renders PDFs for process_pdf()
            sleep: Awaitable sleep for pacing and backoff
        """
        self._extractor = extractor
        self.config = config or PipelineConfig()
        self._observer = observer
        self._rasterizer = rasterizer
        self._sleep = sleep
        self._retry = RetryController(self.config.retry, sleep=sleep)

        self._state = PipelineState.INITIALIZING
        self._current_page: int | None = None
        self._last_percent = 0

    @property
    def state(self) -> PipelineState:
        """Current lifecycle state."""
        return self._state

    @property
    def current_page(self) -> int | None:
        """Index of the page being processed, if any."""
        return self._current_page

    async def process_pdf(
        self,
        pdf: bytes,
        document_name: str | None = None,
        should_cancel: Callable[[], bool] | None = None,
    ) -> PipelineResult:
        """
        Render a PDF and extract tables from every page.

        Args:
            pdf: PDF file content
            document_name: Source file name for reporting
            should_cancel: Checked between pages; True stops the run

        Returns:
            Aggregated tables or a classified failure
        """
        if self._rasterizer is None:
            raise ValueError("process_pdf() requires a rasterizer")

        start_time = time.time()
        self._reset()
        self._emit("Converting PDF pages to images...", PROGRESS_START)

        try:
            pages = await asyncio.to_thread(self._rasterizer.render, pdf)
        except DocumentError as e:
            logger.error("Rendering failed for %s: %s", document_name or "document", e.message)
            return self._failure(
                PipelineError.from_exception(e),
                outcomes=[],
                total_pages=0,
                document_name=document_name,
                start_time=start_time,
            )

        return await self._process_pages(pages, document_name, should_cancel, start_time)

    async def run(
        self,
        pages: Sequence[PageImage | bytes],
        document_name: str | None = None,
        should_cancel: Callable[[], bool] | None = None,
    ) -> PipelineResult:
        """
        Extract tables from already rendered page images.

        Args:
            pages: Page images in document order
            document_name: Source file name for reporting
            should_cancel: Checked between pages; True stops the run

        Returns:
            Aggregated tables or a classified failure
        """
        start_time = time.time()
        self._reset()
        self._emit("Starting extraction...", PROGRESS_START)
        return await self._process_pages(pages, document_name, should_cancel, start_time)

    def _model_name(self) -> str:
        model = getattr(self._extractor, "model", "")
        return model if isinstance(model, str) else ""

    def _reset(self) -> None:
        self._state = PipelineState.INITIALIZING
        self._current_page = None
        self._last_percent = 0

    async def _process_pages(
        self,
        pages: Sequence[PageImage | bytes],
        document_name: str | None,
        should_cancel: Callable[[], bool] | None,
        start_time: float,
    ) -> PipelineResult:
        page_images = [
            p if isinstance(p, PageImage) else PageImage(index=i, data=p)
            for i, p in enumerate(pages)
        ]
        total = len(page_images)
        self._emit(
            f"Preparing to process {total} pages...",
            PROGRESS_PREPARED,
            total_pages=total,
        )
        logger.info("Processing %s: %d pages", document_name or "document", total)

        buffer: list[ExtractedTable] = []
        outcomes: list[PageOutcome] = []
        rate_limited_pages: list[int] = []

        for i, page in enumerate(page_images):
            if i > 0:
                await self._sleep(self.config.page_delay_seconds)

            if should_cancel is not None and should_cancel():
                self._state = PipelineState.CANCELLED
                logger.info("Cancelled before page %d/%d", i + 1, total)
                error = PipelineCancelledError(
                    "Processing was cancelled",
                    details={"page_index": i, "tables_discarded": len(buffer)},
                )
                return self._failure(
                    PipelineError.from_exception(error),
                    outcomes=outcomes,
                    total_pages=total,
                    document_name=document_name,
                    start_time=start_time,
                    state=PipelineState.CANCELLED,
                )

            self._state = PipelineState.PROCESSING_PAGE
            self._current_page = i
            self._emit(
                f"Analyzing page {i + 1}/{total}...",
                PROGRESS_PREPARED + (i * PROGRESS_PAGES_SPAN) // total,
                page_index=i,
                total_pages=total,
            )

            page_start = time.time()
            try:
                tables = await self._retry.run(functools.partial(self._extractor.extract, page))
            except Exception as e:
                code = classify_error(e)
                message = _error_message(e)
                duration_ms = (time.time() - page_start) * 1000

                if is_fatal(code, self.config.transport_errors_fatal):
                    logger.error("Page %d/%d: fatal error %s: %s", i + 1, total, code.value, message)
                    outcomes.append(
                        PageOutcome(
                            page_index=i,
                            status=PageStatus.ABORTED,
                            error_code=code,
                            error=message,
                            duration_ms=duration_ms,
                        )
                    )
                    return self._failure(
                        PipelineError(code=code, message=message, details={"page_index": i}),
                        outcomes=outcomes,
                        total_pages=total,
                        document_name=document_name,
                        start_time=start_time,
                    )

                logger.warning(
                    "Page %d/%d failed (%s): %s, continuing", i + 1, total, code.value, message
                )
                if code == ErrorCode.LLM_RATE_LIMITED:
                    rate_limited_pages.append(i)
                outcomes.append(
                    PageOutcome(
                        page_index=i,
                        status=PageStatus.FAILED,
                        error_code=code,
                        error=message,
                        duration_ms=duration_ms,
                    )
                )
                continue

            buffer.extend(table.with_page(i) for table in tables)
            outcomes.append(
                PageOutcome(
                    page_index=i,
                    status=PageStatus.EXTRACTED if tables else PageStatus.EMPTY,
                    table_count=len(tables),
                    duration_ms=(time.time() - page_start) * 1000,
                )
            )

        self._state = PipelineState.AGGREGATING
        self._current_page = None

        if not buffer:
            error = self._no_tables_error(total, rate_limited_pages)
            logger.warning("No tables found in %s", document_name or "document")
            return self._failure(
                PipelineError.from_exception(error),
                outcomes=outcomes,
                total_pages=total,
                document_name=document_name,
                start_time=start_time,
            )

        self._state = PipelineState.SUCCEEDED
        self._emit(f"Done! Found {len(buffer)} tables.", 100, total_pages=total)
        logger.info(
            "Extraction complete: %s - %d tables from %d pages",
            document_name or "document",
            len(buffer),
            total,
        )

        return PipelineResult(
            success=True,
            state=self._state,
            tables=buffer,
            pages=outcomes,
            total_pages=total,
            document_name=document_name,
            model_used=self._model_name(),
            total_duration_ms=(time.time() - start_time) * 1000,
        )

    @staticmethod
    def _no_tables_error(total: int, rate_limited_pages: list[int]) -> NoTablesFoundError:
        details = {"total_pages": total, "rate_limited_pages": rate_limited_pages}
        if rate_limited_pages:
            return NoTablesFoundError(
                "No tables extracted: the service rate limit was reached. "
                "Wait about a minute and retry with a document that has fewer pages.",
                details=details,
            )
        return NoTablesFoundError(
            "No tables found. The document may contain no tables "
            "or the page images may be too low quality.",
            details=details,
        )

    def _failure(
        self,
        error: PipelineError,
        outcomes: list[PageOutcome],
        total_pages: int,
        document_name: str | None,
        start_time: float,
        state: PipelineState = PipelineState.FAILED,
    ) -> PipelineResult:
        self._state = state
        self._current_page = None
        self._emit(error.message, self._last_percent, total_pages=total_pages)
        return PipelineResult(
            success=False,
            state=state,
            error=error,
            pages=outcomes,
            total_pages=total_pages,
            document_name=document_name,
            model_used=self._model_name(),
            total_duration_ms=(time.time() - start_time) * 1000,
        )

    def _emit(
        self,
        message: str,
        percent: int,
        page_index: int | None = None,
        total_pages: int = 0,
    ) -> None:
        """Notify the observer; observer failures never affect the run."""
        self._last_percent = max(self._last_percent, min(percent, 100))
        if self._observer is None:
            return
        event = ProgressEvent(
            message=message,
            percent=self._last_percent,
            page_index=page_index,
            total_pages=total_pages,
        )
        try:
            self._observer(event)
        except Exception as e:
            logger.warning("Progress observer failed: %s", e)

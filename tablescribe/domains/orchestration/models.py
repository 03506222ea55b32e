"""
Orchestration Models - Data types for the page pipeline.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, model_validator

from tablescribe.config.errors import ErrorCode, TableScribeError
from tablescribe.config.settings import Settings
from tablescribe.domains.extraction.models import ExtractedTable, RetryPolicy


class PipelineState(str, Enum):
    """Lifecycle of one document run."""

    INITIALIZING = "initializing"
    PROCESSING_PAGE = "processing_page"
    AGGREGATING = "aggregating"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"


class PageStatus(str, Enum):
    """Outcome of a single page."""

    EXTRACTED = "extracted"  # one or more tables
    EMPTY = "empty"  # call succeeded, no tables
    FAILED = "failed"  # recoverable failure, page skipped
    ABORTED = "aborted"  # fatal failure on this page


class PageOutcome(BaseModel):
    """Per-page record kept for reporting."""

    page_index: int
    status: PageStatus
    table_count: int = 0
    error_code: ErrorCode | None = None
    error: str | None = None
    duration_ms: float = 0.0


class PipelineError(BaseModel):
    """Classified failure of a document run."""

    code: ErrorCode
    message: str
    details: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_exception(cls, error: TableScribeError) -> PipelineError:
        """Build from a taxonomy exception."""
        return cls(code=error.code, message=error.message, details=error.details)

    def to_exception(self) -> TableScribeError:
        """Re-raise form for callers that propagate failures."""
        return TableScribeError(self.code, self.message, self.details)


class ProgressEvent(BaseModel):
    """Advisory progress update for an observer."""

    message: str
    percent: int = Field(ge=0, le=100)
    page_index: int | None = None
    total_pages: int = 0


class PipelineConfig(BaseModel):
    """Tunable pacing and failure policy for the page pipeline."""

    page_delay_seconds: float = Field(default=1.5, ge=0)
    retry: RetryPolicy = Field(default_factory=RetryPolicy)
    transport_errors_fatal: bool = False

    model_config = {"frozen": True}

    @classmethod
    def from_settings(cls, settings: Settings) -> PipelineConfig:
        """Build pipeline config from application settings."""
        return cls(
            page_delay_seconds=settings.page_delay_seconds,
            retry=RetryPolicy.from_settings(settings),
            transport_errors_fatal=settings.transport_errors_fatal,
        )


class PipelineResult(BaseModel):
    """Terminal outcome of processing one document.

    A successful result always carries at least one table.
    """

    success: bool
    state: PipelineState
    tables: list[ExtractedTable] = Field(default_factory=list)
    error: PipelineError | None = None
    pages: list[PageOutcome] = Field(default_factory=list)
    total_pages: int = 0
    document_name: str | None = None
    model_used: str = ""
    started_at: datetime = Field(default_factory=datetime.now)
    total_duration_ms: float = 0.0

    @model_validator(mode="after")
    def check_outcome(self) -> PipelineResult:
        """Success requires tables; failure requires an error."""
        if self.success and not self.tables:
            raise ValueError("a successful result must contain at least one table")
        if not self.success and self.error is None:
            raise ValueError("a failed result must carry an error")
        return self

    @property
    def table_count(self) -> int:
        """Number of extracted tables."""
        return len(self.tables)

    @property
    def failed_pages(self) -> list[int]:
        """Indexes of pages that failed recoverably."""
        return [p.page_index for p in self.pages if p.status == PageStatus.FAILED]

"""
Extraction Models - Data types for extraction domain.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, model_validator

from tablescribe.config.settings import Settings

# header -> cell text; numeric-looking values stay strings
Row = dict[str, str]


class PageImage(BaseModel):
    """One rasterized PDF page, the unit of work sent for extraction."""

    index: int = Field(ge=0)
    data: bytes = Field(repr=False)
    mime_type: str = "image/png"

    model_config = {"frozen": True}


class ExtractedTable(BaseModel):
    """A table returned by the model, normalized to header-keyed rows."""

    table_name: str
    headers: list[str] = Field(default_factory=list)
    rows: list[Row] = Field(default_factory=list)
    page_index: int | None = None

    model_config = {"frozen": True}

    @property
    def row_count(self) -> int:
        """Number of data rows."""
        return len(self.rows)

    @property
    def column_count(self) -> int:
        """Number of declared columns."""
        return len(self.headers)

    def with_page(self, page_index: int) -> ExtractedTable:
        """Return a copy tagged with its source page."""
        return self.model_copy(update={"page_index": page_index})


class RetryPolicy(BaseModel):
    """Backoff schedule for rate-limited calls.

    Wait before the retry that follows attempt ``i`` (0-indexed) is
    ``2**i * base_seconds`` plus up to ``jitter_seconds`` of random delay.
    """

    max_attempts: int = Field(default=3, ge=1)
    base_seconds: float = Field(default=2.0, gt=0)
    jitter_seconds: float = Field(default=1.0, ge=0)
    max_wait_seconds: float = Field(default=60.0, gt=0)

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def check_monotonic(self) -> RetryPolicy:
        """Waits must strictly increase across the whole schedule.

        Jitter below the base keeps consecutive doublings apart, and the cap
        must not clip the longest wait, ``2**(max_attempts - 2) * base``.
        """
        if self.jitter_seconds >= self.base_seconds:
            raise ValueError("jitter_seconds must be smaller than base_seconds")
        if self.max_attempts >= 2:
            longest = 2 ** (self.max_attempts - 2) * self.base_seconds
            if self.max_wait_seconds < longest:
                raise ValueError(
                    f"max_wait_seconds must be at least {longest:g} for "
                    f"{self.max_attempts} attempts at base {self.base_seconds:g}"
                )
        return self

    @classmethod
    def from_settings(cls, settings: Settings) -> RetryPolicy:
        """Build the policy from application settings."""
        return cls(
            max_attempts=settings.retry_max_attempts,
            base_seconds=settings.retry_base_seconds,
            jitter_seconds=settings.retry_jitter_seconds,
            max_wait_seconds=settings.retry_max_wait_seconds,
        )


MalformedResponsePolicy = Literal["skip", "raise"]

"""
Orchestration Domain - Per-document page pipeline.

This domain handles:
- Sequential page processing with pacing between calls
- Fatal vs. recoverable failure classification
- Aggregation of tables in page order
- Progress reporting
"""

from .contracts import DocumentProcessor, ProgressObserver
from .models import (
    PageOutcome,
    PageStatus,
    PipelineConfig,
    PipelineError,
    PipelineResult,
    PipelineState,
    ProgressEvent,
)
from .pipeline import DocumentPipeline, classify_error, is_fatal

__all__ = [
    # Contracts
    "DocumentProcessor",
    "ProgressObserver",
    # Models
    "PageOutcome",
    "PageStatus",
    "PipelineConfig",
    "PipelineError",
    "PipelineResult",
    "PipelineState",
    "ProgressEvent",
    # Implementations
    "DocumentPipeline",
    "classify_error",
    "is_fatal",
]

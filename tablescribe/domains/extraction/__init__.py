"""
Extraction Domain - Page image to table extraction.

This domain handles:
- The response schema and instruction sent to the vision model
- Normalization of model output into header-keyed rows
- Rate-limit aware retries around each call
"""

from .contracts import PageRasterizer, TableExtractor
from .extractor import EXTRACTION_PROMPT, TABLES_RESPONSE_SCHEMA, GeminiTableExtractor
from .models import ExtractedTable, PageImage, RetryPolicy, Row
from .normalizer import normalize_row, normalize_table, parse_tables
from .retry import RetryController, is_rate_limited

__all__ = [
    # Contracts
    "TableExtractor",
    "PageRasterizer",
    # Models
    "ExtractedTable",
    "PageImage",
    "RetryPolicy",
    "Row",
    # Implementations
    "GeminiTableExtractor",
    "RetryController",
    "EXTRACTION_PROMPT",
    "TABLES_RESPONSE_SCHEMA",
    # Helpers
    "is_rate_limited",
    "normalize_row",
    "normalize_table",
    "parse_tables",
]

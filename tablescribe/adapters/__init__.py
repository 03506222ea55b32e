"""
Adapters - External service integrations.

All third-party calls are wrapped here to isolate domains from library changes.
"""

from .excel import XLSX_MIME_TYPE, workbook_to_bytes, write_workbook
from .gemini import GeminiClient, GeminiConfig, GeminiResponse
from .pdf import PdfRasterizer

__all__ = [
    # Vision model
    "GeminiClient",
    "GeminiConfig",
    "GeminiResponse",
    # Documents
    "PdfRasterizer",
    # Workbooks
    "XLSX_MIME_TYPE",
    "workbook_to_bytes",
    "write_workbook",
]

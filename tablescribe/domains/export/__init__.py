"""
Export Domain - Extracted tables to workbook layout.

This domain handles:
- Sheet naming with collision handling
- Separate-sheet and merged layouts
- Column width hints
"""

from .assembler import (
    MERGED_SHEET_NAME,
    WorkbookAssembler,
    compute_column_widths,
    sanitize_sheet_name,
    suggest_filename,
    unique_sheet_name,
)
from .models import ExportOptions, SheetSpec, WorkbookPlan

__all__ = [
    # Models
    "ExportOptions",
    "SheetSpec",
    "WorkbookPlan",
    # Implementations
    "WorkbookAssembler",
    "MERGED_SHEET_NAME",
    # Helpers
    "compute_column_widths",
    "sanitize_sheet_name",
    "suggest_filename",
    "unique_sheet_name",
]

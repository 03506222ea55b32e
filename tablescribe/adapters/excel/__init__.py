"""
Excel Adapter - Workbook encoding with openpyxl.
"""

from .writer import XLSX_MIME_TYPE, build_workbook, workbook_to_bytes, write_workbook

__all__ = [
    "XLSX_MIME_TYPE",
    "build_workbook",
    "workbook_to_bytes",
    "write_workbook",
]

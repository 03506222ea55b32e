"""
Workbook Writer - Encodes a workbook plan as an .xlsx file with openpyxl.

Layout per sheet:
- row 1 holds the column headers in bold and stays frozen
- data rows follow in plan order, every cell written as text
- column widths come from the plan's width hints
"""

from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import BinaryIO

from openpyxl import Workbook
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from tablescribe.config.errors import ExportError
from tablescribe.domains.export.models import SheetSpec, WorkbookPlan

logger = logging.getLogger(__name__)

__all__ = ["XLSX_MIME_TYPE", "build_workbook", "workbook_to_bytes", "write_workbook"]

XLSX_MIME_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

_HEADER_FONT = Font(bold=True)


def _write_text(ws: Worksheet, row: int, column: int, value: str) -> None:
    # openpyxl refuses control characters and treats a leading "=" as a formula
    text = ILLEGAL_CHARACTERS_RE.sub("", value)
    if not text:
        return
    cell = ws.cell(row=row, column=column, value=text)
    cell.data_type = "s"


def _fill_sheet(ws: Worksheet, sheet: SheetSpec) -> None:
    ws.title = sheet.name

    for col, header in enumerate(sheet.columns, start=1):
        _write_text(ws, 1, col, header)
        ws.cell(row=1, column=col).font = _HEADER_FONT

    for row_index, row in enumerate(sheet.rows, start=2):
        for col, column in enumerate(sheet.columns, start=1):
            _write_text(ws, row_index, col, row.get(column, ""))

    for col, width in enumerate(sheet.column_widths, start=1):
        ws.column_dimensions[get_column_letter(col)].width = width

    if sheet.columns:
        ws.freeze_panes = "A2"


def build_workbook(plan: WorkbookPlan) -> Workbook:
    """
    Build an in-memory openpyxl workbook from a plan.

    Raises:
        ExportError: The plan has no sheets
    """
    if not plan.sheets:
        raise ExportError("Workbook plan has no sheets")

    wb = Workbook()
    for index, sheet in enumerate(plan.sheets):
        ws = wb.active if index == 0 else wb.create_sheet()
        _fill_sheet(ws, sheet)
    return wb


def write_workbook(plan: WorkbookPlan, target: str | Path | BinaryIO) -> None:
    """
    Encode a plan as .xlsx.

    Args:
        plan: Workbook plan from the assembler
        target: File path or writable binary buffer

    Raises:
        ExportError: The plan is empty or the file cannot be written
    """
    wb = build_workbook(plan)
    try:
        wb.save(target)
    except OSError as e:
        raise ExportError(f"Could not write workbook: {e}", details={"target": str(target)}) from e
    logger.info("Wrote workbook with %d sheets", len(plan.sheets))


def workbook_to_bytes(plan: WorkbookPlan) -> bytes:
    """Encode a plan as .xlsx and return the file content."""
    buffer = io.BytesIO()
    write_workbook(plan, buffer)
    return buffer.getvalue()

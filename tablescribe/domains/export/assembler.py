"""
Workbook Assembler - Lays out extracted tables as spreadsheet sheets.

Two modes:
- separate sheets: one sheet per table, names cleaned, truncated to 31
  characters and de-duplicated with ``_1``, ``_2`` suffixes
- merge: every row in one "Combined Data" sheet whose columns are the
  union of all headers in first-seen order

The assembler only builds an in-memory ``WorkbookPlan``; encoding to
``.xlsx`` lives in ``tablescribe.adapters.excel``.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Sequence
from pathlib import PurePath

from tablescribe.config.errors import ExportError
from tablescribe.domains.extraction.models import ExtractedTable, Row

from .models import MAX_SHEET_NAME_LENGTH, ExportOptions, SheetSpec, WorkbookPlan

logger = logging.getLogger(__name__)

__all__ = [
    "MERGED_SHEET_NAME",
    "WorkbookAssembler",
    "compute_column_widths",
    "sanitize_sheet_name",
    "suggest_filename",
    "unique_sheet_name",
]

MERGED_SHEET_NAME = "Combined Data"
DEFAULT_STEM = "extracted_data"

_FORBIDDEN_CHARS = re.compile(r"[\\/?*\[\]:]")


def sanitize_sheet_name(name: str) -> str:
    """Remove characters spreadsheets reject in sheet names."""
    return _FORBIDDEN_CHARS.sub("", name).strip()


def unique_sheet_name(base: str, used: set[str]) -> str:
    """
    Pick the first free sheet name derived from ``base``.

    Args:
        base: Cleaned, untruncated name
        used: Case-folded names already taken; updated in place

    Returns:
        ``base`` truncated to 31 characters, or ``base`` with a ``_N``
        suffix where the base part is shortened to keep the limit
    """
    candidate = base[:MAX_SHEET_NAME_LENGTH]
    counter = 1
    while candidate.casefold() in used:
        suffix = f"_{counter}"
        candidate = base[: MAX_SHEET_NAME_LENGTH - len(suffix)] + suffix
        counter += 1
    used.add(candidate.casefold())
    return candidate


def compute_column_widths(
    columns: Sequence[str],
    rows: Iterable[Row],
    max_width: int = 50,
    padding: int = 2,
) -> list[int]:
    """Width hint per column: longest of header and cells, capped, plus padding."""
    longest = [len(column) for column in columns]
    for row in rows:
        for i, column in enumerate(columns):
            length = len(row.get(column, ""))
            if length > longest[i]:
                longest[i] = length
    return [min(length, max_width) + padding for length in longest]


def suggest_filename(source_name: str | None, merged: bool = False) -> str:
    """Output file name derived from the source document name."""
    stem = DEFAULT_STEM
    if source_name:
        name = PurePath(source_name).name
        if name.lower().endswith(".pdf"):
            name = name[:-4]
        stem = name or DEFAULT_STEM
    return f"{stem}{'_merged' if merged else ''}_ocr.xlsx"


class WorkbookAssembler:
    """
    Builds a workbook plan from extracted tables.

    Example:
        >>> assembler = WorkbookAssembler()
        >>> plan = assembler.assemble(result.tables, merge_all=False, source_name="report.pdf")
        >>> plan.sheet_names
        ['Revenue', 'Revenue_1']
    """

    def __init__(self, options: ExportOptions | None = None) -> None:
        self.options = options or ExportOptions()

    def assemble(
        self,
        tables: Sequence[ExtractedTable],
        merge_all: bool = False,
        source_name: str | None = None,
    ) -> WorkbookPlan:
        """
        Lay out tables as sheets.

        Args:
            tables: Tables in accumulation order
            merge_all: Put every row into a single sheet
            source_name: Source document name for the suggested file name

        Returns:
            Workbook plan ready for the encoder

        Raises:
            ExportError: There are no tables to export
        """
        if not tables:
            raise ExportError("No tables to export")

        if merge_all:
            sheets = [self._merged_sheet(tables)]
        else:
            sheets = self._separate_sheets(tables)

        plan = WorkbookPlan(
            sheets=sheets,
            filename=suggest_filename(source_name, merged=merge_all),
            merged=merge_all,
        )
        logger.info(
            "Assembled workbook %s: %d sheets from %d tables",
            plan.filename,
            len(plan.sheets),
            len(tables),
        )
        return plan

    def _separate_sheets(self, tables: Sequence[ExtractedTable]) -> list[SheetSpec]:
        used: set[str] = set()
        sheets = []
        for index, table in enumerate(tables):
            base = sanitize_sheet_name(table.table_name) or f"Table {index + 1}"
            name = unique_sheet_name(base, used)

            columns = list(dict.fromkeys(table.headers))
            rows = [{column: row.get(column, "") for column in columns} for row in table.rows]
            sheets.append(
                SheetSpec(
                    name=name,
                    columns=columns,
                    rows=rows,
                    column_widths=compute_column_widths(
                        columns,
                        rows,
                        max_width=self.options.max_column_width,
                        padding=self.options.column_padding,
                    ),
                )
            )
        return sheets

    def _merged_sheet(self, tables: Sequence[ExtractedTable]) -> SheetSpec:
        # First table to introduce a header fixes its position
        columns = list(dict.fromkeys(h for table in tables for h in table.headers))
        rows = [
            {column: row.get(column, "") for column in columns}
            for table in tables
            for row in table.rows
        ]
        # Widths sample a prefix of the merged rows
        sample = rows[: self.options.merge_width_sample_rows]
        return SheetSpec(
            name=MERGED_SHEET_NAME,
            columns=columns,
            rows=rows,
            column_widths=compute_column_widths(
                columns,
                sample,
                max_width=self.options.max_column_width,
                padding=self.options.column_padding,
            ),
        )

"""
Export Models - Workbook plan handed to the spreadsheet encoder.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, model_validator

from tablescribe.config.settings import Settings

MAX_SHEET_NAME_LENGTH = 31
FORBIDDEN_SHEET_CHARS = frozenset("\\/?*[]:")


class SheetSpec(BaseModel):
    """One named sheet: column order, rows and width hints."""

    name: str = Field(max_length=MAX_SHEET_NAME_LENGTH)
    columns: list[str] = Field(default_factory=list)
    rows: list[dict[str, str]] = Field(default_factory=list)
    column_widths: list[int] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_sheet(self) -> SheetSpec:
        """Validate name characters and width hint alignment."""
        bad = FORBIDDEN_SHEET_CHARS.intersection(self.name)
        if bad:
            raise ValueError(f"sheet name contains forbidden characters: {sorted(bad)}")
        if self.column_widths and len(self.column_widths) != len(self.columns):
            raise ValueError("column_widths must align with columns")
        return self


class WorkbookPlan(BaseModel):
    """All sheets of one export plus the suggested file name."""

    sheets: list[SheetSpec] = Field(default_factory=list)
    filename: str = "extracted_data_ocr.xlsx"
    merged: bool = False

    @model_validator(mode="after")
    def check_unique_names(self) -> WorkbookPlan:
        """Sheet names must be unique, ignoring case."""
        seen: set[str] = set()
        for sheet in self.sheets:
            key = sheet.name.casefold()
            if key in seen:
                raise ValueError(f"duplicate sheet name: {sheet.name}")
            seen.add(key)
        return self

    @property
    def sheet_names(self) -> list[str]:
        """Sheet names in workbook order."""
        return [sheet.name for sheet in self.sheets]


class ExportOptions(BaseModel):
    """Tunable limits for workbook assembly."""

    max_column_width: int = Field(default=50, ge=1)
    column_padding: int = Field(default=2, ge=0)
    merge_width_sample_rows: int = Field(default=100, ge=1)

    model_config = {"frozen": True}

    @classmethod
    def from_settings(cls, settings: Settings) -> ExportOptions:
        """Build export options from application settings."""
        return cls(
            max_column_width=settings.max_column_width,
            merge_width_sample_rows=settings.merge_width_sample_rows,
        )

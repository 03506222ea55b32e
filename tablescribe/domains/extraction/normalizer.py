"""
Response Normalizer - Turns raw model JSON into ExtractedTable objects.

The model is schema-constrained but not schema-guaranteed, so every field
is validated with a fallback default instead of failing the whole page:

- table names and headers are trimmed
- rows become header-keyed mappings built by position
- short rows, null cells and missing fields become empty strings
- non-string scalars are converted with ``str()``

Only a payload that is not JSON, or whose top level does not carry a
``tables`` list, raises ``MalformedResponseError``.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from tablescribe.config.errors import MalformedResponseError

from .models import ExtractedTable, Row

logger = logging.getLogger(__name__)

__all__ = ["UNTITLED_TABLE", "normalize_row", "normalize_table", "parse_tables"]

UNTITLED_TABLE = "Untitled table"


def _cell_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False)
    return str(value)


def normalize_row(headers: list[str], values: Any) -> Row:
    """
    Map a positional row onto headers.

    Args:
        headers: Trimmed column names
        values: Positional cell values from the model

    Returns:
        Row with exactly one entry per header
    """
    if not isinstance(values, list):
        # A bare scalar is treated as a one-cell row
        values = [] if values is None else [values]

    row: Row = {}
    for index, header in enumerate(headers):
        row[header] = _cell_text(values[index]) if index < len(values) else ""
    return row


def normalize_table(raw: dict[str, Any]) -> ExtractedTable:
    """Normalize one raw table object from the model response."""
    name = _cell_text(raw.get("tableName")).strip() or UNTITLED_TABLE

    raw_headers = raw.get("headers")
    if not isinstance(raw_headers, list):
        raw_headers = []
    headers = [_cell_text(h).strip() for h in raw_headers]

    raw_rows = raw.get("data")
    if not isinstance(raw_rows, list):
        raw_rows = []

    rows = [normalize_row(headers, values) for values in raw_rows]
    return ExtractedTable(table_name=name, headers=headers, rows=rows)


def parse_tables(text: str) -> list[ExtractedTable]:
    """
    Parse a model response into tables.

    Args:
        text: Raw JSON text returned by the model

    Returns:
        Normalized tables in the order the model returned them

    Raises:
        MalformedResponseError: Payload is not JSON or has no ``tables`` list
    """
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as e:
        raise MalformedResponseError(
            f"Response is not valid JSON: {e.msg}",
            details={"position": e.pos, "preview": text[:200]},
        ) from e

    if not isinstance(payload, dict):
        raise MalformedResponseError(
            "Response is not a JSON object",
            details={"type": type(payload).__name__},
        )

    raw_tables = payload.get("tables")
    if not isinstance(raw_tables, list):
        raise MalformedResponseError(
            "Response has no 'tables' list",
            details={"keys": sorted(payload)},
        )

    tables: list[ExtractedTable] = []
    for position, raw in enumerate(raw_tables):
        if not isinstance(raw, dict):
            logger.warning("Skipping table %d: expected object, got %s", position, type(raw).__name__)
            continue
        tables.append(normalize_table(raw))

    return tables

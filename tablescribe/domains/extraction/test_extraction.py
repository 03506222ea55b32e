"""
Tests for extraction domain models, normalizer and extractor.
"""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from tablescribe.adapters.gemini import GeminiResponse
from tablescribe.config import MalformedResponseError, Settings

from .contracts import TableExtractor
from .extractor import TABLES_RESPONSE_SCHEMA, GeminiTableExtractor
from .models import ExtractedTable, PageImage, RetryPolicy
from .normalizer import UNTITLED_TABLE, normalize_row, parse_tables


def _payload(*tables: dict) -> str:
    return json.dumps({"tables": list(tables)})


# --- Model Tests ---


def test_page_image_is_immutable() -> None:
    """Test PageImage is frozen."""
    page = PageImage(index=0, data=b"png")
    with pytest.raises(Exception):  # ValidationError for frozen model
        page.index = 3  # type: ignore


def test_page_image_rejects_negative_index() -> None:
    """Test page indexes start at zero."""
    with pytest.raises(ValueError):
        PageImage(index=-1, data=b"png")


def test_extracted_table_counts() -> None:
    """Test ExtractedTable row and column counts."""
    table = ExtractedTable(
        table_name="Prices",
        headers=["Item", "Price"],
        rows=[{"Item": "Tea", "Price": "1.50"}, {"Item": "Coffee", "Price": "2.00"}],
    )
    assert table.row_count == 2
    assert table.column_count == 2
    assert table.page_index is None


def test_extracted_table_with_page() -> None:
    """Test page tagging returns a new table."""
    table = ExtractedTable(table_name="T", headers=["A"], rows=[{"A": "1"}])
    tagged = table.with_page(4)
    assert tagged.page_index == 4
    assert table.page_index is None
    assert tagged.rows == table.rows


def test_retry_policy_defaults() -> None:
    """Test RetryPolicy default values."""
    policy = RetryPolicy()
    assert policy.max_attempts == 3
    assert policy.base_seconds == 2.0
    assert policy.jitter_seconds == 1.0


def test_retry_policy_rejects_jitter_above_base() -> None:
    """Test jitter must stay below base for increasing waits."""
    with pytest.raises(ValueError):
        RetryPolicy(base_seconds=1.0, jitter_seconds=1.0)


def test_retry_policy_rejects_cap_below_longest_wait() -> None:
    """Test a wait cap that would flatten the schedule is rejected."""
    with pytest.raises(ValueError, match="max_wait_seconds"):
        RetryPolicy(max_attempts=4, base_seconds=2.0, jitter_seconds=0.5, max_wait_seconds=3.0)
    with pytest.raises(ValueError, match="max_wait_seconds"):
        RetryPolicy(max_attempts=4, base_seconds=2.0, jitter_seconds=0.5, max_wait_seconds=7.9)


def test_retry_policy_accepts_cap_at_longest_wait() -> None:
    """Test the cap may equal the longest uncapped wait."""
    policy = RetryPolicy(max_attempts=4, base_seconds=2.0, jitter_seconds=0.5, max_wait_seconds=8.0)
    assert policy.max_wait_seconds == 8.0
    assert RetryPolicy(max_attempts=1, max_wait_seconds=0.1).max_attempts == 1


def test_retry_policy_from_settings() -> None:
    """Test RetryPolicy is built from settings."""
    settings = Settings(retry_max_attempts=4, retry_base_seconds=3.0)
    policy = RetryPolicy.from_settings(settings)
    assert policy.max_attempts == 4
    assert policy.base_seconds == 3.0


# --- Normalizer Tests ---


def test_normalize_row_pads_short_rows() -> None:
    """Test a short row is padded with empty strings."""
    assert normalize_row(["Col1", "Col2"], ["x"]) == {"Col1": "x", "Col2": ""}


def test_normalize_row_handles_nulls_and_numbers() -> None:
    """Test null cells become empty and numbers become text."""
    row = normalize_row(["A", "B", "C"], [None, 42, 1.5])
    assert row == {"A": "", "B": "42", "C": "1.5"}


def test_normalize_row_drops_extra_cells() -> None:
    """Test cells beyond the header count are discarded."""
    assert normalize_row(["A"], ["1", "2", "3"]) == {"A": "1"}


def test_normalize_row_scalar_value() -> None:
    """Test a scalar row is treated as a single cell."""
    assert normalize_row(["A", "B"], "only") == {"A": "only", "B": ""}


def test_parse_tables_trims_names_and_headers() -> None:
    """Test table names and headers are trimmed."""
    tables = parse_tables(
        _payload({"tableName": "  Revenue 2024 ", "headers": [" Year ", "Total  "], "data": [["2024", "1,000"]]})
    )
    assert len(tables) == 1
    assert tables[0].table_name == "Revenue 2024"
    assert tables[0].headers == ["Year", "Total"]
    assert tables[0].rows == [{"Year": "2024", "Total": "1,000"}]


def test_parse_tables_preserves_order() -> None:
    """Test tables keep the order the model returned."""
    tables = parse_tables(
        _payload(
            {"tableName": "First", "headers": ["A"], "data": []},
            {"tableName": "Second", "headers": ["B"], "data": []},
        )
    )
    assert [t.table_name for t in tables] == ["First", "Second"]


def test_parse_tables_missing_fields_use_defaults() -> None:
    """Test missing name, headers and data fall back to defaults."""
    tables = parse_tables(_payload({}))
    assert tables[0].table_name == UNTITLED_TABLE
    assert tables[0].headers == []
    assert tables[0].rows == []


def test_parse_tables_every_row_has_every_header() -> None:
    """Test rows always carry all header keys."""
    tables = parse_tables(
        _payload({"tableName": "T", "headers": ["A", "B", "C"], "data": [["1"], [], ["1", "2", "3"]]})
    )
    for row in tables[0].rows:
        assert list(row) == ["A", "B", "C"]


def test_parse_tables_skips_non_object_entries() -> None:
    """Test junk entries in the tables list are skipped."""
    tables = parse_tables(_payload("junk", {"tableName": "Kept", "headers": [], "data": []}))
    assert [t.table_name for t in tables] == ["Kept"]


def test_parse_tables_empty_list() -> None:
    """Test an empty tables list yields no tables."""
    assert parse_tables('{"tables": []}') == []


@pytest.mark.parametrize(
    "text",
    ["not json at all", "[1, 2, 3]", '{"rows": []}', '{"tables": "nope"}'],
)
def test_parse_tables_malformed(text: str) -> None:
    """Test malformed payloads raise MalformedResponseError."""
    with pytest.raises(MalformedResponseError):
        parse_tables(text)


# --- GeminiTableExtractor Tests ---


@pytest.fixture
def mock_gemini_client() -> AsyncMock:
    """Create a mock GeminiClient."""
    mock = AsyncMock()
    mock.config = MagicMock()
    mock.config.model = "gemini-2.5-flash"
    mock.generate_from_image.return_value = GeminiResponse(
        text=_payload(
            {"tableName": "Staff", "headers": ["Name", "Role"], "data": [["Ana", "Engineer"], ["Ben"]]}
        ),
        model="gemini-2.5-flash",
    )
    return mock


@pytest.fixture
def extractor(mock_gemini_client: AsyncMock) -> GeminiTableExtractor:
    """Create a GeminiTableExtractor with mocked client."""
    return GeminiTableExtractor(mock_gemini_client)


def test_extractor_satisfies_contract(extractor: GeminiTableExtractor) -> None:
    """Test GeminiTableExtractor implements TableExtractor."""
    assert isinstance(extractor, TableExtractor)
    assert extractor.model == "gemini-2.5-flash"


async def test_extractor_extract(
    extractor: GeminiTableExtractor, mock_gemini_client: AsyncMock
) -> None:
    """Test one page yields normalized tables from one call."""
    page = PageImage(index=0, data=b"png-bytes", mime_type="image/png")
    tables = await extractor.extract(page)

    assert len(tables) == 1
    assert tables[0].rows == [
        {"Name": "Ana", "Role": "Engineer"},
        {"Name": "Ben", "Role": ""},
    ]

    mock_gemini_client.generate_from_image.assert_awaited_once()
    call = mock_gemini_client.generate_from_image.call_args
    assert call.args[0] == b"png-bytes"
    assert call.args[1] == "image/png"
    assert call.kwargs["response_schema"] is TABLES_RESPONSE_SCHEMA


async def test_extractor_skips_malformed_by_default(
    extractor: GeminiTableExtractor, mock_gemini_client: AsyncMock
) -> None:
    """Test malformed responses become zero tables under the skip policy."""
    mock_gemini_client.generate_from_image.return_value = GeminiResponse(
        text="Sorry, I cannot help with that.", model="gemini-2.5-flash"
    )
    tables = await extractor.extract(PageImage(index=2, data=b"png"))
    assert tables == []


async def test_extractor_raise_policy(mock_gemini_client: AsyncMock) -> None:
    """Test the raise policy lets MalformedResponseError through."""
    mock_gemini_client.generate_from_image.return_value = GeminiResponse(
        text="{broken", model="gemini-2.5-flash"
    )
    extractor = GeminiTableExtractor(mock_gemini_client, malformed_policy="raise")

    with pytest.raises(MalformedResponseError):
        await extractor.extract(PageImage(index=0, data=b"png"))


async def test_extractor_propagates_service_errors(
    extractor: GeminiTableExtractor, mock_gemini_client: AsyncMock
) -> None:
    """Test service failures are not swallowed by the extractor."""
    mock_gemini_client.generate_from_image.side_effect = RuntimeError("429 Too Many Requests")

    with pytest.raises(RuntimeError, match="429"):
        await extractor.extract(PageImage(index=0, data=b"png"))


def test_response_schema_requires_fields() -> None:
    """Test the schema declares tableName, headers and data as required."""
    item = TABLES_RESPONSE_SCHEMA["properties"]["tables"]["items"]
    assert item["required"] == ["tableName", "headers", "data"]
    assert TABLES_RESPONSE_SCHEMA["required"] == ["tables"]

"""Tests for API Routes."""

import asyncio
import io
from collections.abc import Generator
from unittest.mock import MagicMock

import httpx
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from openpyxl import load_workbook

from tablescribe.config import DocumentError, ErrorCode, InvalidCredentialsError
from tablescribe.domains.extraction import ExtractedTable, PageImage
from tablescribe.domains.orchestration import PipelineConfig

from .deps import get_assembler, get_extractor, get_pipeline_config, get_rasterizer
from .main import create_app
from .middleware import error_code_to_status

PDF_UPLOAD = {"file": ("report.pdf", b"%PDF-1.7 test", "application/pdf")}


class FakeExtractor:
    """Returns canned tables per page index, or raises."""

    model = "fake-model"

    def __init__(self, tables_by_page=None, error=None):
        self.tables_by_page = tables_by_page or {}
        self.error = error
        self.in_flight = 0
        self.peak_in_flight = 0

    async def extract(self, page: PageImage) -> list[ExtractedTable]:
        self.in_flight += 1
        self.peak_in_flight = max(self.peak_in_flight, self.in_flight)
        try:
            await asyncio.sleep(0.01)
            if self.error is not None:
                raise self.error
            return self.tables_by_page.get(page.index, [])
        finally:
            self.in_flight -= 1


class FakeRasterizer:
    """Pretends every upload has a fixed number of pages."""

    def __init__(self, pages=2, error=None):
        self.pages = pages
        self.error = error

    def render(self, pdf: bytes) -> list[PageImage]:
        if self.error is not None:
            raise self.error
        return [PageImage(index=i, data=b"png") for i in range(self.pages)]


def _tables() -> dict[int, list[ExtractedTable]]:
    return {
        0: [ExtractedTable(table_name="Totals", headers=["A", "B"], rows=[{"A": "1", "B": "2"}])],
        1: [ExtractedTable(table_name="Totals", headers=["B", "C"], rows=[{"B": "3", "C": "4"}])],
    }


@pytest.fixture
def extractor() -> FakeExtractor:
    """Extractor returning one table on each of two pages."""
    return FakeExtractor(_tables())


@pytest.fixture
def rasterizer() -> FakeRasterizer:
    """Two-page rasterizer."""
    return FakeRasterizer(pages=2)


@pytest.fixture
def app(extractor: FakeExtractor, rasterizer: FakeRasterizer) -> Generator[FastAPI, None, None]:
    """Create an app with fake extraction components."""
    app = create_app()

    app.dependency_overrides[get_extractor] = lambda: extractor
    app.dependency_overrides[get_rasterizer] = lambda: rasterizer
    app.dependency_overrides[get_pipeline_config] = lambda: PipelineConfig(page_delay_seconds=0)

    yield app

    app.dependency_overrides.clear()


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    """Create a test client for the app."""
    return TestClient(app)


def test_health_endpoint(client: TestClient) -> None:
    """Test health check endpoint."""
    response = client.get("/health")
    assert response.status_code == 200

    data = response.json()
    assert data["status"] == "healthy"
    assert data["service"] == "tablescribe"


def test_api_info(client: TestClient) -> None:
    """Test API info endpoint."""
    data = client.get("/api").json()
    assert data["name"] == "TableScribe API"
    assert "model" in data


def test_extract_returns_workbook(client: TestClient) -> None:
    """Test default extraction downloads an xlsx with one sheet per table."""
    response = client.post("/api/extraction/extract", files=PDF_UPLOAD)

    assert response.status_code == 200
    assert response.headers["content-type"].startswith(
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
    )
    assert "report_ocr.xlsx" in response.headers["content-disposition"]

    wb = load_workbook(io.BytesIO(response.content))
    assert wb.sheetnames == ["Totals", "Totals_1"]


def test_extract_merged_workbook(client: TestClient) -> None:
    """Test merge=true puts all rows into a single sheet."""
    response = client.post("/api/extraction/extract", params={"merge": "true"}, files=PDF_UPLOAD)

    assert response.status_code == 200
    assert "report_merged_ocr.xlsx" in response.headers["content-disposition"]

    ws = load_workbook(io.BytesIO(response.content))["Combined Data"]
    rows = list(ws.iter_rows(values_only=True))
    assert rows[0] == ("A", "B", "C")
    assert rows[1] == ("1", "2", None)
    assert rows[2] == (None, "3", "4")


def test_extract_json(client: TestClient) -> None:
    """Test format=json returns tables, pages and progress."""
    response = client.post("/api/extraction/extract", params={"format": "json"}, files=PDF_UPLOAD)

    assert response.status_code == 200
    data = response.json()
    assert data["document_name"] == "report.pdf"
    assert data["model"] == "fake-model"
    assert data["total_pages"] == 2
    assert data["table_count"] == 2
    assert [t["page_index"] for t in data["tables"]] == [0, 1]
    assert data["failed_pages"] == []

    percents = [event["percent"] for event in data["progress"]]
    assert percents[0] == 10
    assert percents[-1] == 100
    assert percents == sorted(percents)


def test_extract_rejects_non_pdf(client: TestClient) -> None:
    """Test uploads without a .pdf name are rejected."""
    response = client.post(
        "/api/extraction/extract",
        files={"file": ("notes.txt", b"hello", "text/plain")},
    )
    assert response.status_code == 400


def test_extract_invalid_format(client: TestClient) -> None:
    """Test unknown output formats fail validation."""
    response = client.post("/api/extraction/extract", params={"format": "csv"}, files=PDF_UPLOAD)
    assert response.status_code == 422


def test_extract_no_tables(client: TestClient, extractor: FakeExtractor) -> None:
    """Test a document without tables maps to EXTRACTION_NO_TABLES."""
    extractor.tables_by_page = {}

    response = client.post("/api/extraction/extract", files=PDF_UPLOAD)

    assert response.status_code == 422
    assert response.json()["error"]["code"] == ErrorCode.EXTRACTION_NO_TABLES.value
    assert response.headers["x-error-code"] == ErrorCode.EXTRACTION_NO_TABLES.value


def test_extract_bad_credentials(client: TestClient, extractor: FakeExtractor) -> None:
    """Test rejected credentials map to 401."""
    extractor.error = InvalidCredentialsError("API key not valid")

    response = client.post("/api/extraction/extract", files=PDF_UPLOAD)

    assert response.status_code == 401
    body = response.json()
    assert body["error"]["code"] == ErrorCode.LLM_AUTH_FAILED.value
    assert "request_id" in body


def test_extract_unreadable_pdf(client: TestClient, rasterizer: FakeRasterizer) -> None:
    """Test rasterizer failures map to 400."""
    rasterizer.error = DocumentError("Could not open PDF")

    response = client.post("/api/extraction/extract", files=PDF_UPLOAD)

    assert response.status_code == 400
    assert response.json()["error"]["code"] == ErrorCode.EXTRACTION_INVALID_PDF.value


@pytest.mark.parametrize(
    ("code", "status"),
    [
        (ErrorCode.EXTRACTION_INVALID_PDF, 400),
        (ErrorCode.LLM_AUTH_FAILED, 401),
        (ErrorCode.EXTRACTION_NO_TABLES, 422),
        (ErrorCode.LLM_RATE_LIMITED, 429),
        (ErrorCode.LLM_UNAVAILABLE, 503),
        (ErrorCode.EXPORT_FAILED, 500),
    ],
)
def test_error_code_to_status(code: ErrorCode, status: int) -> None:
    """Test taxonomy codes map onto HTTP statuses."""
    assert error_code_to_status(code) == status


def test_request_id_header(client: TestClient) -> None:
    """Test that responses include request ID."""
    response = client.get("/health")
    assert "x-request-id" in response.headers


def test_request_id_echoed(client: TestClient) -> None:
    """Test a caller-supplied request ID is echoed back."""
    response = client.get("/health", headers={"X-Request-ID": "abc-123"})
    assert response.headers["x-request-id"] == "abc-123"


def test_404_for_unknown_routes(client: TestClient) -> None:
    """Test 404 for non-existent routes."""
    response = client.get("/api/nonexistent")
    assert response.status_code == 404


async def test_concurrent_uploads_extract_one_at_a_time(app: FastAPI, extractor: FakeExtractor) -> None:
    """Test page calls from simultaneous uploads never overlap."""
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http:
        responses = await asyncio.gather(
            *(
                http.post(
                    "/api/extraction/extract",
                    params={"format": "json"},
                    files={"file": (f"report-{i}.pdf", b"%PDF-1.7 test", "application/pdf")},
                )
                for i in range(3)
            )
        )

    assert [r.status_code for r in responses] == [200, 200, 200]
    assert extractor.peak_in_flight == 1


def test_latency_header(client: TestClient) -> None:
    """Test responses report their processing time."""
    response = client.get("/health")
    assert float(response.headers["x-response-time-ms"]) >= 0


def test_unhandled_error_renders_internal_error(app: FastAPI, client: TestClient) -> None:
    """Test an exception outside the taxonomy becomes a 500 with the request ID."""
    broken = MagicMock()
    broken.assemble.side_effect = RuntimeError("boom")
    app.dependency_overrides[get_assembler] = lambda: broken

    response = client.post("/api/extraction/extract", files=PDF_UPLOAD, headers={"X-Request-ID": "req-9"})

    assert response.status_code == 500
    body = response.json()
    assert body["error"]["code"] == ErrorCode.INTERNAL_ERROR.value
    assert body["request_id"] == "req-9"

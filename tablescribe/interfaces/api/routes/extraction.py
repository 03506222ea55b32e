"""
Extraction Routes - PDF table extraction endpoints.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Literal
from urllib.parse import quote

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel

from tablescribe.adapters.excel import XLSX_MIME_TYPE, workbook_to_bytes
from tablescribe.adapters.pdf import PdfRasterizer
from tablescribe.config import get_settings
from tablescribe.domains.export import WorkbookAssembler
from tablescribe.domains.extraction import ExtractedTable, TableExtractor
from tablescribe.domains.orchestration import (
    DocumentPipeline,
    DocumentProcessor,
    PageOutcome,
    PipelineConfig,
    ProgressEvent,
)

from ..deps import (
    get_assembler,
    get_extraction_lock,
    get_extractor,
    get_pipeline_config,
    get_rasterizer,
)

logger = logging.getLogger(__name__)

router = APIRouter()


class ExtractionResponse(BaseModel):
    """Extraction result response."""

    document_name: str | None
    model: str
    total_pages: int
    table_count: int
    failed_pages: list[int]
    duration_ms: float
    tables: list[ExtractedTable]
    pages: list[PageOutcome]
    progress: list[ProgressEvent]


@router.post("/extract", response_model=None)
async def extract_pdf(
    file: UploadFile = File(...),
    merge: bool = Query(False, description="Put all tables into one sheet"),
    output_format: Literal["xlsx", "json"] = Query("xlsx", alias="format"),
    extractor: TableExtractor = Depends(get_extractor),
    rasterizer: PdfRasterizer = Depends(get_rasterizer),
    assembler: WorkbookAssembler = Depends(get_assembler),
    config: PipelineConfig = Depends(get_pipeline_config),
    lock: asyncio.Lock = Depends(get_extraction_lock),
) -> Response:
    """
    Extract every table from an uploaded PDF.

    Returns the workbook as a download (``format=xlsx``) or the tables,
    per-page outcomes and progress log as JSON (``format=json``).
    """
    if not file.filename or not file.filename.lower().endswith(".pdf"):
        raise HTTPException(status_code=400, detail="File must be a PDF")

    data = await file.read()
    max_bytes = get_settings().max_upload_mb * 1024 * 1024
    if len(data) > max_bytes:
        raise HTTPException(status_code=413, detail="File too large")

    events: list[ProgressEvent] = []
    pipeline: DocumentProcessor = DocumentPipeline(
        extractor, config, observer=events.append, rasterizer=rasterizer
    )
    async with lock:
        result = await pipeline.process_pdf(data, document_name=file.filename)

    if not result.success:
        # ErrorHandlerMiddleware renders the taxonomy error
        raise result.error.to_exception()

    if output_format == "json":
        body = ExtractionResponse(
            document_name=result.document_name,
            model=result.model_used,
            total_pages=result.total_pages,
            table_count=result.table_count,
            failed_pages=result.failed_pages,
            duration_ms=result.total_duration_ms,
            tables=result.tables,
            pages=result.pages,
            progress=events,
        )
        return JSONResponse(content=body.model_dump(mode="json"))

    plan = assembler.assemble(result.tables, merge_all=merge, source_name=file.filename)
    content = await asyncio.to_thread(workbook_to_bytes, plan)
    logger.info("Returning %s with %d sheets", plan.filename, len(plan.sheets))
    return Response(
        content=content,
        media_type=XLSX_MIME_TYPE,
        headers={"Content-Disposition": f"attachment; filename*=UTF-8''{quote(plan.filename)}"},
    )

"""
API Dependencies - Dependency injection for FastAPI routes.

Provides singleton instances of the extraction components. Pipelines
hold per-run state, so routes build a fresh one per request from these.
"""

from __future__ import annotations

import asyncio
from functools import lru_cache

from fastapi import Request

from tablescribe.adapters.gemini import GeminiClient, GeminiConfig
from tablescribe.adapters.pdf import PdfRasterizer
from tablescribe.config import get_settings
from tablescribe.domains.export import ExportOptions, WorkbookAssembler
from tablescribe.domains.extraction import GeminiTableExtractor, TableExtractor
from tablescribe.domains.orchestration import PipelineConfig


@lru_cache
def get_gemini_client() -> GeminiClient:
    """Get Gemini client singleton."""
    return GeminiClient(GeminiConfig.from_settings(get_settings()))


@lru_cache
def get_extractor() -> TableExtractor:
    """Get page table extractor singleton."""
    settings = get_settings()
    return GeminiTableExtractor(
        get_gemini_client(),
        malformed_policy=settings.malformed_response_policy,
    )


@lru_cache
def get_rasterizer() -> PdfRasterizer:
    """Get PDF rasterizer singleton."""
    return PdfRasterizer.from_settings(get_settings())


@lru_cache
def get_assembler() -> WorkbookAssembler:
    """Get workbook assembler singleton."""
    return WorkbookAssembler(ExportOptions.from_settings(get_settings()))


@lru_cache
def get_pipeline_config() -> PipelineConfig:
    """Get pipeline pacing and retry policy."""
    return PipelineConfig.from_settings(get_settings())


def get_extraction_lock(request: Request) -> asyncio.Lock:
    """Get the app-wide lock that serializes document extraction."""
    return request.app.state.extraction_lock

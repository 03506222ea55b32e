"""
FastAPI Main Application - Unified API entry point.

Run with: uvicorn tablescribe.interfaces.api.main:app --reload
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from tablescribe import __version__
from tablescribe.config import get_settings

from .middleware import ErrorHandlerMiddleware, RequestContextMiddleware
from .routes import extraction, health

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    settings = get_settings()
    logger.info("Starting TableScribe API...")
    logger.info("  Model: %s", settings.gemini_model)
    if not settings.gemini_api_key:
        logger.warning("  GEMINI_API_KEY is not set; extraction requests will fail")

    yield

    logger.info("Shutting down TableScribe API...")


def create_app() -> FastAPI:
    """Create FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="TableScribe API",
        description="Extract tables from PDF documents into spreadsheets",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Uploads share one Gemini key; their page calls must not interleave
    app.state.extraction_lock = asyncio.Lock()

    # Add middleware (order matters - last added = outermost)
    # 1. Error handling (needs request.state.request_id from the context layer)
    app.add_middleware(ErrorHandlerMiddleware)

    # 2. Request context (outermost custom - runs first)
    app.add_middleware(RequestContextMiddleware)

    # 3. CORS (framework middleware)
    allowed_origins = [
        "http://localhost:3000",
        "http://localhost:8000",
        "http://127.0.0.1:3000",
        "http://127.0.0.1:8000",
    ]
    if settings.api_debug:
        allowed_origins.append("http://localhost:5173")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "X-Request-ID"],
        expose_headers=["Content-Disposition", "X-Request-ID", "X-Error-Code"],
    )

    app.include_router(health.router, tags=["Health"])
    app.include_router(extraction.router, prefix="/api/extraction", tags=["Extraction"])

    return app


# Create app instance
app = create_app()

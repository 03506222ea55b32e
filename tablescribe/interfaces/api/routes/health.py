"""
Health Routes - System health and status endpoints.
"""

from typing import Any

from fastapi import APIRouter

from tablescribe import __version__
from tablescribe.config import get_settings

router = APIRouter()


@router.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy", "service": "tablescribe"}


@router.get("/api")
async def api_info() -> dict[str, Any]:
    """API info endpoint."""
    settings = get_settings()
    return {
        "name": "TableScribe API",
        "version": __version__,
        "description": "Table extraction from PDF documents into spreadsheets",
        "model": settings.gemini_model,
        "credentials_configured": bool(settings.gemini_api_key),
        "docs": "/docs",
    }

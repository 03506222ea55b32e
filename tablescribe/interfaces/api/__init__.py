"""
API Interface - FastAPI REST API.

Upload a PDF and download its tables as a workbook or JSON.
"""

from .main import app, create_app

__all__ = ["app", "create_app"]

"""
CLI Interface - Command-line tools for TableScribe.

Provides commands for:
- Table extraction to workbooks or JSON
- Running the API server
"""

from .main import app, main

__all__ = ["app", "main"]

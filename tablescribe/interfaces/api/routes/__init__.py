"""
API Routes.
"""

from . import extraction, health

__all__ = ["health", "extraction"]

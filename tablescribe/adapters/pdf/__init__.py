"""
PDF Adapter - Page rasterization with PyMuPDF.
"""

from .rasterizer import PdfRasterizer

__all__ = ["PdfRasterizer"]

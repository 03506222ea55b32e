"""
TableScribe - PDF table extraction to spreadsheets with Gemini vision.

Example:
    >>> from tablescribe.adapters.gemini import GeminiClient
    >>> from tablescribe.domains.extraction import GeminiTableExtractor
    >>> from tablescribe.domains.orchestration import DocumentPipeline
    >>> pipeline = DocumentPipeline(GeminiTableExtractor(GeminiClient()))
    >>> result = await pipeline.run(pages)
"""

__version__ = "1.0.0"
__all__ = ["__version__"]

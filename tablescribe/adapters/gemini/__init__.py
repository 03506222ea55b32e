"""
Gemini Adapter - Google Gemini API client.

This is the ONLY place that calls the Gemini API.
All domains use this adapter for model calls.
"""

from .client import GeminiClient
from .models import GeminiConfig, GeminiResponse, ThinkingLevel

__all__ = [
    "GeminiClient",
    "GeminiConfig",
    "GeminiResponse",
    "ThinkingLevel",
]

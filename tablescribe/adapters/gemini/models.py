"""
Gemini Models - Request/Response types for Gemini API.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from tablescribe.config import Settings


class ThinkingLevel(str, Enum):
    """Gemini thinking mode levels."""

    NONE = "none"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class GeminiConfig(BaseModel):
    """Configuration for Gemini client.

    Credentials travel with the config; the client never reads
    process-wide SDK state.
    """

    model: str = Field(default="gemini-2.5-flash")
    api_key: str | None = Field(default=None, repr=False)
    temperature: float = Field(default=0.0, ge=0.0, le=2.0)
    thinking_level: ThinkingLevel = Field(default=ThinkingLevel.NONE)
    max_output_tokens: int = Field(default=32768)
    timeout_seconds: int = Field(default=120)

    model_config = {"frozen": True}

    @classmethod
    def from_settings(cls, settings: Settings) -> GeminiConfig:
        """Build client config from application settings."""
        return cls(
            model=settings.gemini_model,
            api_key=settings.gemini_api_key,
            temperature=settings.gemini_temperature,
            timeout_seconds=settings.gemini_timeout_seconds,
        )


class GeminiResponse(BaseModel):
    """Generic Gemini API response."""

    text: str
    model: str
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0
    finish_reason: str = "STOP"

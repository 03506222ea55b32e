"""
Gemini Client - Google Gemini API client for page images.

This is the SINGLE place that talks to the Gemini API.

Authentication:
- The API key is part of ``GeminiConfig`` and is handed to the SDK client
  explicitly; there is no global ``configure()`` call.

Errors:
- Service and transport failures (including HTTP 429 / RESOURCE_EXHAUSTED)
  propagate unmodified so the caller's retry policy can inspect them.
- A response without any text raises ``EmptyResponseError``.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from google import genai
from google.genai import types

from tablescribe.config.errors import EmptyResponseError, InvalidCredentialsError

from .models import GeminiConfig, GeminiResponse, ThinkingLevel

logger = logging.getLogger(__name__)

__all__ = ["GeminiClient"]


class GeminiClient:
    """
    Gemini API client for single-image structured generation.

    Example:
        >>> client = GeminiClient(GeminiConfig(api_key="..."))
        >>> response = await client.generate_from_image(
        ...     png_bytes, "image/png", "Extract all tables", response_schema=schema
        ... )
        >>> print(response.text)
    """

    def __init__(
        self,
        config: GeminiConfig | None = None,
    ) -> None:
        """
        Initialize Gemini client.

        Args:
            config: Client configuration. Uses defaults if None.
        """
        self.config = config or GeminiConfig()

        # SDK client (lazy loaded)
        self._client: genai.Client | None = None

        logger.info(
            "GeminiClient initialized: model=%s, thinking=%s",
            self.config.model,
            self.config.thinking_level.value,
        )

    def _get_client(self) -> genai.Client:
        """Get or create the SDK client."""
        if self._client is None:
            if not self.config.api_key:
                raise InvalidCredentialsError(
                    "No Gemini API key configured. Set GEMINI_API_KEY or pass api_key."
                )
            self._client = genai.Client(
                api_key=self.config.api_key,
                http_options=types.HttpOptions(
                    timeout=self.config.timeout_seconds * 1000
                ),
            )
        return self._client

    def _thinking_budget(self) -> int:
        """Get thinking token budget based on level."""
        budgets = {
            ThinkingLevel.NONE: 0,
            ThinkingLevel.LOW: 1024,
            ThinkingLevel.MEDIUM: 4096,
            ThinkingLevel.HIGH: 16384,
        }
        return budgets.get(self.config.thinking_level, 0)

    def _generation_config(
        self,
        response_schema: dict[str, Any] | None,
    ) -> types.GenerateContentConfig:
        """Build the per-request generation config."""
        options: dict[str, Any] = {
            "temperature": self.config.temperature,
            "max_output_tokens": self.config.max_output_tokens,
        }
        if response_schema is not None:
            options["response_mime_type"] = "application/json"
            options["response_schema"] = response_schema

        if self.config.thinking_level != ThinkingLevel.NONE:
            options["thinking_config"] = types.ThinkingConfig(
                thinking_budget=self._thinking_budget()
            )

        return types.GenerateContentConfig(**options)

    async def generate_from_image(
        self,
        image: bytes,
        mime_type: str,
        prompt: str,
        response_schema: dict[str, Any] | None = None,
    ) -> GeminiResponse:
        """
        Generate a response for one image and an instruction.

        Args:
            image: Encoded image bytes
            mime_type: Image MIME type (e.g. "image/png")
            prompt: Instruction sent alongside the image
            response_schema: Optional schema constraining a JSON response

        Returns:
            GeminiResponse with the raw response text

        Raises:
            InvalidCredentialsError: No API key configured
            EmptyResponseError: The service returned no text
        """
        client = self._get_client()

        contents = [
            types.Part.from_bytes(data=image, mime_type=mime_type),
            prompt,
        ]

        response = await asyncio.to_thread(
            client.models.generate_content,
            model=self.config.model,
            contents=contents,
            config=self._generation_config(response_schema),
        )

        text = response.text
        if not text:
            raise EmptyResponseError(
                "No response text received from Gemini",
                details={"model": self.config.model},
            )

        # Get usage stats
        usage = getattr(response, "usage_metadata", None)
        prompt_tokens = (getattr(usage, "prompt_token_count", 0) or 0) if usage else 0
        completion_tokens = (
            (getattr(usage, "candidates_token_count", 0) or 0) if usage else 0
        )

        finish_reason = "STOP"
        candidates = getattr(response, "candidates", None) or []
        if candidates and getattr(candidates[0], "finish_reason", None) is not None:
            finish_reason = str(candidates[0].finish_reason)

        logger.debug(
            "Gemini response: %d chars, %d prompt tokens, %d completion tokens",
            len(text),
            prompt_tokens,
            completion_tokens,
        )

        return GeminiResponse(
            text=text,
            model=self.config.model,
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            total_tokens=prompt_tokens + completion_tokens,
            finish_reason=finish_reason,
        )

"""
Gemini Table Extractor - Table extraction from page images using Gemini.

Each call sends exactly one page image to the model together with a fixed
instruction and a response schema, then normalizes the JSON it returns.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Any

from tablescribe.config.errors import MalformedResponseError

from .models import ExtractedTable, MalformedResponsePolicy, PageImage
from .normalizer import parse_tables

if TYPE_CHECKING:
    from tablescribe.adapters.gemini import GeminiClient

logger = logging.getLogger(__name__)

__all__ = ["EXTRACTION_PROMPT", "GeminiTableExtractor", "TABLES_RESPONSE_SCHEMA"]

EXTRACTION_PROMPT = """You are a data extraction (OCR) specialist.
Task: find and extract EVERY data table visible in this page image.

Rules:
1. Tables may have no ruled lines. Infer column boundaries from the visual
   spacing between text.
2. Never merge two distinct columns into one.
3. Name each table (tableName) from the title or caption shown above it.
4. headers: the exact column names, left to right.
5. data: one array per row, each value aligned by position with headers.
6. Represent an empty cell as an empty string "".
7. Keep numbers, dates and currency amounts exactly as printed, as text.
8. If a cell spans several lines, join the lines with a single space.
9. If there is no explicit table, group repeated structured information
   into a table.
10. Do not omit any row or column.
11. Return JSON that follows the provided schema."""

TABLES_RESPONSE_SCHEMA: dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "tables": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "tableName": {
                        "type": "STRING",
                        "description": "Name of the table",
                    },
                    "headers": {
                        "type": "ARRAY",
                        "items": {"type": "STRING"},
                        "description": "Column names, left to right",
                    },
                    "data": {
                        "type": "ARRAY",
                        "items": {
                            "type": "ARRAY",
                            "items": {"type": "STRING"},
                            "description": "One row, values aligned with headers",
                        },
                        "description": "Data rows",
                    },
                },
                "required": ["tableName", "headers", "data"],
            },
        }
    },
    "required": ["tables"],
}


class GeminiTableExtractor:
    """
    Page-image table extractor using Gemini API.

    Example:
        >>> from tablescribe.adapters.gemini import GeminiClient, GeminiConfig
        >>> extractor = GeminiTableExtractor(GeminiClient(GeminiConfig(api_key="...")))
        >>> tables = await extractor.extract(PageImage(index=0, data=png_bytes))
    """

    def __init__(
        self,
        client: GeminiClient,
        malformed_policy: MalformedResponsePolicy = "skip",
        prompt: str = EXTRACTION_PROMPT,
    ) -> None:
        """
        Initialize extractor.

        Args:
            client: Gemini API client
            malformed_policy: "skip" treats an unparseable response as zero
                tables; "raise" lets MalformedResponseError propagate
            prompt: Instruction sent with every page image
        """
        self._client = client
        self._malformed_policy = malformed_policy
        self._prompt = prompt

    @property
    def model(self) -> str:
        """Model name used for extraction."""
        return self._client.config.model

    async def extract(self, page: PageImage) -> list[ExtractedTable]:
        """
        Extract all tables from one page image.

        Args:
            page: Rasterized page

        Returns:
            Tables in the order the model returned them (possibly empty)
        """
        start_time = time.time()

        response = await self._client.generate_from_image(
            page.data,
            page.mime_type,
            self._prompt,
            response_schema=TABLES_RESPONSE_SCHEMA,
        )

        try:
            tables = parse_tables(response.text)
        except MalformedResponseError as e:
            if self._malformed_policy == "raise":
                raise
            logger.warning(
                "Page %d: %s, treating as zero tables", page.index + 1, e.message
            )
            return []

        logger.info(
            "Page %d: %d tables in %.1fs",
            page.index + 1,
            len(tables),
            time.time() - start_time,
        )
        return tables

"""
Error Taxonomy - Consistent error codes across the application.

Usage:
    from tablescribe.config.errors import ErrorCode, TableScribeError

    raise TableScribeError(ErrorCode.EXTRACTION_NO_TABLES, "No tables found")
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Standardized error codes for machine-readable error responses."""

    # Extraction errors
    EXTRACTION_FAILED = "EXTRACTION_FAILED"
    EXTRACTION_INVALID_PDF = "EXTRACTION_INVALID_PDF"
    EXTRACTION_EMPTY_RESPONSE = "EXTRACTION_EMPTY_RESPONSE"
    EXTRACTION_MALFORMED_RESPONSE = "EXTRACTION_MALFORMED_RESPONSE"
    EXTRACTION_NO_TABLES = "EXTRACTION_NO_TABLES"

    # Pipeline errors
    PIPELINE_CANCELLED = "PIPELINE_CANCELLED"

    # Export errors
    EXPORT_FAILED = "EXPORT_FAILED"

    # LLM/Model errors
    LLM_UNAVAILABLE = "LLM_UNAVAILABLE"
    LLM_RATE_LIMITED = "LLM_RATE_LIMITED"
    LLM_AUTH_FAILED = "LLM_AUTH_FAILED"

    # General errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"


class TableScribeError(Exception):
    """Base exception with error code support."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(f"[{code.value}] {message}")

    def to_dict(self) -> dict[str, Any]:
        """Convert to API-friendly dictionary."""
        return {
            "code": self.code.value,
            "message": self.message,
            "details": self.details,
        }


# Domain-specific exceptions for cleaner imports
class InvalidCredentialsError(TableScribeError):
    """API key missing or rejected by the extraction service."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.LLM_AUTH_FAILED, message, details)


class RateLimitedError(TableScribeError):
    """Rate limit retries exhausted."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.LLM_RATE_LIMITED, message, details)


class TransportError(TableScribeError):
    """Network or service failure that is not a rate limit."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.LLM_UNAVAILABLE, message, details)


class EmptyResponseError(TableScribeError):
    """The extraction service returned no text payload."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.EXTRACTION_EMPTY_RESPONSE, message, details)


class MalformedResponseError(TableScribeError):
    """The payload does not match the declared response schema."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.EXTRACTION_MALFORMED_RESPONSE, message, details)


class NoTablesFoundError(TableScribeError):
    """Every page was processed and none yielded a table."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.EXTRACTION_NO_TABLES, message, details)


class PipelineCancelledError(TableScribeError):
    """Document processing was cancelled between pages."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.PIPELINE_CANCELLED, message, details)


class DocumentError(TableScribeError):
    """The source PDF could not be opened or rendered."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.EXTRACTION_INVALID_PDF, message, details)


class ExportError(TableScribeError):
    """Workbook assembly or encoding failed."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.EXPORT_FAILED, message, details)

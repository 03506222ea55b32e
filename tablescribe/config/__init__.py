"""
Configuration - Application settings and error taxonomy.
"""

from .errors import (
    DocumentError,
    EmptyResponseError,
    ErrorCode,
    ExportError,
    InvalidCredentialsError,
    MalformedResponseError,
    NoTablesFoundError,
    PipelineCancelledError,
    RateLimitedError,
    TableScribeError,
    TransportError,
)
from .settings import Settings, get_settings

__all__ = [
    # Settings
    "Settings",
    "get_settings",
    # Errors
    "ErrorCode",
    "TableScribeError",
    "InvalidCredentialsError",
    "RateLimitedError",
    "TransportError",
    "EmptyResponseError",
    "MalformedResponseError",
    "NoTablesFoundError",
    "PipelineCancelledError",
    "DocumentError",
    "ExportError",
]

"""
API Middleware - Request context and error rendering.

Provides:
- RequestContextMiddleware: request ID and latency headers, one access log line
- ErrorHandlerMiddleware: TableScribeError to JSON with a mapped HTTP status
"""

from __future__ import annotations

import logging
import time
import uuid
from collections.abc import Awaitable, Callable
from typing import Any

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from tablescribe.config.errors import ErrorCode, TableScribeError

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
ERROR_CODE_HEADER = "X-Error-Code"

_STATUS_BY_CODE = {
    ErrorCode.EXTRACTION_INVALID_PDF: 400,
    ErrorCode.VALIDATION_ERROR: 400,
    ErrorCode.LLM_AUTH_FAILED: 401,
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.EXTRACTION_NO_TABLES: 422,
    ErrorCode.LLM_RATE_LIMITED: 429,
    ErrorCode.EXTRACTION_EMPTY_RESPONSE: 502,
    ErrorCode.EXTRACTION_MALFORMED_RESPONSE: 502,
    ErrorCode.LLM_UNAVAILABLE: 503,
}


def error_code_to_status(code: ErrorCode) -> int:
    """Map error codes to HTTP status codes."""
    return _STATUS_BY_CODE.get(code, 500)


def _error_response(request: Request, status: int, error: dict[str, Any]) -> JSONResponse:
    return JSONResponse(
        status_code=status,
        content={"error": error, "request_id": request.state.request_id},
        headers={ERROR_CODE_HEADER: error["code"]},
    )


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Tag each request with an ID and log its status and latency.

    A caller-supplied ``X-Request-ID`` is kept so uploads can be traced
    from the client through extraction logs.
    """

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        request.state.request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        start = time.perf_counter()

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start) * 1000
        response.headers[REQUEST_ID_HEADER] = request.state.request_id
        response.headers["X-Response-Time-Ms"] = f"{duration_ms:.2f}"
        logger.info(
            "%s %s -> %d in %.0fms [%s]",
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
            request.state.request_id,
        )
        return response


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Render failures as ``{"error": {...}, "request_id": ...}``."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        try:
            return await call_next(request)
        except TableScribeError as e:
            status = error_code_to_status(e.code)
            # 4xx outcomes log at WARNING
            log = logger.error if status >= 500 else logger.warning
            log("%s: %s details=%s [%s]", e.code.value, e.message, e.details, request.state.request_id)
            return _error_response(request, status, e.to_dict())
        except Exception:
            logger.exception("Unhandled error [%s]", request.state.request_id)
            return _error_response(
                request,
                500,
                {"code": ErrorCode.INTERNAL_ERROR.value, "message": "Internal server error", "details": {}},
            )

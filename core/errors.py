"""Application-level error types and handlers."""

from __future__ import annotations

from enum import Enum
from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from translation.errors import UpstreamError


class ErrorCode(str, Enum):
    """Canonical API error codes."""

    BAD_REQUEST = "BAD_REQUEST"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    SUPERSEDED = "SUPERSEDED"
    PAYLOAD_TOO_LARGE = "PAYLOAD_TOO_LARGE"
    UPSTREAM_ERROR = "UPSTREAM_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class AppError(Exception):
    """Application error with explicit status and code."""

    def __init__(
        self,
        *,
        code: ErrorCode,
        message: str,
        status_code: int = 400,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details


def not_found(message: str, **details: Any) -> AppError:
    """Shorthand for the 404 variant used by lookups."""
    return AppError(
        code=ErrorCode.NOT_FOUND,
        message=message,
        status_code=404,
        details=details or None,
    )


def validation_error(message: str, **details: Any) -> AppError:
    """Shorthand for rejected request fields; no job is created."""
    return AppError(
        code=ErrorCode.VALIDATION_ERROR,
        message=message,
        status_code=422,
        details=details or None,
    )


def build_error_response(
    *,
    request: Request,
    code: ErrorCode | str,
    message: str,
    status_code: int,
    details: dict[str, Any] | None = None,
) -> JSONResponse:
    """Builds a standardized error response envelope."""
    request_id = getattr(request.state, "request_id", None)
    code_value = code.value if isinstance(code, ErrorCode) else str(code)
    payload: dict[str, Any] = {
        "error": {
            "code": code_value,
            "message": message,
            "request_id": request_id,
        }
    }
    if details:
        payload["error"]["details"] = details
    return JSONResponse(status_code=status_code, content=payload)


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """FastAPI exception handler for AppError."""
    return build_error_response(
        request=request,
        code=exc.code,
        message=exc.message,
        status_code=exc.status_code,
        details=exc.details,
    )


_STATUS_CODES: dict[int, ErrorCode] = {
    400: ErrorCode.BAD_REQUEST,
    401: ErrorCode.UNAUTHORIZED,
    403: ErrorCode.FORBIDDEN,
    404: ErrorCode.NOT_FOUND,
    409: ErrorCode.CONFLICT,
    413: ErrorCode.PAYLOAD_TOO_LARGE,
    422: ErrorCode.VALIDATION_ERROR,
    502: ErrorCode.UPSTREAM_ERROR,
    504: ErrorCode.UPSTREAM_ERROR,
}


def _map_status_to_code(status_code: int) -> ErrorCode:
    """Maps HTTP status to canonical error code."""
    if status_code in _STATUS_CODES:
        return _STATUS_CODES[status_code]
    if 400 <= status_code < 500:
        return ErrorCode.BAD_REQUEST
    return ErrorCode.INTERNAL_ERROR


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Converts HTTPException responses into the standard error envelope."""
    details: dict[str, Any] | None = None
    if isinstance(exc.detail, str):
        message = exc.detail
    elif isinstance(exc.detail, dict):
        message = str(exc.detail.get("message") or "Request failed")
        details = exc.detail
    else:
        message = "Request failed"
        if exc.detail is not None:
            details = {"detail": exc.detail}

    return build_error_response(
        request=request,
        code=_map_status_to_code(exc.status_code),
        message=message,
        status_code=exc.status_code,
        details=details,
    )


async def upstream_error_handler(request: Request, exc: UpstreamError) -> JSONResponse:
    """
    Translation engine or storage failures that escape a request.

    Job runs record these on the job instead; this only covers
    synchronous paths.
    """
    details: dict[str, Any] = {"retryable": exc.retryable}
    if exc.status_code is not None:
        details["upstream_status"] = exc.status_code
    return build_error_response(
        request=request,
        code=ErrorCode.UPSTREAM_ERROR,
        message=exc.message,
        status_code=502,
        details=details,
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Converts request validation errors into the standard error envelope."""
    return build_error_response(
        request=request,
        code=ErrorCode.VALIDATION_ERROR,
        message="Request validation failed",
        status_code=422,
        details={"errors": jsonable_errors(exc)},
    )


def jsonable_errors(exc: RequestValidationError) -> list[dict[str, Any]]:
    """Drops non-serializable context (e.g. raised ValueErrors) from errors."""
    cleaned: list[dict[str, Any]] = []
    for error in exc.errors():
        item = {key: value for key, value in error.items() if key != "ctx"}
        cleaned.append(item)
    return cleaned


async def unhandled_exception_handler(
    request: Request, _: Exception
) -> JSONResponse:
    """Fallback error handler for unexpected exceptions."""
    return build_error_response(
        request=request,
        code=ErrorCode.INTERNAL_ERROR,
        message="Internal server error",
        status_code=500,
    )

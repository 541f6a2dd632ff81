"""
Exception handlers that turn every failure into the standard error envelope.

Domain code raises :class:`AppException` subclasses; FastAPI, pydantic and
asyncpg errors are mapped here so routes never build error bodies by hand.
Details that could leak internals (SQL state, tracebacks) are only
attached when ``settings.debug`` is on.
"""

from __future__ import annotations

import traceback

from typing import Any

import asyncpg

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from api.middleware.request_context import get_request_context, get_request_id
from core.constants import get_settings
from models.error_models import ErrorCode, ErrorDetail, ErrorResponse, get_status_code
from utils.logger import logger


class AppException(Exception):
    """Error with a stable code, rendered by :func:`app_exception_handler`.

    ``details`` is a flat mapping; each non-null entry becomes one
    ``ErrorDetail(field=key, message=value)`` in the response.
    """

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        details: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ):
        self.code = code
        self.message = message
        self.details = details
        self.cause = cause
        super().__init__(message)


class AuthenticationError(AppException):
    def __init__(
        self,
        message: str = "Authentication required",
        code: ErrorCode = ErrorCode.AUTH_REQUIRED,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(code=code, message=message, details=details)


class ForbiddenError(AppException):
    """Caller is authenticated but does not own the resource."""

    def __init__(
        self,
        message: str = "Access denied",
        code: ErrorCode = ErrorCode.AUTH_INSUFFICIENT_PERMISSIONS,
    ):
        super().__init__(code=code, message=message)


class ResourceNotFoundError(AppException):
    def __init__(
        self,
        resource: str,
        resource_id: str | int | None = None,
        code: ErrorCode = ErrorCode.RESOURCE_NOT_FOUND,
    ):
        message = f"{resource} not found" if resource_id is None else f"{resource} '{resource_id}' not found"
        super().__init__(
            code=code,
            message=message,
            details={"resource": resource, "id": None if resource_id is None else str(resource_id)},
        )


class ConversationNotFoundError(ResourceNotFoundError):
    def __init__(self, conversation_id: int):
        super().__init__(resource="Conversation", resource_id=conversation_id, code=ErrorCode.CONVERSATION_NOT_FOUND)


class ResourceConflictError(AppException):
    """Duplicate username or email."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(code=ErrorCode.RESOURCE_ALREADY_EXISTS, message=message, details=details)


class CompletionUnavailableException(AppException):
    """The primary provider and every eligible fallback failed.

    ``attempts`` lists the ``provider:model`` selectors that were tried; it
    is logged but not sent to the client.
    """

    def __init__(self, message: str, attempts: list[str] | None = None, cause: Exception | None = None):
        super().__init__(code=ErrorCode.COMPLETION_UNAVAILABLE, message=message, cause=cause)
        self.attempts = attempts or []


# Status codes raised as plain HTTPException (framework or route code)
_CODE_FOR_STATUS: dict[int, ErrorCode] = {
    400: ErrorCode.VALIDATION_ERROR,
    401: ErrorCode.AUTH_REQUIRED,
    403: ErrorCode.AUTH_INSUFFICIENT_PERMISSIONS,
    404: ErrorCode.RESOURCE_NOT_FOUND,
    405: ErrorCode.RESOURCE_NOT_FOUND,
    409: ErrorCode.RESOURCE_CONFLICT,
    422: ErrorCode.VALIDATION_ERROR,
    429: ErrorCode.EXTERNAL_RATE_LIMITED,
    502: ErrorCode.EXTERNAL_SERVICE_ERROR,
    503: ErrorCode.EXTERNAL_TIMEOUT,
}


def _respond(
    request: Request,
    status_code: int,
    code: ErrorCode,
    message: str,
    *,
    details: list[ErrorDetail] | None = None,
    debug_info: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    include_debug = get_settings().debug
    error_response = ErrorResponse(
        code=code,
        message=message,
        request_id=get_request_id(),
        path=request.url.path,
        details=details or None,
        debug=debug_info if include_debug else None,
    )
    return JSONResponse(
        status_code=status_code,
        content=error_response.to_dict(include_debug=include_debug),
        headers=headers,
    )


def _log_error(error: Exception, code: ErrorCode, status_code: int, **extra: Any) -> None:
    ctx = get_request_context()
    log_context = ctx.to_log_context() if ctx else {}
    log_context.update(extra, error_code=code.value, status_code=status_code)

    if status_code >= 500:
        logger.error(f"Server error: {code.value} - {error}", exc_info=True, **log_context)
    else:
        logger.warning(f"Client error: {code.value} - {error}", **log_context)


def _field_details(errors: Any) -> list[ErrorDetail]:
    return [
        ErrorDetail(
            field=".".join(str(loc) for loc in error["loc"]),
            message=error["msg"],
            code=error["type"],
        )
        for error in errors
    ]


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    status_code = get_status_code(exc.code)

    extra: dict[str, Any] = {}
    if isinstance(exc, CompletionUnavailableException) and exc.attempts:
        extra["attempts"] = exc.attempts
    _log_error(exc, exc.code, status_code, **extra)

    details = [ErrorDetail(field=k, message=str(v)) for k, v in (exc.details or {}).items() if v is not None]
    return _respond(
        request,
        status_code,
        exc.code,
        exc.message,
        details=details,
        debug_info={"exception_type": type(exc).__name__, "cause": str(exc.cause) if exc.cause else None},
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    code = _CODE_FOR_STATUS.get(exc.status_code, ErrorCode.INTERNAL_ERROR)
    _log_error(exc, code, exc.status_code)

    return _respond(
        request,
        exc.status_code,
        code,
        exc.detail if isinstance(exc.detail, str) else str(exc.detail),
        debug_info={"original_status": exc.status_code},
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed request body, path or query parameters."""
    _log_error(exc, ErrorCode.VALIDATION_ERROR, 422)
    return _respond(
        request, 422, ErrorCode.VALIDATION_ERROR, "Request validation failed", details=_field_details(exc.errors())
    )


async def pydantic_exception_handler(request: Request, exc: ValidationError) -> JSONResponse:
    """A model built inside a route or service rejected its data."""
    _log_error(exc, ErrorCode.VALIDATION_ERROR, 422)
    return _respond(
        request, 422, ErrorCode.VALIDATION_ERROR, "Data validation failed", details=_field_details(exc.errors())
    )


async def asyncpg_exception_handler(request: Request, exc: asyncpg.PostgresError) -> JSONResponse:
    status_code = get_status_code(ErrorCode.DATABASE_ERROR)
    _log_error(exc, ErrorCode.DATABASE_ERROR, status_code)

    return _respond(
        request,
        status_code,
        ErrorCode.DATABASE_ERROR,
        "Database operation failed",
        debug_info={"pg_error_code": getattr(exc, "sqlstate", None), "pg_error_class": type(exc).__name__},
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        f"Unhandled exception: {type(exc).__name__}: {exc}",
        exc_info=True,
        request_id=get_request_id(),
        path=request.url.path,
    )

    return _respond(
        request,
        500,
        ErrorCode.INTERNAL_UNEXPECTED,
        "An unexpected error occurred",
        debug_info={
            "exception_type": type(exc).__name__,
            "exception_message": str(exc),
            "traceback": traceback.format_exc(),
        },
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Install every handler on ``app``; call once right after creating it."""
    # Starlette types handlers as taking Exception; the narrower signatures are safe
    app.add_exception_handler(AppException, app_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(HTTPException, http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(ValidationError, pydantic_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(asyncpg.PostgresError, asyncpg_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, generic_exception_handler)


__all__ = [
    "AppException",
    "AuthenticationError",
    "CompletionUnavailableException",
    "ConversationNotFoundError",
    "ForbiddenError",
    "ResourceConflictError",
    "ResourceNotFoundError",
    "app_exception_handler",
    "asyncpg_exception_handler",
    "generic_exception_handler",
    "http_exception_handler",
    "pydantic_exception_handler",
    "register_exception_handlers",
    "validation_exception_handler",
]

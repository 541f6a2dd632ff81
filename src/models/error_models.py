"""
Error envelope shared by every Chatterbox endpoint.

Every failure is returned as ``{"error": {...}}`` with a stable code, the
request id assigned by ``RequestContextMiddleware`` and, for validation
failures, one detail entry per offending field.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class ErrorCode(str, Enum):
    """Stable error codes; the prefix names the failing area."""

    # Authentication (1xxx)
    AUTH_REQUIRED = "AUTH_1001"
    AUTH_INVALID_TOKEN = "AUTH_1002"
    AUTH_EXPIRED_TOKEN = "AUTH_1003"
    AUTH_INSUFFICIENT_PERMISSIONS = "AUTH_1004"
    AUTH_USER_NOT_FOUND = "AUTH_1005"
    AUTH_INVALID_CREDENTIALS = "AUTH_1006"

    # Request validation (2xxx)
    VALIDATION_ERROR = "VAL_2001"

    # Generic resources (3xxx)
    RESOURCE_NOT_FOUND = "RES_3001"
    RESOURCE_ALREADY_EXISTS = "RES_3002"
    RESOURCE_CONFLICT = "RES_3003"

    # Conversations (4xxx)
    CONVERSATION_NOT_FOUND = "CONV_4001"
    CONVERSATION_FORBIDDEN = "CONV_4002"

    # Completion providers (7xxx)
    EXTERNAL_SERVICE_ERROR = "EXT_7001"
    EXTERNAL_TIMEOUT = "EXT_7002"
    EXTERNAL_RATE_LIMITED = "EXT_7003"
    COMPLETION_UNAVAILABLE = "EXT_7004"

    # Storage (8xxx)
    DATABASE_ERROR = "DB_8001"

    # Internal (9xxx)
    INTERNAL_ERROR = "INT_9001"
    INTERNAL_UNEXPECTED = "INT_9999"


class ErrorDetail(BaseModel):
    """One field-level problem, e.g. ``body.content``."""

    field: str | None = None
    message: str
    code: str | None = None
    # Offending input is kept for logs only
    value: Any | None = Field(default=None, exclude=True)


class ErrorResponse(BaseModel):
    """Body of every error response.

    Example::

        {
            "error": {
                "code": "EXT_7004",
                "message": "Failed to generate AI response: quota exceeded",
                "request_id": "req_abc123",
                "timestamp": "2025-01-15T10:30:00Z",
                "path": "/api/conversations/42/messages"
            }
        }
    """

    code: ErrorCode
    message: str
    request_id: str | None = None
    timestamp: str = Field(default_factory=lambda: datetime.now(UTC).isoformat())
    details: list[ErrorDetail] | None = None
    path: str | None = None
    debug: dict[str, Any] | None = Field(default=None, exclude=True)

    def to_dict(self, include_debug: bool = False) -> dict[str, Any]:
        """Serialize as the ``{"error": ...}`` envelope; ``debug`` only when asked."""
        data = self.model_dump(mode="json", exclude_none=True)
        if include_debug and self.debug:
            data["debug"] = self.debug
        return {"error": data}


_STATUS_BY_CODE: dict[int, tuple[ErrorCode, ...]] = {
    401: (
        ErrorCode.AUTH_REQUIRED,
        ErrorCode.AUTH_INVALID_TOKEN,
        ErrorCode.AUTH_EXPIRED_TOKEN,
        ErrorCode.AUTH_USER_NOT_FOUND,
        ErrorCode.AUTH_INVALID_CREDENTIALS,
    ),
    403: (ErrorCode.AUTH_INSUFFICIENT_PERMISSIONS, ErrorCode.CONVERSATION_FORBIDDEN),
    404: (ErrorCode.RESOURCE_NOT_FOUND, ErrorCode.CONVERSATION_NOT_FOUND),
    409: (ErrorCode.RESOURCE_ALREADY_EXISTS, ErrorCode.RESOURCE_CONFLICT),
    422: (ErrorCode.VALIDATION_ERROR,),
    429: (ErrorCode.EXTERNAL_RATE_LIMITED,),
    502: (ErrorCode.EXTERNAL_SERVICE_ERROR,),
    503: (ErrorCode.EXTERNAL_TIMEOUT, ErrorCode.COMPLETION_UNAVAILABLE),
}

ERROR_CODE_TO_STATUS: dict[ErrorCode, int] = {
    code: status for status, codes in _STATUS_BY_CODE.items() for code in codes
}


def get_status_code(error_code: ErrorCode) -> int:
    """HTTP status for ``error_code``; anything unmapped is a 500."""
    return ERROR_CODE_TO_STATUS.get(error_code, 500)


__all__ = [
    "ERROR_CODE_TO_STATUS",
    "ErrorCode",
    "ErrorDetail",
    "ErrorResponse",
    "get_status_code",
]

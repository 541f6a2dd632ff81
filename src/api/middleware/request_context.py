"""
Per-request context for log correlation.

``RequestContextMiddleware`` opens a context for every request; auth, the
conversation routes and the chat service fill in who is asking, which
conversation is involved and which provider finally answered. The logger
merges these fields into every line emitted while the request runs.
"""

from __future__ import annotations

import re
import secrets
import time

from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

_request_context: ContextVar[RequestContext | None] = ContextVar("request_context", default=None)

REQUEST_ID_PREFIX = "req_"

_CONVERSATION_PATH = re.compile(r"/conversations/(\d+)(?:/|$)")


@dataclass
class RequestContext:
    request_id: str
    start_time: float = field(default_factory=time.monotonic)
    path: str = ""
    method: str = ""
    client_ip: str | None = None
    user_id: int | None = None
    conversation_id: int | None = None
    # Set once the completion dispatcher has answered
    provider: str | None = None
    model: str | None = None
    fallback_used: bool = False
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def elapsed_ms(self) -> float:
        return (time.monotonic() - self.start_time) * 1000

    def to_log_context(self) -> dict[str, Any]:
        """Fields merged into every log record; unset ids are omitted."""
        ctx: dict[str, Any] = {
            "request_id": self.request_id,
            "path": self.path,
            "method": self.method,
            "elapsed_ms": round(self.elapsed_ms, 2),
        }
        optional = {
            "client_ip": self.client_ip,
            "user_id": self.user_id,
            "conversation_id": self.conversation_id,
            "provider": self.provider,
            "model": self.model,
        }
        ctx.update({k: v for k, v in optional.items() if v is not None})
        if self.fallback_used:
            ctx["fallback_used"] = True
        return ctx


def generate_request_id(prefix: str = REQUEST_ID_PREFIX) -> str:
    """``prefix`` followed by 16 hex characters, e.g. ``req_a1b2c3d4e5f6a7b8``."""
    return f"{prefix}{secrets.token_hex(8)}"


def get_request_context() -> RequestContext | None:
    return _request_context.get()


def get_request_id() -> str | None:
    ctx = get_request_context()
    return ctx.request_id if ctx else None


def set_request_context(context: RequestContext) -> None:
    _request_context.set(context)


def clear_request_context() -> None:
    _request_context.set(None)


def update_request_context(**kwargs: Any) -> None:
    """Set known fields on the current context; unknown keys go to ``extra``.

    Outside a request this does nothing.
    """
    ctx = get_request_context()
    if ctx is None:
        return
    for key, value in kwargs.items():
        if hasattr(ctx, key):
            setattr(ctx, key, value)
        else:
            ctx.extra[key] = value


def conversation_id_from_path(path: str) -> int | None:
    match = _CONVERSATION_PATH.search(path)
    return int(match.group(1)) if match else None


def _client_ip(request: Request) -> str | None:
    # First hop of X-Forwarded-For when behind a proxy
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Opens the request context and stamps ``X-Request-ID`` / ``X-Response-Time``."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get("X-Request-ID") or generate_request_id()
        context = RequestContext(
            request_id=request_id,
            path=request.url.path,
            method=request.method,
            client_ip=_client_ip(request),
            conversation_id=conversation_id_from_path(request.url.path),
        )
        set_request_context(context)

        try:
            response = await call_next(request)
            response.headers["X-Request-ID"] = request_id
            response.headers["X-Response-Time"] = f"{context.elapsed_ms:.2f}ms"
            return response
        finally:
            clear_request_context()


__all__ = [
    "REQUEST_ID_PREFIX",
    "RequestContext",
    "RequestContextMiddleware",
    "clear_request_context",
    "conversation_id_from_path",
    "generate_request_id",
    "get_request_context",
    "get_request_id",
    "set_request_context",
    "update_request_context",
]

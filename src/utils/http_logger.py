"""
HTTP request/response logging for debugging provider API issues.

Captures request payloads and response bodies using httpx event hooks.
"""

from __future__ import annotations

import json

from typing import Any

import httpx

from utils.logger import logger

SENSITIVE_HEADERS = frozenset({"authorization", "api-key", "x-api-key", "x-goog-api-key"})


class HTTPLogger:
    """Logs HTTP requests and responses for debugging."""

    def __init__(self, enabled: bool = True):
        self.enabled = enabled
        self._request_data: dict[int, dict[str, Any]] = {}

    async def log_request(self, request: httpx.Request) -> None:
        """Log outgoing HTTP request."""
        if not self.enabled:
            return

        try:
            body_str = request.content.decode("utf-8") if request.content else ""
            body_json = json.loads(body_str) if body_str else {}

            # Stored for correlation with the response
            self._request_data[id(request)] = {
                "method": request.method,
                "url": str(request.url),
            }

            logger.info(
                f"HTTP Request: {request.method} {request.url.copy_remove_param('key')}",
                http_request=True,
                method=request.method,
                headers=self._sanitize_headers(dict(request.headers)),
                payload=body_json,
            )

            if body_json:
                logger.debug(f"Request Payload:\n{json.dumps(body_json, indent=2)}")

        except (UnicodeDecodeError, json.JSONDecodeError, httpx.RequestNotRead) as e:
            logger.warning(f"Could not log HTTP request body: {e}")

    async def log_response(self, response: httpx.Response) -> None:
        """Log HTTP response status and (already read) body."""
        if not self.enabled:
            return

        request_data = self._request_data.pop(id(response.request), {})

        body_json: Any
        try:
            body_json = response.json() if response.content else {}
        except httpx.ResponseNotRead:
            # Response hooks run before the body is read for streaming calls
            body_json = {"_note": "streaming response - body not captured"}
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            body_json = {"_error": f"Invalid JSON: {e!s}"}

        logger.info(
            f"HTTP Response: {response.status_code} {request_data.get('method', 'UNKNOWN')} "
            f"{response.request.url.copy_remove_param('key')}",
            http_response=True,
            status_code=response.status_code,
            body=body_json,
        )

    def _sanitize_headers(self, headers: dict[str, str]) -> dict[str, str]:
        """Mask credential headers, keeping the last 4 characters."""
        sanitized = headers.copy()
        for key, value in headers.items():
            if key.lower() in SENSITIVE_HEADERS:
                sanitized[key] = f"***{value[-4:]}" if len(value) > 4 else "***"
        return sanitized


def create_logging_client(
    enabled: bool = True,
    timeout: httpx.Timeout | None = None,
) -> httpx.AsyncClient:
    """Create an httpx client with request/response logging.

    Args:
        enabled: Whether to enable HTTP logging
        timeout: Optional timeout configuration

    Returns:
        Configured httpx.AsyncClient with event hooks
    """
    http_logger = HTTPLogger(enabled=enabled)

    event_hooks: dict[str, list[Any]] = {
        "request": [http_logger.log_request],
        "response": [http_logger.log_response],
    }

    return httpx.AsyncClient(event_hooks=event_hooks, timeout=timeout)

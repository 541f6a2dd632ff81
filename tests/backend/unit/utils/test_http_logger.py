"""Tests for HTTP request/response logging hooks."""

from __future__ import annotations

from unittest.mock import patch

import httpx
import pytest

from utils.http_logger import HTTPLogger, create_logging_client


class TestHTTPLogger:
    def test_sanitize_headers_masks_credentials(self) -> None:
        sanitized = HTTPLogger()._sanitize_headers(
            {"Authorization": "Bearer sk-abcdef123456", "x-goog-api-key": "abc", "Accept": "application/json"}
        )

        assert sanitized["Authorization"] == "***3456"
        assert sanitized["x-goog-api-key"] == "***"
        assert sanitized["Accept"] == "application/json"

    @pytest.mark.asyncio
    async def test_request_and_response_logged(self) -> None:
        http_logger = HTTPLogger()
        request = httpx.Request("POST", "https://api.example.com/v1/chat", json={"model": "gpt-4o"})
        response = httpx.Response(200, json={"ok": True}, request=request)

        with patch("utils.http_logger.logger") as mock_logger:
            await http_logger.log_request(request)
            await http_logger.log_response(response)

        request_call, response_call = mock_logger.info.call_args_list
        assert request_call.kwargs["payload"] == {"model": "gpt-4o"}
        assert response_call.kwargs["status_code"] == 200
        assert response_call.kwargs["body"] == {"ok": True}
        assert "POST" in response_call.args[0]
        assert http_logger._request_data == {}

    @pytest.mark.asyncio
    async def test_disabled_logger_is_silent(self) -> None:
        http_logger = HTTPLogger(enabled=False)
        request = httpx.Request("GET", "https://api.example.com/")

        with patch("utils.http_logger.logger") as mock_logger:
            await http_logger.log_request(request)
            await http_logger.log_response(httpx.Response(204, request=request))

        mock_logger.info.assert_not_called()

    @pytest.mark.asyncio
    async def test_invalid_json_body_is_noted(self) -> None:
        request = httpx.Request("GET", "https://api.example.com/")
        response = httpx.Response(502, text="<html>bad gateway</html>", request=request)

        with patch("utils.http_logger.logger") as mock_logger:
            await HTTPLogger().log_response(response)

        assert "_error" in mock_logger.info.call_args.kwargs["body"]


def test_create_logging_client_installs_hooks() -> None:
    client = create_logging_client(timeout=httpx.Timeout(5.0))

    assert len(client.event_hooks["request"]) == 1
    assert len(client.event_hooks["response"]) == 1
    assert client.timeout.read == 5.0

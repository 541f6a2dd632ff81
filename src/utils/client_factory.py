"""
Provider client factory utilities.
Centralizes httpx and AsyncOpenAI client creation with consistent configuration.
"""

from __future__ import annotations

from typing import Any

import httpx

from openai import AsyncOpenAI

from core.constants import PROVIDER_TIMEOUT_SECONDS
from utils.http_logger import create_logging_client

DEFAULT_CONNECT_TIMEOUT = 10.0  # Time to establish connection
DEFAULT_READ_TIMEOUT = PROVIDER_TIMEOUT_SECONDS  # Non-streaming completions return in one read
DEFAULT_WRITE_TIMEOUT = 30.0  # Time to send request
DEFAULT_POOL_TIMEOUT = 30.0  # Time to acquire connection from pool


def create_http_client(
    enable_logging: bool = False,
    read_timeout: float | None = None,
) -> httpx.AsyncClient:
    """Create HTTP client with provider timeouts.

    Args:
        enable_logging: Enable HTTP request/response logging
        read_timeout: Read timeout in seconds (default: PROVIDER_TIMEOUT_SECONDS)

    Returns:
        Configured httpx.AsyncClient
    """
    effective_read_timeout = read_timeout if read_timeout is not None else DEFAULT_READ_TIMEOUT
    timeout = httpx.Timeout(
        connect=DEFAULT_CONNECT_TIMEOUT,
        read=effective_read_timeout,
        write=DEFAULT_WRITE_TIMEOUT,
        pool=DEFAULT_POOL_TIMEOUT,
    )

    if enable_logging:
        return create_logging_client(enabled=True, timeout=timeout)

    return httpx.AsyncClient(timeout=timeout)


def create_openai_client(
    api_key: str,
    base_url: str | None = None,
    http_client: httpx.AsyncClient | None = None,
    max_retries: int = 0,
) -> AsyncOpenAI:
    """Create AsyncOpenAI client with consistent configuration.

    Also used for OpenAI-compatible vendors (Mistral) via ``base_url``.
    Retries default to 0 so that failures reach the fallback cascade quickly.

    Args:
        api_key: Provider API key
        base_url: Optional base URL for OpenAI-compatible endpoints
        http_client: Optional httpx client (for request logging)
        max_retries: SDK-level retry count

    Returns:
        Configured AsyncOpenAI client
    """
    kwargs: dict[str, Any] = {"api_key": api_key, "http_client": http_client, "max_retries": max_retries}
    if base_url:
        kwargs["base_url"] = base_url
    return AsyncOpenAI(**kwargs)

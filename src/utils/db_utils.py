"""asyncpg pool lifecycle for the API process.

The pool is created once in the FastAPI lifespan (retried while Postgres is
still starting), probed by the readiness endpoint, and drained on shutdown.
"""

from __future__ import annotations

import asyncio
import functools
import random

from collections.abc import AsyncGenerator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import Any, ParamSpec, TypeVar

import asyncpg

from utils.logger import logger

P = ParamSpec("P")
T = TypeVar("T")

#: Errors worth another attempt while the database comes up
TRANSIENT_DB_ERRORS: tuple[type[Exception], ...] = (
    asyncpg.PostgresConnectionError,
    asyncpg.InterfaceError,
)


class ConnectionPoolExhausted(Exception):
    """No usable connection: the pool could not be built or none was free in time."""


def _session_timeouts(timeout_seconds: float) -> Callable[[asyncpg.Connection], Awaitable[None]]:
    millis = int(timeout_seconds * 1000)

    async def init(conn: asyncpg.Connection) -> None:
        # Server-side limits so a stuck query or lock cannot pin a connection
        await conn.execute(f"SET statement_timeout = '{millis}'")
        await conn.execute(f"SET lock_timeout = '{millis}'")

    return init


async def create_database_pool(
    dsn: str,
    *,
    min_size: int = 2,
    max_size: int = 10,
    command_timeout: float = 60.0,
    connection_timeout: float = 10.0,
    max_inactive_connection_lifetime: float = 300.0,
) -> asyncpg.Pool:
    """Open the application pool.

    ``command_timeout`` is applied both client-side and as the session's
    statement and lock timeout. ``connection_timeout`` bounds how long the
    initial ``min_size`` connections may take.

    Raises:
        ConnectionPoolExhausted: The pool could not be opened
    """
    try:
        pool = await asyncio.wait_for(
            asyncpg.create_pool(
                dsn=dsn,
                min_size=min_size,
                max_size=max_size,
                command_timeout=command_timeout,
                max_inactive_connection_lifetime=max_inactive_connection_lifetime,
                init=_session_timeouts(command_timeout),
            ),
            timeout=connection_timeout,
        )
    except asyncio.TimeoutError as e:
        raise ConnectionPoolExhausted(f"Connection pool creation timed out after {connection_timeout}s") from e
    except (OSError, asyncpg.PostgresError, asyncpg.InterfaceError) as e:
        raise ConnectionPoolExhausted(f"Failed to create connection pool: {e}") from e

    if pool is None:
        raise ConnectionPoolExhausted("Failed to create connection pool")
    logger.info(f"Database pool open (min={min_size}, max={max_size})")
    return pool


@asynccontextmanager
async def acquire_connection(
    pool: asyncpg.Pool,
    *,
    timeout: float | None = None,
) -> AsyncGenerator[asyncpg.Connection, None]:
    """``pool.acquire`` that reports a timeout as :class:`ConnectionPoolExhausted`."""
    try:
        async with pool.acquire(timeout=timeout) as conn:
            yield conn
    except asyncio.TimeoutError as e:
        raise ConnectionPoolExhausted(f"Could not acquire a database connection within {timeout}s") from e


def with_retry(
    max_attempts: int = 3,
    base_delay: float = 0.5,
    max_delay: float = 5.0,
    retryable_exceptions: tuple[type[Exception], ...] = (*TRANSIENT_DB_ERRORS, ConnectionPoolExhausted),
) -> Callable[[Callable[P, Awaitable[T]]], Callable[P, Awaitable[T]]]:
    """Retry an async database call with capped exponential backoff and jitter.

    Only ``retryable_exceptions`` are retried; anything else propagates on
    the first failure. The last transient error is re-raised once
    ``max_attempts`` is reached.

    Example:
        connect = with_retry(max_attempts=5)(create_database_pool)
        pool = await connect(settings.database_url)
    """

    def decorator(func: Callable[P, Awaitable[T]]) -> Callable[P, Awaitable[T]]:
        @functools.wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            attempt = 1
            while True:
                try:
                    return await func(*args, **kwargs)
                except retryable_exceptions as e:
                    if attempt >= max_attempts:
                        logger.error(f"Database operation gave up after {attempt} attempts: {e}")
                        raise
                    delay = min(base_delay * 2 ** (attempt - 1) + random.uniform(0, 0.5), max_delay)
                    logger.warning(
                        f"Database operation failed ({attempt}/{max_attempts}), retrying in {delay:.2f}s: {e}"
                    )
                    await asyncio.sleep(delay)
                    attempt += 1

        return wrapper

    return decorator


async def check_pool_health(pool: asyncpg.Pool) -> dict[str, Any]:
    """Run ``SELECT 1`` and report pool occupancy.

    Never raises; a failed probe is reported as ``healthy: False`` with
    the error text.
    """
    error: str | None = None
    try:
        async with acquire_connection(pool, timeout=5.0) as conn:
            healthy = await conn.fetchval("SELECT 1") == 1
    except (OSError, asyncpg.PostgresError, asyncpg.InterfaceError, ConnectionPoolExhausted) as e:
        logger.warning(f"Database health check failed: {e}")
        healthy = False
        error = str(e)

    size = pool.get_size()
    idle = pool.get_idle_size()
    return {
        "healthy": healthy,
        "pool_size": size,
        "pool_free": idle,
        "pool_used": size - idle,
        "error": error,
    }


async def graceful_pool_close(pool: asyncpg.Pool, timeout: float = 10.0) -> None:
    """Wait up to ``timeout`` seconds for in-flight queries, then close the pool."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while (busy := pool.get_size() - pool.get_idle_size()) > 0:
        if loop.time() >= deadline:
            logger.warning(f"Closing database pool with {busy} connection(s) still busy")
            break
        await asyncio.sleep(0.1)

    await pool.close()
    logger.info("Database pool closed")

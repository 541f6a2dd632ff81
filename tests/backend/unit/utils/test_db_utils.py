import asyncio

from unittest.mock import AsyncMock, MagicMock, patch

import asyncpg
import pytest

from utils.db_utils import (
    ConnectionPoolExhausted,
    acquire_connection,
    check_pool_health,
    create_database_pool,
    graceful_pool_close,
    with_retry,
)


def _pool_with_conn(conn: AsyncMock) -> MagicMock:
    mock_pool = MagicMock()
    mock_ctx = AsyncMock()
    mock_ctx.__aenter__.return_value = conn
    mock_pool.acquire.return_value = mock_ctx
    return mock_pool


@pytest.mark.asyncio
async def test_create_database_pool_success() -> None:
    """Test successful pool creation and initialization."""
    mock_pool = AsyncMock(spec=asyncpg.Pool)

    with patch("asyncpg.create_pool", new_callable=AsyncMock) as mock_create:
        mock_create.return_value = mock_pool

        pool = await create_database_pool("postgres://dsn", max_size=4)

        assert pool == mock_pool
        kwargs = mock_create.call_args.kwargs
        assert kwargs["dsn"] == "postgres://dsn"
        assert kwargs["max_size"] == 4

        # Test the init function sets timeouts
        mock_conn = AsyncMock()
        await kwargs["init"](mock_conn)

        assert mock_conn.execute.call_count == 2
        assert mock_conn.execute.call_args_list[0][0][0] == "SET statement_timeout = '60000'"
        assert "SET lock_timeout" in mock_conn.execute.call_args_list[1][0][0]


@pytest.mark.asyncio
async def test_create_database_pool_timeout() -> None:
    """Test pool creation timeout handling."""
    with (
        patch("asyncpg.create_pool", side_effect=asyncio.TimeoutError),
        pytest.raises(ConnectionPoolExhausted, match="timed out"),
    ):
        await create_database_pool("postgres://dsn", connection_timeout=0.1)


@pytest.mark.asyncio
async def test_create_database_pool_connection_refused() -> None:
    with (
        patch("asyncpg.create_pool", new_callable=AsyncMock, side_effect=ConnectionRefusedError("refused")),
        pytest.raises(ConnectionPoolExhausted, match="Failed to create connection pool"),
    ):
        await create_database_pool("postgres://dsn")


@pytest.mark.asyncio
async def test_acquire_connection_success() -> None:
    """Test successful connection acquisition."""
    mock_conn = AsyncMock()
    mock_pool = _pool_with_conn(mock_conn)

    async with acquire_connection(mock_pool, timeout=2.0) as conn:
        assert conn == mock_conn

    mock_pool.acquire.assert_called_once_with(timeout=2.0)


@pytest.mark.asyncio
async def test_acquire_connection_timeout() -> None:
    """Test timeout during acquisition."""
    mock_pool = MagicMock()
    mock_pool.acquire.side_effect = asyncio.TimeoutError

    with pytest.raises(ConnectionPoolExhausted, match="Could not acquire"):
        async with acquire_connection(mock_pool, timeout=1.0):
            pass


@pytest.mark.asyncio
async def test_with_retry_success() -> None:
    """Test retry logic eventually succeeds."""
    mock_func = AsyncMock(side_effect=[asyncpg.PostgresConnectionError("Fail 1"), "Success"])

    @with_retry(max_attempts=3, base_delay=0.01)
    async def retried_func() -> str:
        return await mock_func()  # type: ignore

    with patch("utils.db_utils.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
        result = await retried_func()

    assert result == "Success"
    assert mock_func.call_count == 2
    mock_sleep.assert_awaited_once()


@pytest.mark.asyncio
async def test_with_retry_exhausted() -> None:
    """Test retry logic gives up after max attempts."""
    mock_func = AsyncMock(side_effect=ConnectionPoolExhausted("Persistent Fail"))

    @with_retry(max_attempts=2, base_delay=0.01)
    async def retried_func() -> None:
        await mock_func()

    with (
        patch("utils.db_utils.asyncio.sleep", new_callable=AsyncMock),
        pytest.raises(ConnectionPoolExhausted),
    ):
        await retried_func()

    assert mock_func.call_count == 2


@pytest.mark.asyncio
async def test_with_retry_does_not_retry_other_errors() -> None:
    mock_func = AsyncMock(side_effect=ValueError("bad query"))

    @with_retry(max_attempts=3, base_delay=0.01)
    async def retried_func() -> None:
        await mock_func()

    with pytest.raises(ValueError):
        await retried_func()

    assert mock_func.call_count == 1


@pytest.mark.asyncio
async def test_check_pool_health_healthy() -> None:
    """Test healthy pool check."""
    mock_conn = AsyncMock()
    mock_conn.fetchval.return_value = 1
    mock_pool = _pool_with_conn(mock_conn)
    mock_pool.get_size.return_value = 5
    mock_pool.get_idle_size.return_value = 3

    health = await check_pool_health(mock_pool)

    assert health == {"healthy": True, "pool_size": 5, "pool_free": 3, "pool_used": 2, "error": None}


@pytest.mark.asyncio
async def test_check_pool_health_unhealthy() -> None:
    """Test unhealthy pool check."""
    mock_pool = MagicMock()
    mock_pool.acquire.side_effect = ConnectionRefusedError("DB Down")
    mock_pool.get_size.return_value = 0
    mock_pool.get_idle_size.return_value = 0

    health = await check_pool_health(mock_pool)

    assert health["healthy"] is False
    assert health["error"] == "DB Down"


@pytest.mark.asyncio
async def test_graceful_pool_close() -> None:
    """Test graceful shutdown waits for connections."""
    mock_pool = MagicMock()
    mock_pool.close = AsyncMock()

    # First check: 2 active (5-3), second: 0 active (5-5)
    mock_pool.get_size.return_value = 5
    mock_pool.get_idle_size.side_effect = [3, 5, 5]

    with patch("utils.db_utils.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
        await graceful_pool_close(mock_pool, timeout=1.0)

        mock_sleep.assert_called()
        mock_pool.close.assert_called_once()

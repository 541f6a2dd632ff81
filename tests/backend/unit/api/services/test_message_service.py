from collections.abc import Callable
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from api.services.message_service import MessageService
from models.chat_models import Role


@pytest.fixture
def service(mock_db_pool: MagicMock) -> MessageService:
    return MessageService(mock_db_pool)


@pytest.mark.asyncio
async def test_create_message_bumps_conversation(
    service: MessageService,
    mock_db_pool: MagicMock,
    db_conn: AsyncMock,
    message_row: Callable[..., dict[str, Any]],
) -> None:
    db_conn.fetchrow.return_value = message_row(5, "user", "Hello")

    message = await service.create_message(1, Role.USER, "Hello")

    assert message["id"] == 5
    assert db_conn.fetchrow.call_args.args[1:] == (1, "user", "Hello")
    assert db_conn.execute.call_args.args == ("UPDATE conversations SET updated_at = NOW() WHERE id = $1", 1)
    # both statements run in one transaction
    db_conn.transaction.assert_called_once()


@pytest.mark.asyncio
async def test_create_message_accepts_raw_role(
    service: MessageService, db_conn: AsyncMock, message_row: Callable[..., dict[str, Any]]
) -> None:
    db_conn.fetchrow.return_value = message_row(6, "assistant", "Hi")

    await service.create_message(1, "assistant", "Hi")

    assert db_conn.fetchrow.call_args.args[2] == "assistant"


@pytest.mark.asyncio
async def test_get_messages_chronological(
    service: MessageService, db_conn: AsyncMock, message_row: Callable[..., dict[str, Any]]
) -> None:
    db_conn.fetch.return_value = [message_row(1, "user", "Hi"), message_row(2, "assistant", "Hello")]

    messages = await service.get_messages_by_conversation_id(1)

    assert [m["id"] for m in messages] == [1, 2]
    assert "ORDER BY created_at ASC, id ASC" in db_conn.fetch.call_args.args[0]


@pytest.mark.asyncio
async def test_get_messages_empty(service: MessageService, db_conn: AsyncMock) -> None:
    db_conn.fetch.return_value = []

    assert await service.get_messages_by_conversation_id(1) == []

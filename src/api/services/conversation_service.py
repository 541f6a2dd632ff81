from __future__ import annotations

from typing import Any

import asyncpg

from api.middleware.exception_handlers import ConversationNotFoundError, ForbiddenError
from core.constants import DEFAULT_CONVERSATION_TITLE
from models.error_models import ErrorCode
from utils.logger import logger

CONVERSATION_COLUMNS = "id, user_id, title, created_at, updated_at"


class ConversationService:
    """Conversation business logic backed by PostgreSQL."""

    def __init__(self, pool: asyncpg.Pool):
        self.pool = pool

    async def create_conversation(self, user_id: int, title: str | None = None) -> dict[str, Any]:
        """Create a conversation; untitled ones get the placeholder title."""
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                f"""
                INSERT INTO conversations (user_id, title)
                VALUES ($1, $2)
                RETURNING {CONVERSATION_COLUMNS}
                """,
                user_id,
                title or DEFAULT_CONVERSATION_TITLE,
            )
        logger.info(f"Created conversation {row['id']}", user_id=user_id, conversation_id=row["id"])
        return dict(row)

    async def get_conversation(self, conversation_id: int) -> dict[str, Any] | None:
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                f"SELECT {CONVERSATION_COLUMNS} FROM conversations WHERE id = $1",
                conversation_id,
            )
        return dict(row) if row else None

    async def get_owned_conversation(self, user_id: int, conversation_id: int) -> dict[str, Any]:
        """Fetch a conversation and enforce ownership.

        Raises:
            ConversationNotFoundError: No such conversation (404)
            ForbiddenError: Owned by another user (403)
        """
        conversation = await self.get_conversation(conversation_id)
        if conversation is None:
            raise ConversationNotFoundError(conversation_id)
        if conversation["user_id"] != user_id:
            raise ForbiddenError(
                message="You do not have access to this conversation",
                code=ErrorCode.CONVERSATION_FORBIDDEN,
            )
        return conversation

    async def list_conversations(self, user_id: int) -> list[dict[str, Any]]:
        """Conversations for a user, most recently active first."""
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(
                f"""
                SELECT {CONVERSATION_COLUMNS} FROM conversations
                WHERE user_id = $1
                ORDER BY updated_at DESC, id DESC
                """,
                user_id,
            )
        return [dict(r) for r in rows]

    async def update_conversation(self, user_id: int, conversation_id: int, title: str) -> dict[str, Any]:
        """Rename a conversation the user owns."""
        await self.get_owned_conversation(user_id, conversation_id)
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                f"""
                UPDATE conversations
                SET title = $2, updated_at = NOW()
                WHERE id = $1
                RETURNING {CONVERSATION_COLUMNS}
                """,
                conversation_id,
                title,
            )
        if row is None:
            # Deleted between the ownership check and the update
            raise ConversationNotFoundError(conversation_id)
        return dict(row)

    async def delete_conversation(self, user_id: int, conversation_id: int) -> bool:
        """Delete a conversation the user owns; messages cascade."""
        await self.get_owned_conversation(user_id, conversation_id)
        async with self.pool.acquire() as conn:
            result = await conn.execute("DELETE FROM conversations WHERE id = $1", conversation_id)
        deleted = result.endswith(" 1")
        if deleted:
            logger.info(f"Deleted conversation {conversation_id}", conversation_id=conversation_id)
        return deleted

from __future__ import annotations

from typing import Any

import asyncpg

from models.chat_models import Role

MESSAGE_COLUMNS = "id, conversation_id, role, content, created_at"


class MessageService:
    """Append-only message storage.

    Messages are never updated; they disappear only when their
    conversation is deleted.
    """

    def __init__(self, pool: asyncpg.Pool):
        self.pool = pool

    async def create_message(self, conversation_id: int, role: Role | str, content: str) -> dict[str, Any]:
        """Insert a message and bump the conversation's ``updated_at`` atomically."""
        role_value = role.value if isinstance(role, Role) else role
        async with self.pool.acquire() as conn, conn.transaction():
            row = await conn.fetchrow(
                f"""
                INSERT INTO messages (conversation_id, role, content)
                VALUES ($1, $2, $3)
                RETURNING {MESSAGE_COLUMNS}
                """,
                conversation_id,
                role_value,
                content,
            )
            await conn.execute(
                "UPDATE conversations SET updated_at = NOW() WHERE id = $1",
                conversation_id,
            )
        return dict(row)

    async def get_messages_by_conversation_id(self, conversation_id: int) -> list[dict[str, Any]]:
        """All messages of a conversation in chronological order."""
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(
                f"""
                SELECT {MESSAGE_COLUMNS} FROM messages
                WHERE conversation_id = $1
                ORDER BY created_at ASC, id ASC
                """,
                conversation_id,
            )
        return [dict(r) for r in rows]

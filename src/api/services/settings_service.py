from __future__ import annotations

from typing import Any

import asyncpg

from core.constants import DEFAULT_THEME, get_settings


class SettingsService:
    """Per-user preferences (theme and model selector)."""

    def __init__(self, pool: asyncpg.Pool):
        self.pool = pool

    def _defaults(self) -> dict[str, Any]:
        return {"theme": DEFAULT_THEME, "ai_model": get_settings().default_model}

    async def get_user_settings(self, user_id: int) -> dict[str, Any]:
        """Stored settings, or defaults for users created before settings existed."""
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                "SELECT theme, ai_model FROM user_settings WHERE user_id = $1",
                user_id,
            )
        if not row:
            return self._defaults()
        return {"theme": row["theme"], "ai_model": row["ai_model"]}

    async def update_user_settings(
        self,
        user_id: int,
        theme: str | None = None,
        ai_model: str | None = None,
    ) -> dict[str, Any]:
        """Apply a partial update, creating the row on first write."""
        defaults = self._defaults()
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                """
                INSERT INTO user_settings (user_id, theme, ai_model)
                VALUES ($1, COALESCE($2, $4), COALESCE($3, $5))
                ON CONFLICT (user_id) DO UPDATE
                SET theme = COALESCE($2, user_settings.theme),
                    ai_model = COALESCE($3, user_settings.ai_model),
                    updated_at = NOW()
                RETURNING theme, ai_model
                """,
                user_id,
                theme,
                ai_model,
                defaults["theme"],
                defaults["ai_model"],
            )
        return {"theme": row["theme"], "ai_model": row["ai_model"]}

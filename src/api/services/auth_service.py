from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

import asyncpg

from jose import JWTError, jwt
from passlib.hash import bcrypt

from core.constants import DEFAULT_THEME, Settings, get_settings
from utils.logger import logger

USER_COLUMNS = "id, username, email, name, password_hash, created_at"


class AuthService:
    """Registration, login and JWT issuance backed by the users table."""

    def __init__(self, pool: asyncpg.Pool, settings: Settings | None = None):
        self.pool = pool
        self.settings = settings or get_settings()

    async def register(
        self,
        username: str,
        email: str,
        password: str,
        name: str | None = None,
    ) -> dict[str, Any]:
        """Create a user with default settings and return fresh tokens.

        Raises:
            LookupError: If the username or email is already taken
        """
        password_hash = bcrypt.hash(password)
        async with self.pool.acquire() as conn, conn.transaction():
            existing = await conn.fetchrow(
                "SELECT username, email FROM users WHERE username = $1 OR email = $2",
                username,
                email,
            )
            if existing:
                field = "username" if existing["username"] == username else "email"
                raise LookupError(f"{field.capitalize()} already registered")

            try:
                user = await conn.fetchrow(
                    f"""
                    INSERT INTO users (username, email, name, password_hash)
                    VALUES ($1, $2, $3, $4)
                    RETURNING {USER_COLUMNS}
                    """,
                    username,
                    email,
                    name,
                    password_hash,
                )
            except asyncpg.UniqueViolationError as exc:
                # Lost a race with a concurrent registration
                raise LookupError("Username or email already registered") from exc

            await conn.execute(
                "INSERT INTO user_settings (user_id, theme, ai_model) VALUES ($1, $2, $3)",
                user["id"],
                DEFAULT_THEME,
                self.settings.default_model,
            )

        logger.info(f"Registered user {user['id']}", user_id=user["id"])
        return self._token_payload(user)

    async def login(self, username: str, password: str) -> dict[str, Any]:
        """Validate credentials and return access/refresh tokens."""
        user = await self.get_user_by_username(username)
        if not user or not bcrypt.verify(password, user["password_hash"]):
            raise ValueError("Invalid username or password")
        return self._token_payload(user)

    async def refresh(self, refresh_token: str) -> dict[str, Any]:
        """Validate refresh token and return new access and refresh tokens (rotation)."""
        payload = self._decode_token(refresh_token, "refresh")
        user = await self.get_user_by_id(int(payload["sub"]))
        if not user:
            raise ValueError("Invalid refresh token")
        return self._token_payload(user)

    def decode_access_token(self, token: str) -> dict[str, Any]:
        """Decode and validate an access token."""
        return self._decode_token(token, "access")

    async def get_user_by_username(self, username: str) -> asyncpg.Record | None:
        async with self.pool.acquire() as conn:
            return await conn.fetchrow(
                f"SELECT {USER_COLUMNS} FROM users WHERE username = $1",
                username,
            )

    async def get_user_by_id(self, user_id: int) -> asyncpg.Record | None:
        async with self.pool.acquire() as conn:
            return await conn.fetchrow(
                f"SELECT {USER_COLUMNS} FROM users WHERE id = $1",
                user_id,
            )

    def _token_payload(self, user: asyncpg.Record) -> dict[str, Any]:
        tokens = self._issue_tokens(user)
        return {
            "access_token": tokens["access"],
            "refresh_token": tokens["refresh"],
            "expires_in": self.settings.access_token_expires_minutes * 60,
            "user": self.user_payload(user),
        }

    def _issue_tokens(self, user: asyncpg.Record) -> dict[str, str]:
        now = datetime.now(timezone.utc)
        access_exp = now + timedelta(minutes=self.settings.access_token_expires_minutes)
        refresh_exp = now + timedelta(days=self.settings.refresh_token_expires_days)
        return {
            "access": self._encode_token(user, "access", access_exp),
            "refresh": self._encode_token(user, "refresh", refresh_exp),
        }

    def _encode_token(self, user: asyncpg.Record, token_type: str, expires_at: datetime) -> str:
        payload = {
            "sub": str(user["id"]),
            "username": user["username"],
            "type": token_type,
            "exp": expires_at,
        }
        token: str = jwt.encode(payload, self.settings.jwt_secret, algorithm=self.settings.jwt_algorithm)
        return token

    def _decode_token(self, token: str, token_type: str) -> dict[str, Any]:
        try:
            payload: dict[str, Any] = jwt.decode(
                token,
                self.settings.jwt_secret,
                algorithms=[self.settings.jwt_algorithm],
            )
        except JWTError as exc:
            raise ValueError("Invalid token") from exc

        if payload.get("type") != token_type:
            raise ValueError("Invalid token type")
        if not str(payload.get("sub", "")).isdigit():
            raise ValueError("Invalid token subject")
        return payload

    def user_payload(self, user: asyncpg.Record) -> dict[str, Any]:
        """Public user fields. The password hash never leaves this service."""
        return {
            "id": user["id"],
            "username": user["username"],
            "email": user["email"],
            "name": user.get("name"),
            "created_at": user.get("created_at"),
        }

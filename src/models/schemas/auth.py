"""
Authentication-related API schemas.

Provides request/response models for auth operations
with OpenAPI documentation.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class LoginRequest(BaseModel):
    """Login credentials."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "username": "ada",
                "password": "secure_password_123",
            }
        }
    )

    username: str = Field(..., min_length=1, max_length=50, description="Account username")
    password: str = Field(..., min_length=1, max_length=128, description="Account password")


class RegisterRequest(BaseModel):
    """User registration request."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "username": "ada",
                "email": "ada@example.com",
                "password": "secure_password_123",
                "name": "Ada Lovelace",
            }
        }
    )

    username: str = Field(
        ...,
        min_length=3,
        max_length=50,
        pattern=r"^[A-Za-z0-9_.-]+$",
        description="Unique username",
        json_schema_extra={"example": "ada"},
    )
    email: str = Field(
        ...,
        description="User email address",
        pattern=r"^[a-zA-Z0-9_.+-]+@[a-zA-Z0-9-]+\.[a-zA-Z0-9-.]+$",
        json_schema_extra={"example": "ada@example.com"},
    )
    password: str = Field(
        ...,
        min_length=6,
        max_length=128,
        description="User password (minimum 6 characters)",
    )
    name: str | None = Field(
        default=None,
        max_length=100,
        description="Optional display name",
        json_schema_extra={"example": "Ada Lovelace"},
    )


class RefreshRequest(BaseModel):
    """Token refresh request."""

    refresh_token: str = Field(..., description="Refresh token from login response")


class UserInfo(BaseModel):
    """Public user information. Never carries the password hash."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": 1,
                "username": "ada",
                "email": "ada@example.com",
                "name": "Ada Lovelace",
            }
        }
    )

    id: int = Field(..., description="User id")
    username: str = Field(..., description="Username")
    email: str = Field(..., description="User email address")
    name: str | None = Field(default=None, description="Display name")
    created_at: datetime | None = Field(default=None, description="Registration timestamp")


class TokenResponse(BaseModel):
    """Authentication token response."""

    access_token: str = Field(..., description="JWT access token")
    refresh_token: str | None = Field(default=None, description="JWT refresh token")
    token_type: str = Field(default="bearer", description="Token type (always 'bearer')")
    expires_in: int = Field(default=3600, ge=0, description="Access token expiry in seconds")
    user: UserInfo | None = Field(default=None, description="Authenticated user")

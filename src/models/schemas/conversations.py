"""
Conversation and message API schemas.

Provides request/response models for conversation CRUD operations
and the send-message exchange.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from models.chat_models import Role, normalize_role

# =============================================================================
# Request Models
# =============================================================================


class CreateConversationRequest(BaseModel):
    """Request body for creating a conversation."""

    title: str | None = Field(
        default=None,
        max_length=200,
        description="Optional title (named from the first message if omitted)",
        json_schema_extra={"example": "Trip planning"},
    )

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = v.strip()
        return v or None


class UpdateConversationRequest(BaseModel):
    """Request body for renaming a conversation."""

    title: str = Field(..., min_length=1, max_length=200, description="New title")

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("title must not be blank")
        return v


class SendMessageRequest(BaseModel):
    """User text submitted to a conversation."""

    model_config = ConfigDict(json_schema_extra={"example": {"content": "How do tides work?"}})

    content: str = Field(..., min_length=1, max_length=32000, description="Message text")

    @field_validator("content")
    @classmethod
    def content_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("content must not be blank")
        return v


# =============================================================================
# Response Models
# =============================================================================


class MessageResponse(BaseModel):
    """A stored message. Immutable once created."""

    id: int
    conversation_id: int
    role: Role
    content: str
    created_at: datetime | None = None

    @field_validator("role", mode="before")
    @classmethod
    def normalize_stored_role(cls, v: object) -> Role:
        return normalize_role(v)


class ConversationResponse(BaseModel):
    """Conversation metadata."""

    id: int
    user_id: int
    title: str
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ConversationWithMessagesResponse(ConversationResponse):
    """Conversation plus its chronological message history."""

    messages: list[MessageResponse] = Field(default_factory=list)


class ConversationListResponse(BaseModel):
    """Conversations ordered by most recent activity."""

    conversations: list[ConversationResponse]
    total_count: int


class SendMessageResponse(BaseModel):
    """Both sides of one exchange, as persisted."""

    user_message: MessageResponse
    ai_message: MessageResponse
    title: str | None = Field(default=None, description="Conversation title after this exchange")


class DeleteConversationResponse(BaseModel):
    success: bool = True

from __future__ import annotations

from fastapi import APIRouter, status

from api.dependencies import Chat, Conversations, Messages
from api.middleware.auth import CurrentUser
from api.middleware.request_context import update_request_context
from models.schemas.conversations import (
    ConversationListResponse,
    ConversationResponse,
    ConversationWithMessagesResponse,
    CreateConversationRequest,
    DeleteConversationResponse,
    MessageResponse,
    SendMessageRequest,
    SendMessageResponse,
    UpdateConversationRequest,
)

router = APIRouter()


@router.get("")
async def list_conversations(user: CurrentUser, conversations: Conversations) -> ConversationListResponse:
    """List the caller's conversations, most recently active first."""
    rows = await conversations.list_conversations(user.id)
    return ConversationListResponse(
        conversations=[ConversationResponse(**row) for row in rows],
        total_count=len(rows),
    )


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_conversation(
    request: CreateConversationRequest,
    user: CurrentUser,
    conversations: Conversations,
) -> ConversationResponse:
    """Create a new conversation."""
    created = await conversations.create_conversation(user.id, request.title)
    return ConversationResponse(**created)


@router.get("/{conversation_id}")
async def get_conversation(
    conversation_id: int,
    user: CurrentUser,
    conversations: Conversations,
    messages: Messages,
) -> ConversationWithMessagesResponse:
    """Get a conversation with its full message history."""
    update_request_context(conversation_id=conversation_id)
    conversation = await conversations.get_owned_conversation(user.id, conversation_id)
    history = await messages.get_messages_by_conversation_id(conversation_id)
    return ConversationWithMessagesResponse(
        **conversation,
        messages=[MessageResponse(**m) for m in history],
    )


@router.patch("/{conversation_id}")
async def update_conversation(
    conversation_id: int,
    request: UpdateConversationRequest,
    user: CurrentUser,
    conversations: Conversations,
) -> ConversationResponse:
    """Rename a conversation."""
    update_request_context(conversation_id=conversation_id)
    updated = await conversations.update_conversation(user.id, conversation_id, request.title)
    return ConversationResponse(**updated)


@router.delete("/{conversation_id}")
async def delete_conversation(
    conversation_id: int,
    user: CurrentUser,
    conversations: Conversations,
) -> DeleteConversationResponse:
    """Delete a conversation and its messages."""
    update_request_context(conversation_id=conversation_id)
    success = await conversations.delete_conversation(user.id, conversation_id)
    return DeleteConversationResponse(success=success)


@router.post("/{conversation_id}/messages", status_code=status.HTTP_201_CREATED)
async def send_message(
    conversation_id: int,
    request: SendMessageRequest,
    user: CurrentUser,
    chat: Chat,
) -> SendMessageResponse:
    """Send a user message and return it together with the assistant reply."""
    update_request_context(conversation_id=conversation_id)
    result = await chat.send_message(user.id, conversation_id, request.content)
    return SendMessageResponse(
        user_message=MessageResponse(**result["user_message"]),
        ai_message=MessageResponse(**result["ai_message"]),
        title=result["title"],
    )

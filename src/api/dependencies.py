from __future__ import annotations

from typing import Annotated

import asyncpg

from fastapi import Depends, Request

from api.services.chat_service import ChatService
from api.services.conversation_service import ConversationService
from api.services.message_service import MessageService
from api.services.settings_service import SettingsService
from core.dispatcher import CompletionDispatcher


async def get_db(request: Request) -> asyncpg.Pool:
    """Get database connection pool from application state."""
    return request.app.state.db_pool


async def get_dispatcher(request: Request) -> CompletionDispatcher:
    """Get the shared completion dispatcher from application state."""
    return request.app.state.dispatcher


def get_conversation_service(db: Annotated[asyncpg.Pool, Depends(get_db)]) -> ConversationService:
    return ConversationService(db)


def get_message_service(db: Annotated[asyncpg.Pool, Depends(get_db)]) -> MessageService:
    return MessageService(db)


def get_settings_service(db: Annotated[asyncpg.Pool, Depends(get_db)]) -> SettingsService:
    return SettingsService(db)


def get_chat_service(
    db: Annotated[asyncpg.Pool, Depends(get_db)],
    dispatcher: Annotated[CompletionDispatcher, Depends(get_dispatcher)],
) -> ChatService:
    return ChatService(db, dispatcher)


# Type aliases for cleaner route signatures
DB = Annotated[asyncpg.Pool, Depends(get_db)]
Dispatcher = Annotated[CompletionDispatcher, Depends(get_dispatcher)]
Conversations = Annotated[ConversationService, Depends(get_conversation_service)]
Messages = Annotated[MessageService, Depends(get_message_service)]
UserSettings = Annotated[SettingsService, Depends(get_settings_service)]
Chat = Annotated[ChatService, Depends(get_chat_service)]

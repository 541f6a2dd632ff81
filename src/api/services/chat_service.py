from __future__ import annotations

from typing import Any

import asyncpg

from api.middleware.exception_handlers import CompletionUnavailableException
from api.middleware.request_context import update_request_context
from api.services.conversation_service import ConversationService
from api.services.message_service import MessageService
from api.services.settings_service import SettingsService
from core.constants import DEFAULT_CONVERSATION_TITLE
from core.dispatcher import CompletionDispatcher, CompletionUnavailableError
from models.chat_models import Role, to_ai_messages
from utils.logger import logger


class ChatService:
    """Orchestrates one user → assistant exchange.

    Order of operations:
        1. persist the user message
        2. name the conversation if it still has the placeholder title
        3. load the full history, normalize roles, dispatch
        4. persist the assistant message

    When the dispatcher gives up, the user message stays stored and no
    assistant message is written.
    """

    def __init__(self, pool: asyncpg.Pool, dispatcher: CompletionDispatcher):
        self.pool = pool
        self.dispatcher = dispatcher
        self.conversations = ConversationService(pool)
        self.messages = MessageService(pool)
        self.settings = SettingsService(pool)

    async def send_message(self, user_id: int, conversation_id: int, content: str) -> dict[str, Any]:
        """Run one exchange and return both persisted messages.

        Raises:
            ConversationNotFoundError: Unknown conversation
            ForbiddenError: Conversation owned by someone else
            CompletionUnavailableException: Every provider failed
        """
        conversation = await self.conversations.get_owned_conversation(user_id, conversation_id)
        user_settings = await self.settings.get_user_settings(user_id)
        model_selector = user_settings["ai_model"]

        user_message = await self.messages.create_message(conversation_id, Role.USER, content)

        title = conversation["title"]
        if title == DEFAULT_CONVERSATION_TITLE:
            title = await self._maybe_generate_title(user_id, conversation_id, content, model_selector)

        history = to_ai_messages(await self.messages.get_messages_by_conversation_id(conversation_id))

        try:
            result = await self.dispatcher.complete(history, model_selector)
        except CompletionUnavailableError as exc:
            raise CompletionUnavailableException(str(exc), attempts=exc.attempts, cause=exc) from exc

        update_request_context(provider=result.provider, model=result.model, fallback_used=result.fallback_used)

        ai_message = await self.messages.create_message(conversation_id, Role.ASSISTANT, result.content)

        logger.log_conversation_turn(
            user_input=content,
            response=result.content,
            model=result.model,
            provider=result.provider,
            fallback_used=result.fallback_used,
            duration_ms=result.duration_ms,
        )

        return {"user_message": user_message, "ai_message": ai_message, "title": title}

    async def _maybe_generate_title(
        self,
        user_id: int,
        conversation_id: int,
        first_message: str,
        model_selector: str,
    ) -> str:
        """Name the conversation from its first message; keep the placeholder on failure."""
        title = await self.dispatcher.generate_title(first_message, model_selector)
        if title == DEFAULT_CONVERSATION_TITLE:
            return title

        try:
            await self.conversations.update_conversation(user_id, conversation_id, title)
        except asyncpg.PostgresError as exc:
            logger.warning(f"Could not save title for conversation {conversation_id}: {exc}")
            return DEFAULT_CONVERSATION_TITLE

        logger.info(f"Conversation {conversation_id} titled", conversation_id=conversation_id)
        return title

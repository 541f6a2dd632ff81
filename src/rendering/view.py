"""
One mounted conversation view.

Composes the animation tracker, the typewriter loop, the quick-question
channel and the composer draft. All methods must be called from the
thread running the event loop; starting an animation schedules a task on
that loop.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from core.constants import TYPING_INTERVAL_SECONDS
from models.chat_models import Role
from rendering.animation import AnimationTracker, RenderMode
from rendering.content import prepare_content
from rendering.events import QuickQuestionChannel, QuickQuestionSelected
from rendering.typewriter import TypewriterAnimation
from utils.logger import logger


@dataclass(frozen=True)
class RenderedMessage:
    """Render decision and text for one message."""

    id: int
    role: Role
    mode: RenderMode
    display_text: str
    plain_text: str
    visible_text: str
    questions: list[str] = field(default_factory=list)
    is_typing: bool = False

    @property
    def show_questions(self) -> bool:
        """Suggested questions appear only after the reply is fully revealed."""
        return self.role is Role.ASSISTANT and not self.is_typing and bool(self.questions)


@dataclass
class MessageComposer:
    """Draft text of the message input."""

    draft: str = ""

    def handle_quick_question(self, event: QuickQuestionSelected) -> None:
        self.draft = event.question

    def take(self) -> str | None:
        """Return the trimmed draft and clear it; blank drafts are not sent."""
        text = self.draft.strip()
        if not text:
            return None
        self.draft = ""
        return text


class ConversationView:
    def __init__(
        self,
        on_change: Callable[[list[RenderedMessage]], None] | None = None,
        *,
        interval: float = TYPING_INTERVAL_SECONDS,
    ):
        self.on_change = on_change
        self.tracker = AnimationTracker()
        self.channel = QuickQuestionChannel()
        self.composer = MessageComposer()
        self.animation = TypewriterAnimation(self._on_progress, self._on_complete, interval=interval)
        self.conversation_id: int | None = None
        self.messages: list[dict[str, Any]] = []
        self.mounted = True
        self._visible_text = ""
        self._next_temp_id = -1
        self._unsubscribe_composer = self.channel.subscribe(self.composer.handle_quick_question)

    def show(self, conversation_id: int, messages: Sequence[Mapping[str, Any]]) -> list[RenderedMessage]:
        """Display ``messages`` for ``conversation_id``, switching if needed.

        Also remounts a view that was unmounted.
        """
        if not self.mounted:
            self._unsubscribe_composer = self.channel.subscribe(self.composer.handle_quick_question)
            self.mounted = True
        if conversation_id != self.conversation_id:
            self.animation.cancel()
            self._visible_text = ""
            self.conversation_id = conversation_id
            logger.debug(f"Showing conversation {conversation_id}", conversation_id=conversation_id)
        self.messages = [dict(m) for m in messages]
        return self._refresh()

    def add_optimistic_user_message(self, text: str) -> list[RenderedMessage]:
        """Show a user message before the server confirms it.

        The entry gets a negative temporary id and is dropped when the
        server list arrives via :meth:`apply_server_messages`.
        """
        if self.conversation_id is None:
            raise RuntimeError("No conversation is being shown")
        self.messages.append(
            {
                "id": self._next_temp_id,
                "conversation_id": self.conversation_id,
                "role": Role.USER.value,
                "content": text,
                "created_at": None,
            }
        )
        self._next_temp_id -= 1
        return self._refresh()

    def apply_server_messages(self, messages: Sequence[Mapping[str, Any]]) -> list[RenderedMessage]:
        """Replace the local list, optimistic entries included, with the server's."""
        if not self.mounted:
            raise RuntimeError("View is unmounted")
        self.messages = [dict(m) for m in messages]
        return self._refresh()

    def submit_draft(self) -> str | None:
        """Take the composer draft and show it optimistically."""
        text = self.composer.take()
        if text is not None:
            self.add_optimistic_user_message(text)
        return text

    def select_quick_question(self, question: str) -> QuickQuestionSelected:
        return self.channel.publish(question)

    def render(self) -> list[RenderedMessage]:
        rendered = []
        for message in self.messages:
            prepared = prepare_content(message)
            mode = self.tracker.decide(message)
            is_typing = mode is RenderMode.ANIMATE_FROM_EMPTY
            rendered.append(
                RenderedMessage(
                    id=message["id"],
                    role=prepared.role,
                    mode=mode,
                    display_text=prepared.display_text,
                    plain_text=prepared.plain_text,
                    visible_text=self._visible_text if is_typing else prepared.display_text,
                    questions=prepared.questions,
                    is_typing=is_typing,
                )
            )
        return rendered

    def unmount(self) -> None:
        """Tear down the view; no callback fires afterwards."""
        self.animation.cancel()
        self._unsubscribe_composer()
        self.channel.clear()
        self.tracker.reset()
        self.messages = []
        self.conversation_id = None
        self.mounted = False

    def _refresh(self) -> list[RenderedMessage]:
        animating_id = self.tracker.observe(self.conversation_id, self.messages)

        if animating_id is None:
            self.animation.cancel()
        elif self.animation.message_id != animating_id:
            message = next(m for m in self.messages if m["id"] == animating_id)
            self._visible_text = ""
            self.animation.start(animating_id, prepare_content(message).plain_text)

        return self.render()

    def _notify(self) -> None:
        if self.mounted and self.on_change is not None:
            self.on_change(self.render())

    def _on_progress(self, text: str) -> None:
        self._visible_text = text
        self._notify()

    def _on_complete(self, message_id: int) -> None:
        if self.tracker.complete(message_id):
            self._visible_text = ""
            self._notify()

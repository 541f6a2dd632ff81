"""Suggested-question clicks, delivered only within one conversation view."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from utils.logger import logger


@dataclass(frozen=True)
class QuickQuestionSelected:
    question: str


QuickQuestionHandler = Callable[[QuickQuestionSelected], None]


class QuickQuestionChannel:
    """Observer list for :class:`QuickQuestionSelected` events."""

    def __init__(self) -> None:
        self._subscribers: list[QuickQuestionHandler] = []

    def __len__(self) -> int:
        return len(self._subscribers)

    def subscribe(self, handler: QuickQuestionHandler) -> Callable[[], None]:
        """Register ``handler`` and return a callable that removes it."""
        self._subscribers.append(handler)

        def unsubscribe() -> None:
            if handler in self._subscribers:
                self._subscribers.remove(handler)

        return unsubscribe

    def publish(self, question: str) -> QuickQuestionSelected:
        event = QuickQuestionSelected(question=question)
        # Copy so handlers can unsubscribe while being notified
        for handler in list(self._subscribers):
            try:
                handler(event)
            except Exception as e:
                logger.error(f"Quick question handler failed: {e}", exc_info=True)
        return event

    def clear(self) -> None:
        self._subscribers.clear()

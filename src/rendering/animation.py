"""
Which message, if any, is currently being typed out.

The animating id is presentation state only. It is recomputed from how
the observed message list changes and never stored on a message.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any

from models.chat_models import Role, normalize_role


class RenderMode(str, Enum):
    REVEAL_INSTANTLY = "reveal-instantly"
    ANIMATE_FROM_EMPTY = "animate-from-empty"


@dataclass
class AnimationState:
    conversation_id: int | None = None
    observed_count: int = 0
    animating_message_id: int | None = None


class AnimationTracker:
    """Tracks the single animating message of one mounted conversation view."""

    def __init__(self) -> None:
        self.state = AnimationState()

    @property
    def animating_message_id(self) -> int | None:
        return self.state.animating_message_id

    def observe(self, conversation_id: int | None, messages: Sequence[Mapping[str, Any]]) -> int | None:
        """Apply a new snapshot of the message list and return the animating id.

        - a different conversation resets all state first
        - the first non-empty snapshot is history; nothing animates
        - growth animates the last assistant message in the appended slice
        - shrinking only records the new count
        """
        if conversation_id != self.state.conversation_id:
            self.state = AnimationState(conversation_id=conversation_id)

        count = len(messages)
        if self.state.observed_count == 0 and count > 0:
            self.state.observed_count = count
            return self.state.animating_message_id

        if count > self.state.observed_count:
            appended = messages[self.state.observed_count :]
            assistant_ids = [m["id"] for m in appended if normalize_role(m.get("role")) is Role.ASSISTANT]
            if assistant_ids:
                self.state.animating_message_id = assistant_ids[-1]
        self.state.observed_count = count

        # The animating message may have been replaced by the authoritative list
        if self.state.animating_message_id is not None and all(
            m["id"] != self.state.animating_message_id for m in messages
        ):
            self.state.animating_message_id = None

        return self.state.animating_message_id

    def complete(self, message_id: int) -> bool:
        """Finish the animation for ``message_id``; stale signals are ignored."""
        if message_id is None or message_id != self.state.animating_message_id:
            return False
        self.state.animating_message_id = None
        return True

    def decide(self, message: Mapping[str, Any]) -> RenderMode:
        if (
            self.state.animating_message_id is not None
            and message.get("id") == self.state.animating_message_id
            and normalize_role(message.get("role")) is Role.ASSISTANT
        ):
            return RenderMode.ANIMATE_FROM_EMPTY
        return RenderMode.REVEAL_INSTANTLY

    def reset(self) -> None:
        self.state = AnimationState()

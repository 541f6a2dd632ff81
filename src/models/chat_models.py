"""
Chat message models shared by the dispatcher, services and renderer.

Stored roles are free-form text; every consumer goes through
:func:`normalize_role` before handing history to a provider or a view.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict


class Role(str, Enum):
    """Roles understood by the completion providers."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


def normalize_role(role: Any) -> Role:
    """Map a stored role to a provider role.

    Matching is exact; anything that is not ``assistant`` or ``system``
    (including ``None`` and mixed case) is treated as ``user``.
    """
    if role == Role.ASSISTANT.value:
        return Role.ASSISTANT
    if role == Role.SYSTEM.value:
        return Role.SYSTEM
    return Role.USER


class AIMessage(BaseModel):
    """A normalized message as sent to a completion provider."""

    model_config = ConfigDict(frozen=True, use_enum_values=False)

    role: Role
    content: str

    def to_openai(self) -> dict[str, str]:
        return {"role": self.role.value, "content": self.content}


def to_ai_messages(rows: Iterable[Mapping[str, Any]]) -> list[AIMessage]:
    """Convert stored message rows into normalized provider messages."""
    return [AIMessage(role=normalize_role(row.get("role")), content=row.get("content") or "") for row in rows]


__all__ = [
    "AIMessage",
    "Role",
    "normalize_role",
    "to_ai_messages",
]

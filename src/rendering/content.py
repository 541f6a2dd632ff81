from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from core.quick_questions import parse_quick_questions
from models.chat_models import Role, normalize_role
from rendering.markdown import to_plain_text


@dataclass(frozen=True)
class PreparedContent:
    """Display-ready message content.

    ``display_text`` is the markdown shown once a message is fully revealed;
    ``plain_text`` is what the typing animation reveals character by character.
    """

    role: Role
    display_text: str
    plain_text: str
    questions: list[str] = field(default_factory=list)


def prepare_content(message: Mapping[str, Any]) -> PreparedContent:
    """Split a stored message into display text and suggested questions.

    Only assistant messages are parsed for a quick-questions block; user
    and system content is shown as written.
    """
    role = normalize_role(message.get("role"))
    content = message.get("content") or ""

    if role is not Role.ASSISTANT:
        return PreparedContent(role=role, display_text=content, plain_text=content)

    parsed = parse_quick_questions(content)
    return PreparedContent(
        role=role,
        display_text=parsed.display_text,
        plain_text=to_plain_text(parsed.display_text),
        questions=list(parsed.questions),
    )

"""
Quick-questions block handling shared by the server and the renderer.

Assistant responses end with a machine-readable block of suggested
follow-up questions:

    <QUICK_QUESTIONS>
    Question 1
    ...
    </QUICK_QUESTIONS>

The server guarantees exactly one well-formed block per stored response;
renderers strip it before display and show its lines as clickable chips.
"""

from __future__ import annotations

import re

from dataclasses import dataclass, field

from core.constants import (
    DEFAULT_QUICK_QUESTIONS,
    QUICK_QUESTIONS_CLOSE_TAG,
    QUICK_QUESTIONS_COUNT,
    QUICK_QUESTIONS_OPEN_TAG,
)

#: Non-greedy match of one complete block; group 1 is the body.
QUICK_QUESTIONS_PATTERN = re.compile(
    rf"{re.escape(QUICK_QUESTIONS_OPEN_TAG)}([\s\S]*?){re.escape(QUICK_QUESTIONS_CLOSE_TAG)}"
)

# Block cut off before its closing tag (e.g. max_tokens reached)
_UNTERMINATED_PATTERN = re.compile(rf"{re.escape(QUICK_QUESTIONS_OPEN_TAG)}([\s\S]*)$")

_STRAY_TAG_PATTERN = re.compile(
    rf"{re.escape(QUICK_QUESTIONS_OPEN_TAG)}|{re.escape(QUICK_QUESTIONS_CLOSE_TAG)}"
)


@dataclass(frozen=True)
class ParsedContent:
    """Assistant content split into displayable text and suggestions."""

    display_text: str
    questions: list[str] = field(default_factory=list)


def _split_lines(body: str) -> list[str]:
    return [line.strip() for line in body.split("\n") if line.strip()]


def parse_quick_questions(content: str) -> ParsedContent:
    """Extract the first quick-questions block from ``content``.

    Returns the trimmed non-blank lines of the block and the content with
    that block removed and trimmed. Without a block the content is returned
    unchanged with no questions. Never raises.
    """
    if not content:
        return ParsedContent(display_text=content or "")

    match = QUICK_QUESTIONS_PATTERN.search(content)
    if match is None:
        return ParsedContent(display_text=content)

    display_text = (content[: match.start()] + content[match.end() :]).strip()
    return ParsedContent(display_text=display_text, questions=_split_lines(match.group(1)))


def format_quick_questions_block(questions: list[str]) -> str:
    return "\n".join([QUICK_QUESTIONS_OPEN_TAG, *questions, QUICK_QUESTIONS_CLOSE_TAG])


def ensure_quick_questions_block(content: str, count: int = QUICK_QUESTIONS_COUNT) -> str:
    """Normalize a model response to carry exactly one block of ``count`` questions.

    Questions from the first complete block (or a trailing unterminated one)
    are kept in order and de-duplicated; missing slots are filled from
    :data:`DEFAULT_QUICK_QUESTIONS`. All other blocks and stray tags are dropped.
    """
    match = QUICK_QUESTIONS_PATTERN.search(content)
    questions = _split_lines(match.group(1)) if match else []

    body = QUICK_QUESTIONS_PATTERN.sub("", content)
    unterminated = _UNTERMINATED_PATTERN.search(body)
    if unterminated is not None:
        if not questions:
            questions = _split_lines(unterminated.group(1))
        body = body[: unterminated.start()]
    body = _STRAY_TAG_PATTERN.sub("", body).strip()

    selected: list[str] = []
    for question in [*questions, *DEFAULT_QUICK_QUESTIONS]:
        if question not in selected:
            selected.append(question)
        if len(selected) == count:
            break

    block = format_quick_questions_block(selected)
    return f"{body}\n\n{block}" if body else block


__all__ = [
    "QUICK_QUESTIONS_PATTERN",
    "ParsedContent",
    "ensure_quick_questions_block",
    "format_quick_questions_block",
    "parse_quick_questions",
]

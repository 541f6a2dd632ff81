"""Plain-text projection of markdown used while a reply is being typed out."""

from __future__ import annotations

import re

from core.constants import CODE_BLOCK_PLACEHOLDER

_FENCED_CODE = re.compile(r"```[\s\S]*?```")
_BOLD = re.compile(r"\*\*|__")
_ITALIC = re.compile(r"\*")
_BACKTICK = re.compile(r"`")
_LINK = re.compile(r"\[([^\]]+)\]\([^)]*\)")
_HEADING = re.compile(r"^[ \t]*#{1,6}[ \t]+", re.MULTILINE)


def to_plain_text(text: str) -> str:
    """Strip markdown markers, keeping the readable text.

    Fenced code blocks are collapsed first so their backticks are not
    consumed by the inline-code rule.
    """
    if not text:
        return ""
    text = _FENCED_CODE.sub(CODE_BLOCK_PLACEHOLDER, text)
    text = _BOLD.sub("", text)
    text = _ITALIC.sub("", text)
    text = _BACKTICK.sub("", text)
    text = _LINK.sub(r"\1", text)
    return _HEADING.sub("", text)

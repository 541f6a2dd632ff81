"""
Structured logging for Chatterbox.

``logger`` is a :class:`ChatLogger`. Keyword arguments passed to its methods
become JSON fields, and the active request context (request id, user,
conversation, answering provider) is merged into every record.

Handlers:
- stderr: coloured one-line records for humans
- logs/conversations.jsonl: completed turns plus any record tied to a
  conversation or a completion provider
- logs/errors.jsonl: ERROR and above
"""

from __future__ import annotations

import logging
import logging.handlers
import os
import re
import sys

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, cast

from pythonjsonlogger import json as jsonlogger

from api.middleware.request_context import get_request_context
from core.constants import (
    LOG_BACKUP_COUNT_CONVERSATIONS,
    LOG_BACKUP_COUNT_ERRORS,
    LOG_MAX_SIZE,
    LOG_PREVIEW_LENGTH,
    PROJECT_ROOT,
    get_settings,
)

LOG_DIR = PROJECT_ROOT / "logs"

# Applied to message previews before they reach any handler
REDACTION_PATTERNS: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b"), "[EMAIL]"),
    (re.compile(r"\b(?:\d{4}[- ]?){3}\d{4}\b"), "[CARD]"),
    (re.compile(r"\b(?:sk-|pk-|api[-_]?key[-_]?)[A-Za-z0-9]{20,}\b"), "[API_KEY]"),
    (re.compile(r"\bAIza[0-9A-Za-z_-]{35}\b"), "[API_KEY]"),
    (re.compile(r"\b(?:password|secret|token)\s*[:=]\s*\S+", re.IGNORECASE), "[REDACTED]"),
]

# A record carrying any of these belongs in the conversation log
CONVERSATION_FIELDS = ("conversation_turn", "conversation_id", "provider")

CONVERSATION_LOG_FORMAT = (
    "%(timestamp)s %(levelname)s %(message)s %(request_id)s %(conversation_id)s %(provider)s %(model)s"
)
ERROR_LOG_FORMAT = "%(timestamp)s %(levelname)s %(name)s %(message)s"


@dataclass
class ConversationTurn:
    """One user message and the assistant reply that answered it."""

    user_input: str
    response: str
    model: str
    provider: str | None = None
    fallback_used: bool = False
    duration_ms: float | None = None
    timestamp: str = field(default_factory=lambda: datetime.now(UTC).isoformat())


class ConversationFilter(logging.Filter):
    """INFO and above, restricted to records about a conversation or provider."""

    def filter(self, record: logging.LogRecord) -> bool:
        if record.levelno < logging.INFO:
            return False
        return any(getattr(record, name, None) not in (None, False) for name in CONVERSATION_FIELDS)


class ErrorFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno >= logging.ERROR


class ColoredConsoleFormatter(logging.Formatter):
    """
    ``HH:MM:SS [LEVEL] logger - message``, with the level coloured.

    Records that name a provider get a ``(provider/model)`` suffix so
    fallback hops are easy to follow in a terminal.
    """

    GREY = "\x1b[38;20m"
    GREEN = "\x1b[32;20m"
    YELLOW = "\x1b[33;20m"
    RED = "\x1b[31;20m"
    BOLD_RED = "\x1b[31;1m"
    BOLD = "\x1b[1m"
    RESET = "\x1b[0m"

    LEVEL_COLORS = {
        logging.DEBUG: GREY,
        logging.INFO: GREEN,
        logging.WARNING: YELLOW,
        logging.ERROR: RED,
        logging.CRITICAL: BOLD_RED,
    }

    def _paint(self, text: str, color: str | None) -> str:
        return f"{color}{text}{self.RESET}" if color else text

    def _status_color(self, status_code: int) -> str:
        if status_code < 400:
            return self.GREEN
        return self.YELLOW if status_code < 500 else self.RED

    def _access_message(self, args: tuple[Any, ...]) -> str:
        # uvicorn.access args: (client_addr, method, full_path, http_version, status_code)
        client_addr, method, full_path, http_version, status_code = args
        status = self._paint(str(status_code), self._status_color(int(cast(Any, status_code))))
        return f'{client_addr} - "{self._paint(str(method), self.BOLD)} {full_path} HTTP/{http_version}" {status}'

    def format(self, record: logging.LogRecord) -> str:
        record.asctime = self.formatTime(record, "%H:%M:%S")
        level = self._paint(f"[{record.levelname}]", self.LEVEL_COLORS.get(record.levelno))

        if record.name == "uvicorn.access" and isinstance(record.args, tuple) and len(record.args) == 5:
            return f"{record.asctime} {level} {record.name} - {self._access_message(record.args)}"

        message = record.getMessage()
        provider = getattr(record, "provider", None)
        if provider:
            model = getattr(record, "model", None)
            message = f"{message} ({provider}/{model})" if model else f"{message} ({provider})"

        line = f"{record.asctime} {level} {record.name} - {message}"
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def configure_uvicorn_logging() -> None:
    """Route uvicorn's server and access logs through the coloured console format."""
    formatter = ColoredConsoleFormatter()

    root_uvicorn = logging.getLogger("uvicorn")
    root_uvicorn.handlers = []
    root_uvicorn.setLevel(logging.INFO)

    for name in ("uvicorn.access", "uvicorn.error"):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(formatter)
        uv_logger = logging.getLogger(name)
        uv_logger.handlers = [handler]
        uv_logger.setLevel(logging.INFO)
        uv_logger.propagate = False


def _json_file_handler(
    filename: str, backup_count: int, level: int, log_filter: logging.Filter, fmt: str
) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        LOG_DIR / filename,
        maxBytes=LOG_MAX_SIZE,
        backupCount=backup_count,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.addFilter(log_filter)
    handler.setFormatter(jsonlogger.JsonFormatter(fmt, timestamp=True))
    return handler


def setup_logging(name: str = "chatterbox", debug: bool | None = None) -> logging.Logger:
    """
    Build the named logger with a console handler and two rotating JSON files.

    Args:
        name: Logger name
        debug: Show DEBUG on the console; defaults to the DEBUG env var

    Returns:
        The configured logger. Calling again replaces its handlers.
    """
    if debug is None:
        debug = os.getenv("DEBUG", "false").lower() in ("true", "1", "yes")

    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)  # handlers do the filtering
    logger.handlers = []
    logger.propagate = False

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(logging.DEBUG if debug else logging.INFO)
    console_handler.setFormatter(ColoredConsoleFormatter())
    logger.addHandler(console_handler)

    LOG_DIR.mkdir(parents=True, exist_ok=True)
    logger.addHandler(
        _json_file_handler(
            "conversations.jsonl",
            LOG_BACKUP_COUNT_CONVERSATIONS,
            logging.INFO,
            ConversationFilter(),
            CONVERSATION_LOG_FORMAT,
        )
    )
    logger.addHandler(
        _json_file_handler(
            "errors.jsonl",
            LOG_BACKUP_COUNT_ERRORS,
            logging.ERROR,
            ErrorFilter(),
            ERROR_LOG_FORMAT,
        )
    )
    return logger


def redact(text: str) -> str:
    """Mask e-mail addresses, card numbers and credentials in ``text``."""
    for pattern, replacement in REDACTION_PATTERNS:
        text = pattern.sub(replacement, text)
    return text


class ChatLogger:
    """Keyword arguments to every method become structured log fields."""

    def __init__(self, name: str = "chatterbox"):
        self.logger = setup_logging(name)

    def _with_context(self, fields: dict[str, Any]) -> dict[str, Any]:
        # Explicit fields win over the request context
        if ctx := get_request_context():
            for key, value in ctx.to_log_context().items():
                fields.setdefault(key, value)
        return fields

    def debug(self, message: str, **kwargs: Any) -> None:
        self.logger.debug(message, extra=self._with_context(kwargs))

    def info(self, message: str, **kwargs: Any) -> None:
        self.logger.info(message, extra=self._with_context(kwargs))

    def warning(self, message: str, **kwargs: Any) -> None:
        self.logger.warning(message, extra=self._with_context(kwargs))

    def error(self, message: str, exc_info: bool | BaseException = False, **kwargs: Any) -> None:
        self.logger.error(message, extra=self._with_context(kwargs), exc_info=exc_info)

    def _should_log_content(self) -> bool:
        try:
            return bool(get_settings().enable_content_logging)
        except Exception:
            # Settings may fail validation before startup finishes
            return False

    def _preview(self, text: str) -> str:
        preview = redact(text[:LOG_PREVIEW_LENGTH].replace("\n", " "))
        return f"{preview}..." if len(text) > LOG_PREVIEW_LENGTH else preview

    def log_conversation_turn(
        self,
        user_input: str,
        response: str,
        model: str,
        provider: str | None = None,
        fallback_used: bool = False,
        duration_ms: float | None = None,
    ) -> None:
        """
        Record a completed user -> assistant exchange.

        Message text is hidden unless ``enable_content_logging`` is set, and
        redacted even then. Sizes, the answering provider and whether a
        fallback answered are always recorded.
        """
        turn = ConversationTurn(
            user_input=user_input,
            response=response,
            model=model,
            provider=provider,
            fallback_used=fallback_used,
            duration_ms=duration_ms,
        )

        content_logging = self._should_log_content()
        if content_logging:
            summary = f"User: {self._preview(turn.user_input)} -> AI: {self._preview(turn.response)}"
        else:
            summary = "User: [HIDDEN] -> AI: [HIDDEN]"
        if turn.fallback_used:
            summary += f" [fallback: {turn.provider}]"
        if turn.duration_ms:
            summary += f" [{turn.duration_ms:.0f}ms]"

        fields: dict[str, Any] = {
            "conversation_turn": True,
            "timestamp": turn.timestamp,
            "model": turn.model,
            "provider": turn.provider,
            "fallback_used": turn.fallback_used,
            "chars_input": len(turn.user_input),
            "chars_response": len(turn.response),
            "content_logging": content_logging,
        }
        if turn.duration_ms is not None:
            fields["ms"] = int(turn.duration_ms)

        self.logger.info(summary, extra=self._with_context(fields))


logger = ChatLogger()

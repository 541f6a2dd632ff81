"""
Utils Module - Infrastructure Utilities and Support Functions
==============================================================

Provides infrastructure utilities for logging, HTTP clients and the
database pool.

Modules:
    logger: Structured JSON logging with rotation and request context
    http_logger: httpx event hooks for provider request/response logging
    client_factory: Factories for httpx and OpenAI-compatible clients
    db_utils: asyncpg pool creation, retry, health checks and shutdown

Key Components:

Logging (logger.py):
    Structured JSON logging with multiple handlers:
    - Console handler: Human-readable colored format to stderr
    - Conversation handler: JSON Lines format to logs/conversations.jsonl
    - Error handler: JSON Lines format to logs/errors.jsonl

    Features:
    - Automatic request, user and conversation id injection
    - Log rotation (10MB files, 5 conversation logs, 3 error logs)
    - Redacted message previews only when content logging is enabled

Usage:
    Logging::

        from utils.logger import logger

        logger.info("Conversation created", conversation_id=42)
"""

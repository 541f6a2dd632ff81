"""Route modules for the Chatterbox API, mounted under ``/api``."""

from __future__ import annotations

from . import auth, conversations, health, models, settings

__all__ = ["auth", "conversations", "health", "models", "settings"]

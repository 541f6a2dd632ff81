"""
Provider Registry - builds completion providers from configured credentials.

Providers without an API key are not instantiated; the dispatcher treats
them as unavailable and skips them during fallback.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TypedDict

from core.constants import PROVIDER_GOOGLE, PROVIDER_MISTRAL, PROVIDER_OPENAI, Settings
from integrations.providers.base import CompletionProvider
from integrations.providers.google_provider import GoogleProvider
from integrations.providers.openai_provider import MistralProvider, OpenAIProvider
from utils.client_factory import create_http_client, create_openai_client
from utils.logger import logger


class ProviderConfig(TypedDict):
    """Provider registration entry."""

    name: str
    description: str
    env_key: str  # Settings attribute holding the API key


PROVIDER_CONFIGS: dict[str, ProviderConfig] = {
    PROVIDER_OPENAI: {
        "name": "OpenAI",
        "description": "OpenAI Chat Completions",
        "env_key": "openai_api_key",
    },
    PROVIDER_GOOGLE: {
        "name": "Google",
        "description": "Gemini via the Generative Language API",
        "env_key": "google_api_key",
    },
    PROVIDER_MISTRAL: {
        "name": "Mistral",
        "description": "Mistral via its OpenAI-compatible endpoint",
        "env_key": "mistral_api_key",
    },
}


def _build_openai(settings: Settings, api_key: str) -> CompletionProvider:
    http_client = create_http_client(enable_logging=settings.http_request_logging)
    return OpenAIProvider(create_openai_client(api_key, base_url=settings.openai_base_url, http_client=http_client))


def _build_mistral(settings: Settings, api_key: str) -> CompletionProvider:
    http_client = create_http_client(enable_logging=settings.http_request_logging)
    return MistralProvider(create_openai_client(api_key, base_url=settings.mistral_base_url, http_client=http_client))


def _build_google(settings: Settings, api_key: str) -> CompletionProvider:
    http_client = create_http_client(enable_logging=settings.http_request_logging)
    return GoogleProvider(api_key=api_key, base_url=settings.google_api_base_url, http_client=http_client)


_BUILDERS: dict[str, Callable[[Settings, str], CompletionProvider]] = {
    PROVIDER_OPENAI: _build_openai,
    PROVIDER_MISTRAL: _build_mistral,
    PROVIDER_GOOGLE: _build_google,
}


def build_providers(settings: Settings) -> dict[str, CompletionProvider]:
    """Instantiate every provider that has a credential.

    Args:
        settings: Application settings holding API keys and endpoints

    Returns:
        Mapping of provider name to provider instance
    """
    providers: dict[str, CompletionProvider] = {}
    for key, config in PROVIDER_CONFIGS.items():
        api_key = getattr(settings, config["env_key"], None)
        if not api_key:
            logger.info(f"{config['name']} provider disabled (no {config['env_key']})")
            continue
        providers[key] = _BUILDERS[key](settings, api_key)

    logger.info(f"Completion providers ready: {sorted(providers) or 'none'}")
    return providers

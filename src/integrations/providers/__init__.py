"""
Completion providers: OpenAI, Google Gemini and Mistral adapters.
"""

from integrations.providers.base import CompletionProvider, ProviderError
from integrations.providers.google_provider import GoogleProvider
from integrations.providers.openai_provider import MistralProvider, OpenAIProvider
from integrations.providers.registry import PROVIDER_CONFIGS, build_providers

__all__ = [
    "PROVIDER_CONFIGS",
    "CompletionProvider",
    "GoogleProvider",
    "MistralProvider",
    "OpenAIProvider",
    "ProviderError",
    "build_providers",
]

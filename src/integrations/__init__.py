"""
Integrations Module - External AI Providers
===========================================

Adapters for the large-language-model vendors Chatterbox can route to.

Modules:
    providers.base: ``CompletionProvider`` interface and ``ProviderError``
    providers.openai_provider: OpenAI and Mistral (OpenAI-compatible API)
    providers.google_provider: Google Gemini over its REST API
    providers.registry: Builds providers for every configured credential

Each provider turns a normalized history into a single completion string
and reports every failure as ``ProviderError`` so the dispatcher can fall
back without knowing vendor-specific exceptions.
"""

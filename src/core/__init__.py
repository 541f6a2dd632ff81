"""
Core Application Layer - Completion Dispatch and Configuration
==============================================================

Provides the provider-independent business logic of Chatterbox.

Modules:
    constants: Configuration values, model catalog, prompts and Pydantic settings
    dispatcher: Multi-provider completion dispatcher with fallback cascade
    quick_questions: Parsing and normalization of the suggested-questions block

Key Components:

Dispatcher (dispatcher.py):
    Parses ``provider:model`` selectors once, asks the selected provider for a
    completion and walks the fallback policy when it fails. Every successful
    response carries exactly one quick-questions block. Also generates
    conversation titles and lists the models usable with the configured keys.

Quick Questions (quick_questions.py):
    The ``<QUICK_QUESTIONS>`` wire contract shared by the server and the
    renderer: extraction for display, normalization before storage.

Configuration (constants.py):
    Centralized configuration using Pydantic Settings for validation:
    - Provider credentials and endpoints (OpenAI, Google, Mistral)
    - Default model selector and fallback chain
    - Database, CORS and JWT settings

See Also:
    :mod:`integrations.providers`: Provider adapters used by the dispatcher
    :mod:`api.services`: FastAPI services for conversations and chat
"""

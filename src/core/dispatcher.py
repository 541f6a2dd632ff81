"""
Multi-provider completion dispatcher with fallback cascade.

The dispatcher parses a model selector (``provider:model`` or a bare model
name), augments the history with the quick-questions instruction in the
provider's own way, and calls the provider. When the primary attempt fails
it walks the fallback policy one candidate at a time, skipping the provider
that just failed and any provider without credentials. Only when every
attempt has failed does a :class:`CompletionUnavailableError` escape.

Title generation and model discovery live here too since they share the
provider set.
"""

from __future__ import annotations

import re
import time

from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from core.constants import (
    DEFAULT_CONVERSATION_TITLE,
    DEFAULT_FALLBACK_CHAIN,
    DEFAULT_PROVIDER,
    ERROR_COMPLETION_FAILED,
    ERROR_PROVIDER_NOT_CONFIGURED,
    ERROR_UNSUPPORTED_PROVIDER,
    MODEL_CONFIGS,
    PLACEHOLDER_MODEL,
    PROVIDER_GOOGLE,
    PROVIDER_MISTRAL,
    PROVIDER_OPENAI,
    QUICK_QUESTIONS_INSTRUCTION,
    TITLE_FALLBACK_MODEL,
    TITLE_MAX_LENGTH,
    TITLE_PROMPT,
    Settings,
)
from core.quick_questions import ensure_quick_questions_block, parse_quick_questions
from integrations.providers.base import CompletionProvider, ProviderError
from models.chat_models import AIMessage, Role
from models.schemas.settings import ModelInfo
from utils.logger import logger

#: Closed set of provider identifiers the dispatcher can route to.
SUPPORTED_PROVIDERS: frozenset[str] = frozenset({PROVIDER_OPENAI, PROVIDER_GOOGLE, PROVIDER_MISTRAL})

_TITLE_QUOTES = "\"'`“”‘’"
_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True, slots=True)
class ModelSelector:
    """Parsed ``provider:model`` selector."""

    provider: str
    model: str

    def __str__(self) -> str:
        return f"{self.provider}:{self.model}"


def parse_model_selector(selector: str | None) -> ModelSelector:
    """Split a selector on its first ``:``.

    A bare model name routes to the default provider (openai). Parsing never
    fails; unknown providers are rejected later as a failed attempt.
    """
    selector = (selector or "").strip()
    provider, sep, model = selector.partition(":")
    if not sep:
        return ModelSelector(DEFAULT_PROVIDER, selector)
    return ModelSelector(provider.strip().lower(), model.strip())


@dataclass(frozen=True)
class FallbackPolicy:
    """Ordered fallback candidates tried after a failed primary attempt."""

    chain: tuple[ModelSelector, ...]

    @classmethod
    def from_selectors(cls, selectors: Iterable[str]) -> FallbackPolicy:
        return cls(tuple(parse_model_selector(s) for s in selectors))

    @classmethod
    def default(cls) -> FallbackPolicy:
        return cls.from_selectors(DEFAULT_FALLBACK_CHAIN)

    def candidates(self, failed_provider: str, configured: Iterable[str]) -> list[ModelSelector]:
        """Eligible candidates: configured, and not the provider that just failed."""
        available = set(configured)
        return [c for c in self.chain if c.provider != failed_provider and c.provider in available]


@dataclass(frozen=True)
class CompletionResult:
    """Normalized completion and where it came from."""

    content: str
    provider: str
    model: str
    fallback_used: bool = False
    duration_ms: float | None = None


class CompletionUnavailableError(Exception):
    """The primary attempt and every eligible fallback failed."""

    def __init__(self, original_message: str, attempts: list[str] | None = None):
        self.original_message = original_message
        self.attempts = attempts or []
        super().__init__(ERROR_COMPLETION_FAILED.format(message=original_message))


def clean_title(raw: str | None) -> str:
    """Normalize a model-generated title; empty results become the sentinel."""
    if not raw:
        return DEFAULT_CONVERSATION_TITLE
    text = parse_quick_questions(raw).display_text.strip()
    lines = [line for line in text.splitlines() if line.strip()]
    title = lines[0] if lines else ""
    title = _WHITESPACE.sub(" ", title).strip().strip(_TITLE_QUOTES).strip()
    title = title.replace('"', "").rstrip(".!?").strip()
    if not title:
        return DEFAULT_CONVERSATION_TITLE
    return title[:TITLE_MAX_LENGTH].rstrip()


class CompletionDispatcher:
    """Routes completion requests across providers.

    Holds only immutable configuration and provider clients, so one instance
    is shared by all requests.
    """

    def __init__(
        self,
        providers: Mapping[str, CompletionProvider],
        *,
        temperature: float,
        max_tokens: int,
        title_max_tokens: int,
        fallback_policy: FallbackPolicy | None = None,
    ):
        self.providers = dict(providers)
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.title_max_tokens = title_max_tokens
        self.fallback_policy = fallback_policy or FallbackPolicy.default()

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        providers: Mapping[str, CompletionProvider],
    ) -> CompletionDispatcher:
        return cls(
            providers,
            temperature=settings.completion_temperature,
            max_tokens=settings.completion_max_tokens,
            title_max_tokens=settings.title_max_tokens,
            fallback_policy=FallbackPolicy.from_selectors(settings.fallback_chain),
        )

    @property
    def configured_providers(self) -> set[str]:
        return set(self.providers)

    def _provider_for(self, selector: ModelSelector) -> CompletionProvider:
        if selector.provider not in SUPPORTED_PROVIDERS:
            raise ProviderError(selector.provider, ERROR_UNSUPPORTED_PROVIDER.format(provider=selector.provider))
        provider = self.providers.get(selector.provider)
        if provider is None:
            raise ProviderError(selector.provider, ERROR_PROVIDER_NOT_CONFIGURED.format(provider=selector.provider))
        if not selector.model:
            raise ProviderError(selector.provider, "Model name is empty")
        return provider

    async def _attempt(self, history: list[AIMessage], selector: ModelSelector) -> str:
        provider = self._provider_for(selector)
        messages = provider.prepare_messages(history, QUICK_QUESTIONS_INSTRUCTION)
        return await provider.complete(
            messages,
            selector.model,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )

    async def complete(self, history: list[AIMessage], model_selector: str | None) -> CompletionResult:
        """Generate a response, cascading through fallbacks on failure.

        Raises:
            CompletionUnavailableError: When the primary and all eligible
                fallbacks failed. Carries the primary error's message.
        """
        start = time.monotonic()
        primary = parse_model_selector(model_selector)

        try:
            content = await self._attempt(history, primary)
            return self._result(content, primary, fallback_used=False, start=start)
        except ProviderError as e:
            primary_error = e
            logger.error(
                f"Completion failed on {primary}: {e.message}",
                provider=primary.provider,
                model=primary.model,
            )

        attempts = [str(primary)]
        for candidate in self.fallback_policy.candidates(primary.provider, self.configured_providers):
            logger.info(f"Falling back to {candidate}", provider=candidate.provider, model=candidate.model)
            attempts.append(str(candidate))
            try:
                content = await self._attempt(history, candidate)
                return self._result(content, candidate, fallback_used=True, start=start)
            except ProviderError as e:
                logger.warning(
                    f"Fallback {candidate} failed: {e.message}",
                    provider=candidate.provider,
                    model=candidate.model,
                )

        raise CompletionUnavailableError(original_message=primary_error.message, attempts=attempts)

    def _result(self, content: str, selector: ModelSelector, *, fallback_used: bool, start: float) -> CompletionResult:
        return CompletionResult(
            content=ensure_quick_questions_block(content),
            provider=selector.provider,
            model=selector.model,
            fallback_used=fallback_used,
            duration_ms=(time.monotonic() - start) * 1000,
        )

    async def generate_completion(self, history: list[AIMessage], model_selector: str | None) -> str:
        """Response text carrying exactly one quick-questions block."""
        result = await self.complete(history, model_selector)
        return result.content

    async def _title_attempt(self, first_message: str, selector: ModelSelector) -> str:
        provider = self._provider_for(selector)
        messages = provider.prepare_messages([AIMessage(role=Role.USER, content=first_message)], TITLE_PROMPT)
        return await provider.complete(
            messages,
            selector.model,
            temperature=self.temperature,
            max_tokens=self.title_max_tokens,
        )

    async def generate_title(self, first_message: str, model_selector: str | None) -> str:
        """Name a conversation from its first message. Never raises."""
        primary = parse_model_selector(model_selector)
        try:
            return clean_title(await self._title_attempt(first_message, primary))
        except ProviderError as e:
            logger.warning(f"Title generation failed on {primary}: {e.message}")

        fallback = parse_model_selector(TITLE_FALLBACK_MODEL)
        if fallback != primary and fallback.provider in self.providers:
            try:
                return clean_title(await self._title_attempt(first_message, fallback))
            except ProviderError as e:
                logger.warning(f"Title fallback {fallback} failed: {e.message}")

        return DEFAULT_CONVERSATION_TITLE

    def list_available_models(self) -> list[ModelInfo]:
        """Models for every configured provider, or a single placeholder."""
        models = [
            ModelInfo(id=config.selector, name=config.display_name, provider=config.provider)
            for config in MODEL_CONFIGS
            if config.provider in self.providers
        ]
        if not models:
            return [
                ModelInfo(
                    id=PLACEHOLDER_MODEL.selector,
                    name=PLACEHOLDER_MODEL.display_name,
                    provider=PLACEHOLDER_MODEL.provider,
                )
            ]
        return models

    async def aclose(self) -> None:
        for provider in self.providers.values():
            await provider.aclose()


__all__ = [
    "SUPPORTED_PROVIDERS",
    "CompletionDispatcher",
    "CompletionResult",
    "CompletionUnavailableError",
    "FallbackPolicy",
    "ModelSelector",
    "clean_title",
    "parse_model_selector",
]

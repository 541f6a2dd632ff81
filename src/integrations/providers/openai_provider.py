"""
OpenAI and OpenAI-compatible (Mistral) chat completion providers.
"""

from __future__ import annotations

from typing import Any

from openai import AsyncOpenAI

from core.constants import PROVIDER_MISTRAL, PROVIDER_OPENAI
from integrations.providers.base import CompletionProvider
from models.chat_models import AIMessage


class OpenAIProvider(CompletionProvider):
    """Chat Completions API via ``AsyncOpenAI``."""

    name = PROVIDER_OPENAI

    def __init__(self, client: AsyncOpenAI):
        self.client = client

    async def _request(
        self,
        messages: list[AIMessage],
        model: str,
        *,
        temperature: float,
        max_tokens: int,
    ) -> str | None:
        response = await self.client.chat.completions.create(
            model=model,
            messages=[m.to_openai() for m in messages],  # type: ignore[misc]
            temperature=temperature,
            max_tokens=max_tokens,
        )
        if not response.choices:
            return None
        return self._content_text(response.choices[0].message.content)

    @staticmethod
    def _content_text(content: Any) -> str | None:
        if content is None or isinstance(content, str):
            return content
        # Some compatible vendors return a list of typed chunks
        parts = []
        for chunk in content:
            text = chunk.get("text") if isinstance(chunk, dict) else getattr(chunk, "text", None)
            if text:
                parts.append(text)
        return "".join(parts)

    async def aclose(self) -> None:
        await self.client.close()


class MistralProvider(OpenAIProvider):
    """Mistral through its OpenAI-compatible ``/v1/chat/completions`` endpoint."""

    name = PROVIDER_MISTRAL

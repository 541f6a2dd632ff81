"""
Google Gemini provider over the Generative Language REST API.

Gemini has no ``system`` role: system content is folded into the first
user turn and ``assistant`` turns are sent as ``model``.
"""

from __future__ import annotations

from typing import Any

import httpx

from core.constants import PROVIDER_GOOGLE
from integrations.providers.base import CompletionProvider, ProviderError
from models.chat_models import AIMessage, Role


class GoogleProvider(CompletionProvider):
    """``models/{model}:generateContent`` via ``httpx``."""

    name = PROVIDER_GOOGLE
    supports_system_role = False

    def __init__(self, api_key: str, base_url: str, http_client: httpx.AsyncClient):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.http_client = http_client

    def prepare_messages(self, messages: list[AIMessage], instruction: str) -> list[AIMessage]:
        """Fold the instruction and every system message into the first user turn.

        System entries are removed. Without any user turn the combined
        prompt is appended as a user message of its own.
        """
        system_parts = [m.content for m in messages if m.role is Role.SYSTEM]
        prompt = "".join(f"{part}\n\n" for part in [instruction, *system_parts])

        prepared: list[AIMessage] = []
        folded = False
        for message in messages:
            if message.role is Role.SYSTEM:
                continue
            if message.role is Role.USER and not folded:
                prepared.append(AIMessage(role=Role.USER, content=f"{prompt}{message.content}"))
                folded = True
            else:
                prepared.append(message)

        if not folded:
            prepared.append(AIMessage(role=Role.USER, content=prompt))
        return prepared

    @staticmethod
    def build_contents(messages: list[AIMessage]) -> list[dict[str, Any]]:
        """Encode messages as Gemini ``contents`` (system turns are skipped)."""
        return [
            {
                "role": "model" if m.role is Role.ASSISTANT else "user",
                "parts": [{"text": m.content}],
            }
            for m in messages
            if m.role is not Role.SYSTEM
        ]

    async def _request(
        self,
        messages: list[AIMessage],
        model: str,
        *,
        temperature: float,
        max_tokens: int,
    ) -> str | None:
        payload = {
            "contents": self.build_contents(messages),
            "generationConfig": {
                "temperature": temperature,
                "maxOutputTokens": max_tokens,
            },
        }
        response = await self.http_client.post(
            f"{self.base_url}/models/{model}:generateContent",
            json=payload,
            headers={"x-goog-api-key": self.api_key},
        )
        if response.status_code >= 400:
            raise ProviderError(
                self.name,
                f"HTTP {response.status_code}: {self._error_message(response)}",
                model=model,
            )
        return self._extract_text(response.json())

    @staticmethod
    def _extract_text(data: dict[str, Any]) -> str | None:
        candidates = data.get("candidates") or []
        if not candidates:
            return None
        parts = (candidates[0].get("content") or {}).get("parts") or []
        return "".join(part.get("text", "") for part in parts)

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            error = response.json().get("error") or {}
            return str(error.get("message") or response.reason_phrase)
        except (ValueError, AttributeError):
            return response.reason_phrase

    async def aclose(self) -> None:
        await self.http_client.aclose()

"""
Completion provider base class and error type.

Every vendor adapter subclasses :class:`CompletionProvider`. Adapters own
two things: how the quick-questions instruction is folded into the history
(``prepare_messages``) and the vendor request itself (``_request``).
Any failure surfaces as :class:`ProviderError` so the dispatcher can cascade.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import ClassVar

from models.chat_models import AIMessage, Role


class ProviderError(Exception):
    """A single provider attempt failed (transport, auth, quota or empty output)."""

    def __init__(
        self,
        provider: str,
        message: str,
        model: str | None = None,
        cause: Exception | None = None,
    ):
        self.provider = provider
        self.model = model
        self.message = message
        self.cause = cause
        super().__init__(message)


class CompletionProvider(ABC):
    """Base class for chat completion vendors."""

    #: Provider identifier used in model selectors
    name: ClassVar[str]

    #: Whether the vendor accepts a ``system`` role natively
    supports_system_role: ClassVar[bool] = True

    def prepare_messages(self, messages: list[AIMessage], instruction: str) -> list[AIMessage]:
        """Attach ``instruction`` to the history.

        Appends to the first system message when one exists, otherwise
        prepends a new system message. The input list is not modified.
        """
        prepared = list(messages)
        for index, message in enumerate(prepared):
            if message.role is Role.SYSTEM:
                prepared[index] = AIMessage(role=Role.SYSTEM, content=f"{message.content}\n\n{instruction}")
                return prepared
        return [AIMessage(role=Role.SYSTEM, content=instruction), *prepared]

    async def complete(
        self,
        messages: list[AIMessage],
        model: str,
        *,
        temperature: float,
        max_tokens: int,
    ) -> str:
        """Send ``messages`` to ``model`` and return the generated text.

        Raises:
            ProviderError: On any vendor failure or an empty response
        """
        try:
            text = await self._request(messages, model, temperature=temperature, max_tokens=max_tokens)
        except ProviderError:
            raise
        except Exception as e:
            raise ProviderError(self.name, f"{type(e).__name__}: {e}", model=model, cause=e) from e

        if not text or not text.strip():
            raise ProviderError(self.name, "Empty response from provider", model=model)
        return text

    @abstractmethod
    async def _request(
        self,
        messages: list[AIMessage],
        model: str,
        *,
        temperature: float,
        max_tokens: int,
    ) -> str | None:
        """Vendor call. May raise vendor exceptions; ``complete`` wraps them."""

    async def aclose(self) -> None:
        """Release network resources held by the provider."""
        return None

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"

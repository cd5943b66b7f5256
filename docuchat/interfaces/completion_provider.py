"""Abstract base class for LLM completion providers.

Every vendor adapter accepts the same uniform message list::

    [{"role": "system" | "user" | "assistant", "content": "..."}]

and translates it into its own wire format.  Callers never branch on the
vendor; the model registry picks the adapter for a model id.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import AsyncIterator

from docuchat.models.rag import CompletionResult


# Concrete implementations: OpenAICompletionProvider, GeminiCompletionProvider,
# AnthropicCompletionProvider
# Located in: docuchat/providers/llm/
class ICompletionProvider(ABC):
    """Contract for chat-completion services.

    Providers must support :meth:`generate`.  Incremental output is optional:
    the default :meth:`generate_stream` yields the full response as a single
    fragment, so callers can always stream.
    """

    @abstractmethod
    async def generate(
        self,
        messages: list[dict[str, str]],
        temperature: float = 0.7,
        max_tokens: int = 1000,
    ) -> CompletionResult:
        """Generate a completion for *messages*.

        Returns
        -------
        CompletionResult
            The text plus token usage.  Providers that cannot report usage
            return :meth:`CompletionUsage.unknown`.

        Raises
        ------
        docuchat.utils.errors.CompletionError
            If the API call fails, times out, or returns no content.
        """

    async def generate_stream(
        self,
        messages: list[dict[str, str]],
        temperature: float = 0.7,
        max_tokens: int = 1000,
    ) -> AsyncIterator[str]:
        """Yield the response in fragments as the provider produces them."""
        result = await self.generate(messages, temperature=temperature, max_tokens=max_tokens)
        yield result.content

    def supports_streaming(self) -> bool:
        """Return ``True`` if :meth:`generate_stream` yields incrementally."""
        return False

    @abstractmethod
    def get_model_name(self) -> str:
        """Return the vendor model name this provider calls."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"openai"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if credentials are configured."""

"""OpenAI-compatible completion provider adapter.

Wraps the ``openai`` async client to implement :class:`ICompletionProvider`.
When a custom ``openai_base_url`` is configured the client points at that
URL instead of the default OpenAI endpoint, so any OpenAI-compatible vendor
can serve the ``gpt-*`` model ids.

This adapter supports native streaming: :meth:`generate_stream` yields
content deltas as the API produces them.
"""

from __future__ import annotations

from typing import AsyncIterator

import openai
import structlog

from docuchat.config.settings import Settings
from docuchat.interfaces.completion_provider import ICompletionProvider
from docuchat.models.rag import CompletionResult, CompletionUsage
from docuchat.utils.errors import CompletionError

logger = structlog.get_logger(logger_name=__name__)


class OpenAICompletionProvider(ICompletionProvider):
    """Completion provider backed by the OpenAI chat completions API.

    One instance serves one vendor model (e.g. ``gpt-4``); the model
    registry creates an instance per configured model id.
    """

    def __init__(self, settings: Settings, model: str = "gpt-3.5-turbo") -> None:
        self._settings = settings
        self._api_key = settings.openai_api_key
        self._timeout = settings.provider_timeout_seconds

        client_kwargs: dict = {
            "api_key": self._api_key,
            "timeout": openai.Timeout(self._timeout, connect=5.0),
        }
        if settings.openai_base_url:
            client_kwargs["base_url"] = settings.openai_base_url

        self._client = openai.AsyncOpenAI(**client_kwargs)
        self._model = model
        self._provider_label = "openai-compatible" if settings.openai_base_url else "openai"

    # ------------------------------------------------------------------
    # ICompletionProvider implementation
    # ------------------------------------------------------------------

    async def generate(
        self,
        messages: list[dict[str, str]],
        temperature: float = 0.7,
        max_tokens: int = 1000,
    ) -> CompletionResult:
        """Generate a completion via the chat completions API."""
        try:
            response = await self._client.chat.completions.create(
                model=self._model,
                messages=messages,
                temperature=temperature,
                max_tokens=max_tokens,
            )
        except openai.APIError as exc:
            raise self._wrap_error(exc) from exc

        content = response.choices[0].message.content if response.choices else None
        if content is None:
            raise CompletionError(
                message=f"{self._provider_label} returned empty response",
                provider_name=self.get_provider_name(),
            )

        usage = CompletionUsage.unknown()
        if response.usage is not None:
            usage = CompletionUsage(
                prompt_tokens=response.usage.prompt_tokens,
                completion_tokens=response.usage.completion_tokens,
                total_tokens=response.usage.total_tokens,
            )
        logger.info(
            "openai_completion",
            model=self._model,
            provider=self._provider_label,
            tokens=usage.total_tokens if usage.reported else None,
        )
        return CompletionResult(content=content, usage=usage, model=self._model)

    async def generate_stream(
        self,
        messages: list[dict[str, str]],
        temperature: float = 0.7,
        max_tokens: int = 1000,
    ) -> AsyncIterator[str]:
        """Yield content deltas from a streamed chat completion."""
        try:
            stream = await self._client.chat.completions.create(
                model=self._model,
                messages=messages,
                temperature=temperature,
                max_tokens=max_tokens,
                stream=True,
            )
            fragments = 0
            async for chunk in stream:
                if not chunk.choices:
                    continue
                delta = chunk.choices[0].delta.content
                if delta:
                    fragments += 1
                    yield delta
        except openai.APIError as exc:
            raise self._wrap_error(exc) from exc
        logger.info(
            "openai_completion_streamed",
            model=self._model,
            provider=self._provider_label,
            fragments=fragments,
        )

    def supports_streaming(self) -> bool:
        return True

    def get_model_name(self) -> str:
        return self._model

    def get_provider_name(self) -> str:
        """Return 'openai' or 'openai-compatible' depending on configuration."""
        return self._provider_label

    def is_available(self) -> bool:
        """Return ``True`` if an API key is configured (doesn't verify it works)."""
        return bool(self._api_key)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _wrap_error(self, exc: openai.APIError) -> CompletionError:
        if isinstance(exc, openai.APITimeoutError):
            return CompletionError(
                message=f"{self._provider_label} timed out after {self._timeout:g}s",
                provider_name=self.get_provider_name(),
                retryable=True,
            )
        if isinstance(exc, (openai.APIConnectionError, openai.RateLimitError)):
            return CompletionError(
                message=f"{self._provider_label} unavailable: {exc}",
                provider_name=self.get_provider_name(),
                retryable=True,
            )
        return CompletionError(
            message=f"{self._provider_label} API error: {exc}",
            provider_name=self.get_provider_name(),
        )

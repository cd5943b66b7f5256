"""Anthropic completion provider adapter.

Wraps the ``anthropic`` async client to implement :class:`ICompletionProvider`.

Key differences from the OpenAI adapter:
    - Uses Anthropic's Messages API (not chat.completions)
    - System prompt is a separate parameter, not a message in the list
    - Response content is a list of blocks, so text blocks are joined
"""

from __future__ import annotations

import anthropic
import structlog

from docuchat.config.settings import Settings
from docuchat.interfaces.completion_provider import ICompletionProvider
from docuchat.models.rag import CompletionResult, CompletionUsage
from docuchat.utils.errors import CompletionError

logger = structlog.get_logger(logger_name=__name__)


def _split_system(messages: list[dict[str, str]]) -> tuple[str, list[dict[str, str]]]:
    """Pull system messages out of *messages* for the top-level ``system`` kwarg."""
    system_parts = [m["content"] for m in messages if m["role"] == "system"]
    chat = [
        {"role": m["role"], "content": m["content"]}
        for m in messages
        if m["role"] != "system"
    ]
    return "\n\n".join(system_parts), chat


class AnthropicCompletionProvider(ICompletionProvider):
    """Completion provider backed by the Anthropic Claude API."""

    def __init__(self, settings: Settings, model: str = "claude-sonnet-4-20250514") -> None:
        self._settings = settings
        self._api_key = settings.anthropic_api_key
        self._timeout = settings.provider_timeout_seconds
        self._client = anthropic.AsyncAnthropic(api_key=self._api_key, timeout=self._timeout)
        self._model = model

    # ------------------------------------------------------------------
    # ICompletionProvider implementation
    # ------------------------------------------------------------------

    async def generate(
        self,
        messages: list[dict[str, str]],
        temperature: float = 0.7,
        max_tokens: int = 1000,
    ) -> CompletionResult:
        """Generate a completion via the Anthropic Messages API."""
        system_prompt, chat = _split_system(messages)
        kwargs: dict = {
            "model": self._model,
            "max_tokens": max_tokens,
            "messages": chat,
            "temperature": temperature,
        }
        if system_prompt:
            kwargs["system"] = system_prompt

        try:
            response = await self._client.messages.create(**kwargs)
        except (anthropic.APITimeoutError, anthropic.APIConnectionError) as exc:
            raise CompletionError(
                message=f"Anthropic request failed: {exc}",
                provider_name=self.get_provider_name(),
                retryable=True,
            ) from exc
        except anthropic.RateLimitError as exc:
            raise CompletionError(
                message=f"Anthropic rate limited: {exc}",
                provider_name=self.get_provider_name(),
                retryable=True,
            ) from exc
        except anthropic.APIError as exc:
            raise CompletionError(
                message=f"Anthropic API error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        text_blocks = [block.text for block in response.content if block.type == "text"]
        if not text_blocks:
            raise CompletionError(
                message="Anthropic returned no text content",
                provider_name=self.get_provider_name(),
            )

        input_tokens = response.usage.input_tokens
        output_tokens = response.usage.output_tokens
        logger.info(
            "anthropic_completion",
            model=self._model,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
        )
        return CompletionResult(
            content="\n".join(text_blocks),
            usage=CompletionUsage(
                prompt_tokens=input_tokens,
                completion_tokens=output_tokens,
                total_tokens=input_tokens + output_tokens,
            ),
            model=self._model,
        )

    def get_model_name(self) -> str:
        return self._model

    def get_provider_name(self) -> str:
        return "anthropic"

    def is_available(self) -> bool:
        """Return ``True`` if an Anthropic API key is configured."""
        return bool(self._api_key)

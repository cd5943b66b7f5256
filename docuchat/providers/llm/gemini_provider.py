"""Google Gemini completion provider adapter.

Wraps ``google.generativeai`` to implement :class:`ICompletionProvider`.

The uniform message list is flattened into a single role-prefixed
transcript (``System: ...``, ``User: ...``, ``Assistant: ...`` separated by
blank lines) and sent as one prompt.  Token usage is read from the
response's ``usage_metadata`` when the API returns it; otherwise the result
carries :meth:`CompletionUsage.unknown`.
"""

from __future__ import annotations

from typing import Any

import google.generativeai as genai
import structlog
from google.api_core import exceptions as google_exceptions

from docuchat.config.settings import Settings
from docuchat.interfaces.completion_provider import ICompletionProvider
from docuchat.models.rag import CompletionResult, CompletionUsage
from docuchat.utils.errors import CompletionError

logger = structlog.get_logger(logger_name=__name__)

_ROLE_PREFIXES = {
    "system": "System",
    "user": "User",
    "assistant": "Assistant",
}

_RETRYABLE = (
    google_exceptions.DeadlineExceeded,
    google_exceptions.ResourceExhausted,
    google_exceptions.ServiceUnavailable,
)


def build_transcript(messages: list[dict[str, str]]) -> str:
    """Flatten *messages* into the role-prefixed prompt Gemini receives."""
    lines = []
    for msg in messages:
        prefix = _ROLE_PREFIXES.get(msg["role"])
        lines.append(f"{prefix}: {msg['content']}" if prefix else msg["content"])
    return "\n\n".join(lines)


def _usage_from(response: Any) -> CompletionUsage:
    usage_md = getattr(response, "usage_metadata", None)
    if usage_md is None:
        return CompletionUsage.unknown()
    prompt_tokens = getattr(usage_md, "prompt_token_count", None)
    completion_tokens = getattr(usage_md, "candidates_token_count", None)
    total_tokens = getattr(usage_md, "total_token_count", None)
    if prompt_tokens is None and completion_tokens is None and total_tokens is None:
        return CompletionUsage.unknown()
    prompt_tokens = int(prompt_tokens or 0)
    completion_tokens = int(completion_tokens or 0)
    return CompletionUsage(
        prompt_tokens=prompt_tokens,
        completion_tokens=completion_tokens,
        total_tokens=int(total_tokens or prompt_tokens + completion_tokens),
    )


class GeminiCompletionProvider(ICompletionProvider):
    """Completion provider backed by Google's Gemini API."""

    def __init__(self, settings: Settings, model: str = "gemini-pro") -> None:
        self._settings = settings
        self._api_key = settings.google_api_key
        self._timeout = settings.provider_timeout_seconds
        self._model = model
        if self._api_key:
            genai.configure(api_key=self._api_key)
        self._client = genai.GenerativeModel(model_name=model)

    # ------------------------------------------------------------------
    # ICompletionProvider implementation
    # ------------------------------------------------------------------

    async def generate(
        self,
        messages: list[dict[str, str]],
        temperature: float = 0.7,
        max_tokens: int = 1000,
    ) -> CompletionResult:
        """Generate a completion from the flattened transcript."""
        prompt = build_transcript(messages)
        try:
            response = await self._client.generate_content_async(
                prompt,
                generation_config=genai.types.GenerationConfig(
                    temperature=temperature,
                    max_output_tokens=max_tokens,
                ),
                request_options={"timeout": self._timeout},
            )
        except _RETRYABLE as exc:
            raise CompletionError(
                message=f"Gemini unavailable: {exc}",
                provider_name=self.get_provider_name(),
                retryable=True,
            ) from exc
        except google_exceptions.GoogleAPIError as exc:
            raise CompletionError(
                message=f"Gemini API error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        try:
            content = response.text
        except ValueError as exc:
            # Raised by the SDK when the candidate was blocked or is empty.
            raise CompletionError(
                message=f"Gemini returned no text content: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        usage = _usage_from(response)
        logger.info(
            "gemini_completion",
            model=self._model,
            tokens=usage.total_tokens if usage.reported else None,
        )
        return CompletionResult(content=content, usage=usage, model=self._model)

    def get_model_name(self) -> str:
        return self._model

    def get_provider_name(self) -> str:
        return "gemini"

    def is_available(self) -> bool:
        """Return ``True`` if a Google API key is configured."""
        return bool(self._api_key)

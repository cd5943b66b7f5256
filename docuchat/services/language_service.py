"""Translation and language detection helpers.

Both operations are single low-temperature completion calls against the
configured utility model.  :meth:`LanguageService.detect_language` is best
effort: any failure yields ``"en"``.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

import structlog

from docuchat.config.languages import DEFAULT_LANGUAGE
from docuchat.utils.errors import CompletionError, DocuChatError

if TYPE_CHECKING:
    from docuchat.providers.llm.registry import CompletionProviderRegistry

logger = structlog.get_logger(logger_name=__name__)

_TRANSLATE_PROMPT = (
    "Translate the following text to {target}. "
    "Only return the translation, no additional text."
)
_DETECT_PROMPT = (
    "Detect the language of the following text. "
    "Return only the language code (e.g., en, es, fr, de, hi, ne, zh, ja)."
)
_LANGUAGE_CODE_RE = re.compile(r"[a-z]{2,3}(?:-[a-z]{2,4})?")


class LanguageService:
    """Translate text and guess its language with a completion model."""

    def __init__(
        self,
        completion_registry: CompletionProviderRegistry,
        model_id: str = "gpt-3.5-turbo",
    ) -> None:
        self._completion_registry = completion_registry
        self._model_id = model_id

    async def translate(self, text: str, target_language: str) -> str:
        """Translate *text* into *target_language*.

        Raises
        ------
        UnsupportedModelError
            If the utility model is not configured.
        CompletionError
            If the provider call fails.
        """
        provider = self._completion_registry.get(self._model_id)
        result = await provider.generate(
            [
                {"role": "system", "content": _TRANSLATE_PROMPT.format(target=target_language)},
                {"role": "user", "content": text},
            ],
            temperature=0.3,
            max_tokens=500,
        )
        logger.info(
            "text_translated",
            target_language=target_language,
            input_length=len(text),
            output_length=len(result.content),
        )
        return result.content.strip()

    async def detect_language(self, text: str) -> str:
        """Return a lowercase language code for *text*, or ``"en"`` on failure."""
        try:
            provider = self._completion_registry.get(self._model_id)
            result = await provider.generate(
                [
                    {"role": "system", "content": _DETECT_PROMPT},
                    {"role": "user", "content": text},
                ],
                temperature=0.1,
                max_tokens=10,
            )
            match = _LANGUAGE_CODE_RE.search(result.content.strip().lower())
            if match is None:
                raise CompletionError(
                    message=f"Unrecognised language code: {result.content!r}",
                    provider_name=provider.get_provider_name(),
                )
            return match.group(0)
        except DocuChatError as exc:
            logger.warning("language_detection_failed", error=str(exc), fallback=DEFAULT_LANGUAGE)
            return DEFAULT_LANGUAGE

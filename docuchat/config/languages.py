"""Supported chat languages and model ids.

Both tables are the built-in defaults.  ``config/config.yaml`` may extend or
override them (see :func:`docuchat.config.loader.load_config`).
"""

from __future__ import annotations

DEFAULT_LANGUAGE = "en"

# Short imperative instruction, written in the target language, appended to
# every system prompt.
LANGUAGE_DIRECTIVES: dict[str, str] = {
    "en": "Respond in English.",
    "es": "Responde en español.",
    "fr": "Répondez en français.",
    "de": "Antworten Sie auf Deutsch.",
    "hi": "हिंदी में उत्तर दें।",
    "ne": "नेपालीमा जवाफ दिनुहोस्।",
    "zh": "用中文回答。",
    "ja": "日本語で答えてください。",
}

SUPPORTED_LANGUAGES: tuple[str, ...] = tuple(LANGUAGE_DIRECTIVES)

# model_id -> provider name + vendor model name.
DEFAULT_MODELS: dict[str, dict[str, str]] = {
    "gpt-4": {"provider": "openai", "model": "gpt-4"},
    "gpt-3.5-turbo": {"provider": "openai", "model": "gpt-3.5-turbo"},
    "gemini-pro": {"provider": "gemini", "model": "gemini-pro"},
    "claude-sonnet": {"provider": "anthropic", "model": "claude-sonnet-4-20250514"},
}

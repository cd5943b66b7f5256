"""Model id -> completion provider dispatch table.

The chat API addresses models by public id (``gpt-4``, ``gemini-pro``,
...).  The ``models:`` section of the config maps each id to a provider name
and the vendor model name; :meth:`CompletionProviderRegistry.from_config`
builds one adapter instance per id.  Adding a model means adding a config
entry, not a code branch.
"""

from __future__ import annotations

from typing import Any, Callable

import structlog

from docuchat.config.settings import Settings
from docuchat.interfaces.completion_provider import ICompletionProvider
from docuchat.providers.llm.anthropic_provider import AnthropicCompletionProvider
from docuchat.providers.llm.gemini_provider import GeminiCompletionProvider
from docuchat.providers.llm.openai_provider import OpenAICompletionProvider
from docuchat.utils.errors import ConfigurationError, UnsupportedModelError

logger = structlog.get_logger(logger_name=__name__)

ProviderFactory = Callable[[Settings, str], ICompletionProvider]

_FACTORIES: dict[str, ProviderFactory] = {
    "openai": OpenAICompletionProvider,
    "gemini": GeminiCompletionProvider,
    "anthropic": AnthropicCompletionProvider,
}


class CompletionProviderRegistry:
    """Resolves a public model id to the adapter that serves it."""

    def __init__(self, providers: dict[str, ICompletionProvider] | None = None) -> None:
        self._providers: dict[str, ICompletionProvider] = dict(providers or {})

    @classmethod
    def from_config(
        cls,
        models: dict[str, dict[str, Any]],
        settings: Settings,
        factories: dict[str, ProviderFactory] | None = None,
    ) -> CompletionProviderRegistry:
        """Build a registry from the ``models:`` config table.

        Models whose provider has no credentials configured are skipped, so
        requesting them raises :class:`UnsupportedModelError` rather than
        failing later with an authentication error.

        Raises
        ------
        ConfigurationError
            If an entry names a provider with no known adapter.
        """
        factories = factories or _FACTORIES
        registry = cls()
        skipped: list[str] = []
        for model_id, entry in models.items():
            provider_name = entry["provider"]
            factory = factories.get(provider_name)
            if factory is None:
                raise ConfigurationError(
                    message=f"Model '{model_id}' uses unknown provider '{provider_name}'"
                )
            provider = factory(settings, entry.get("model") or model_id)
            if not provider.is_available():
                skipped.append(model_id)
                continue
            registry.register(model_id, provider)

        logger.info(
            "completion_registry_built",
            models=registry.model_ids(),
            skipped_without_credentials=skipped,
        )
        return registry

    def register(self, model_id: str, provider: ICompletionProvider) -> None:
        self._providers[model_id] = provider

    def get(self, model_id: str) -> ICompletionProvider:
        """Return the provider for *model_id*.

        Raises
        ------
        UnsupportedModelError
            If *model_id* is not registered.
        """
        provider = self._providers.get(model_id)
        if provider is None:
            raise UnsupportedModelError(
                message=(
                    f"Unsupported model '{model_id}'. "
                    f"Available: {', '.join(self.model_ids()) or 'none'}"
                )
            )
        return provider

    def model_ids(self) -> list[str]:
        return sorted(self._providers)

    def __contains__(self, model_id: object) -> bool:
        return model_id in self._providers

    def __len__(self) -> int:
        return len(self._providers)

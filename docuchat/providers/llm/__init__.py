"""Completion provider adapters.

Three concrete implementations of ICompletionProvider
(docuchat/interfaces/completion_provider.py):
    - OpenAICompletionProvider: gpt-4 / gpt-3.5-turbo (streaming)
    - GeminiCompletionProvider: gemini-pro via google-generativeai
    - AnthropicCompletionProvider: Claude Sonnet

At startup, main.py builds a CompletionProviderRegistry from the ``models:``
config table; the RAG service resolves the requested model id through it.
"""

from docuchat.providers.llm.anthropic_provider import AnthropicCompletionProvider
from docuchat.providers.llm.gemini_provider import GeminiCompletionProvider
from docuchat.providers.llm.openai_provider import OpenAICompletionProvider
from docuchat.providers.llm.registry import CompletionProviderRegistry

__all__ = [
    "AnthropicCompletionProvider",
    "CompletionProviderRegistry",
    "GeminiCompletionProvider",
    "OpenAICompletionProvider",
]

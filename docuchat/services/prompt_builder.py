"""System prompt composition for the chat assistant."""

from __future__ import annotations

from docuchat.config.languages import DEFAULT_LANGUAGE, LANGUAGE_DIRECTIVES

_PREAMBLE = (
    "You are a helpful AI assistant for a business. You should provide accurate, "
    "helpful, and professional responses based on the company's documentation "
    "and knowledge base."
)

_GUIDANCE = (
    "If you have relevant context from the company's documents, use it to provide "
    "accurate answers. If you don't have specific information, politely say so and "
    "offer to help in other ways.\n\n"
    "Keep responses concise but informative. Be friendly and professional."
)


def language_directive(language: str | None, directives: dict[str, str] | None = None) -> str:
    """Return the directive for *language*, falling back to English."""
    table = directives or LANGUAGE_DIRECTIVES
    if language and language in table:
        return table[language]
    return table.get(DEFAULT_LANGUAGE, LANGUAGE_DIRECTIVES[DEFAULT_LANGUAGE])


def build_system_prompt(
    context: str,
    language: str | None = DEFAULT_LANGUAGE,
    directives: dict[str, str] | None = None,
) -> str:
    """Compose the system prompt: preamble, language directive, then context.

    The "Relevant company information" block is appended only when
    *context* is non-empty.  Unknown language codes get the English
    directive.
    """
    prompt = f"{_PREAMBLE}\n\n{language_directive(language, directives)}\n\n{_GUIDANCE}"
    if context and context.strip():
        prompt += (
            f"\n\nRelevant company information:\n{context}\n\n"
            "Use this information to answer the user's question accurately."
        )
    return prompt

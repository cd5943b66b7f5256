"""YAML configuration loader with environment variable overrides.

Configuration is loaded in layers (later layers override earlier):

  1. Built-in defaults (``docuchat.config.languages``)
  2. ``config/config.yaml`` -- static tables checked into the repo
  3. ``.env`` file / environment variables (via :class:`Settings`)

``_deep_merge`` does recursive dict merging::

    base = {"models": {"gpt-4": {"provider": "openai"}}}
    overrides = {"models": {"gpt-4": {"model": "gpt-4-turbo"}}}
    result = {"models": {"gpt-4": {"provider": "openai", "model": "gpt-4-turbo"}}}
"""

from __future__ import annotations

import copy
from pathlib import Path
from typing import Any

import yaml

from docuchat.config.languages import DEFAULT_MODELS, LANGUAGE_DIRECTIVES
from docuchat.config.settings import Settings
from docuchat.utils.errors import ConfigurationError


def load_config(path: str | None = None, settings: Settings | None = None) -> dict[str, Any]:
    """Load YAML config and merge with environment-based Settings.

    Args:
        path: Path to the YAML configuration file.  Defaults to
              ``settings.config_path``.
        settings: Settings instance; a fresh one is created when omitted.

    Returns:
        Fully resolved configuration dictionary with at least the
        ``models``, ``languages``, ``rag`` and ``uploads`` keys.
    """
    settings = settings or Settings()
    config: dict[str, Any] = {
        "models": copy.deepcopy(DEFAULT_MODELS),
        "languages": dict(LANGUAGE_DIRECTIVES),
    }

    config_path = Path(path or settings.config_path)
    if config_path.exists():
        with open(config_path, encoding="utf-8") as f:
            yaml_config = yaml.safe_load(f) or {}
        if not isinstance(yaml_config, dict):
            raise ConfigurationError(
                message=f"{config_path} must contain a mapping at the top level"
            )
        _deep_merge(config, yaml_config)

    env_overrides = {
        "rag": {
            "chunk_size": settings.chunk_size,
            "chunk_overlap": settings.chunk_overlap,
            "similarity_threshold": settings.similarity_threshold,
            "search_limit": settings.search_limit,
            "vector_batch_size": settings.vector_batch_size,
        },
        "uploads": {
            "max_upload_bytes": settings.max_upload_bytes,
            "allowed_file_types": list(settings.allowed_file_types),
        },
    }
    _deep_merge(config, env_overrides)
    _validate_models(config["models"])
    return config


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge overrides into base dict, mutating base in place."""
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value


def _validate_models(models: Any) -> None:
    if not isinstance(models, dict):
        raise ConfigurationError(message="'models' must be a mapping of model id to provider")
    for model_id, entry in models.items():
        if not isinstance(entry, dict) or not entry.get("provider"):
            raise ConfigurationError(
                message=f"Model '{model_id}' must declare a provider"
            )

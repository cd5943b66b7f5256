"""Unit tests for Settings and the YAML config loader."""

from __future__ import annotations

from pathlib import Path

import pytest

from docuchat.config.loader import _deep_merge, load_config
from docuchat.config.settings import Settings
from docuchat.utils.errors import ConfigurationError


def test_defaults_without_yaml(settings: Settings) -> None:
    config = load_config(settings=settings)

    assert set(config["models"]) >= {"gpt-4", "gpt-3.5-turbo", "gemini-pro"}
    assert config["languages"]["es"] == "Responde en español."
    assert config["rag"]["chunk_size"] == 1000
    assert config["rag"]["chunk_overlap"] == 200
    assert config["rag"]["similarity_threshold"] == 0.70
    assert config["uploads"]["allowed_file_types"] == ["pdf", "docx", "txt"]


def test_yaml_extends_models(tmp_path: Path, settings: Settings) -> None:
    path = tmp_path / "config.yaml"
    path.write_text(
        "models:\n"
        "  gpt-4:\n"
        "    model: gpt-4-turbo\n"
        "  claude-haiku:\n"
        "    provider: anthropic\n"
        "    model: claude-3-5-haiku-latest\n",
        encoding="utf-8",
    )

    config = load_config(str(path), settings=settings)

    assert config["models"]["gpt-4"] == {"provider": "openai", "model": "gpt-4-turbo"}
    assert config["models"]["claude-haiku"]["provider"] == "anthropic"


def test_environment_overrides_rag(tmp_path: Path) -> None:
    settings = Settings(
        _env_file=None,
        chunk_size=500,
        chunk_overlap=50,
        config_path=str(tmp_path / "missing.yaml"),
    )

    config = load_config(settings=settings)

    assert config["rag"]["chunk_size"] == 500
    assert config["rag"]["chunk_overlap"] == 50
    assert set(config) == {"models", "languages", "rag", "uploads"}


def test_model_without_provider_rejected(tmp_path: Path, settings: Settings) -> None:
    path = tmp_path / "config.yaml"
    path.write_text("models:\n  mystery: {}\n", encoding="utf-8")

    with pytest.raises(ConfigurationError, match="mystery"):
        load_config(str(path), settings=settings)


def test_non_mapping_yaml_rejected(tmp_path: Path, settings: Settings) -> None:
    path = tmp_path / "config.yaml"
    path.write_text("- just\n- a list\n", encoding="utf-8")

    with pytest.raises(ConfigurationError):
        load_config(str(path), settings=settings)


def test_deep_merge() -> None:
    base = {"a": {"b": 1, "c": 2}, "d": 3}
    _deep_merge(base, {"a": {"c": 20}, "e": 5})

    assert base == {"a": {"b": 1, "c": 20}, "d": 3, "e": 5}


def test_available_providers() -> None:
    settings = Settings(
        _env_file=None, openai_api_key="", google_api_key="g", anthropic_api_key="a"
    )
    assert settings.get_available_llm_providers() == ["gemini", "anthropic"]

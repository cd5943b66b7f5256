"""Configuration: environment settings, YAML tables, and built-in defaults."""

from docuchat.config.loader import load_config
from docuchat.config.settings import Settings

__all__ = ["Settings", "load_config"]

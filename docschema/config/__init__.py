"""Configuration management module."""

from .config_loader import ConfigLoader, load_config, DEFAULT_CONFIG

__all__ = ["ConfigLoader", "load_config", "DEFAULT_CONFIG"]

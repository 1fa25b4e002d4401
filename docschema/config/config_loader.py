"""Configuration loader and validator."""

import copy
import os
import re
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

try:
    from dotenv import load_dotenv
    load_dotenv()
except ImportError:
    pass  # python-dotenv is optional; env vars can be set directly

from ..utils.exceptions import ConfigurationError
from ..utils.helpers import DOCUMENT_FORMATS

REPORT_FORMATS = ('json', 'text')
LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')

DEFAULT_CONFIG: Dict[str, Any] = {
    'schema': {},
    'input': {'format': 'auto', 'skip_invalid': False},
    'reporting': {'output_format': ['json'], 'output_directory': './reports', 'indent': 2},
    'logging': {'level': 'INFO', 'json': False, 'console': True},
}


class ConfigLoader:
    """Load and validate configuration from YAML files and environment variables."""

    def __init__(self, config_path: Optional[Path] = None):
        """
        Initialize configuration loader.

        Args:
            config_path: Path to configuration YAML file
        """
        self.config_path = config_path
        self.config: Dict[str, Any] = {}

    def load(self) -> Dict[str, Any]:
        """
        Load configuration from file and environment variables.

        Without a path, only defaults and environment overrides apply.

        Returns:
            Loaded configuration dictionary

        Raises:
            ConfigurationError: If configuration is invalid
        """
        if self.config_path is not None:
            if not self.config_path.exists():
                raise ConfigurationError(f"Configuration file not found: {self.config_path}")
            try:
                with open(self.config_path, 'r') as f:
                    self.config = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigurationError(f"Failed to parse YAML configuration: {e}")
            if not isinstance(self.config, dict):
                raise ConfigurationError("Configuration root must be a mapping")

        # Override with environment variables (includes ${VAR} substitution)
        self._override_with_env()

        # Remove None values (optional env vars not set)
        self._remove_none_values_from_dict(self.config)

        self._apply_defaults()
        self._validate()

        return self.config

    def _remove_none_values_from_dict(self, d: dict):
        """Recursively remove None values from a dictionary."""
        keys_to_remove = [k for k, v in d.items() if v is None]
        for k in keys_to_remove:
            del d[k]
        for v in d.values():
            if isinstance(v, dict):
                self._remove_none_values_from_dict(v)

    def _substitute_env_vars(self, value: Any) -> Any:
        """
        Substitute environment variables in config values.
        Supports ${VAR}, ${?VAR} (optional), and partial substitution
        like "${DB}.${COLLECTION}".
        """
        if isinstance(value, str):
            if value.startswith("${") and value.endswith("}") and value.count("${") == 1:
                env_var = value[2:-1].strip()
                optional = env_var.startswith("?")
                if optional:
                    env_var = env_var[1:]

                env_value = os.getenv(env_var)
                if env_value:
                    return env_value
                elif optional:
                    return None
                else:
                    raise ConfigurationError(f"Required environment variable not set: {env_var}")

            def _replace_env(match):
                env_var = match.group(1)
                optional = env_var.startswith("?")
                if optional:
                    env_var = env_var[1:]
                env_value = os.getenv(env_var)
                if env_value:
                    return env_value
                elif optional:
                    return ""
                else:
                    raise ConfigurationError(f"Required environment variable not set: {env_var}")

            if "${" in value:
                return re.sub(r'\$\{([^}]+)\}', _replace_env, value)

        elif isinstance(value, dict):
            return {k: self._substitute_env_vars(v) for k, v in value.items()}
        elif isinstance(value, list):
            return [self._substitute_env_vars(item) for item in value]

        return value

    def _override_with_env(self):
        """Override configuration values with environment variables."""
        self.config = self._substitute_env_vars(self.config)

        if os.getenv("DOCSCHEMA_NAMESPACE"):
            self._set_nested("schema.namespace", os.getenv("DOCSCHEMA_NAMESPACE"))
        if os.getenv("DOCSCHEMA_LOG_LEVEL"):
            self._set_nested("logging.level", os.getenv("DOCSCHEMA_LOG_LEVEL").upper())

    def _set_nested(self, key_path: str, value: Any):
        """Set nested dictionary value using dot notation."""
        keys = key_path.split('.')
        d = self.config
        for key in keys[:-1]:
            d = d.setdefault(key, {})
        d[keys[-1]] = value

    def _apply_defaults(self):
        for section, defaults in DEFAULT_CONFIG.items():
            current = self.config.setdefault(section, {})
            if not isinstance(current, dict):
                raise ConfigurationError(f"Configuration section '{section}' must be a mapping")
            for key, value in defaults.items():
                current.setdefault(key, copy.deepcopy(value))

    def _validate(self):
        """Validate configuration."""
        max_values = self.config['schema'].get('max_values')
        if max_values is not None:
            if isinstance(max_values, bool) or not isinstance(max_values, int) or max_values <= 0:
                raise ConfigurationError(
                    f"schema.max_values must be a positive integer, got {max_values!r}"
                )

        input_format = self.config['input']['format']
        if input_format not in DOCUMENT_FORMATS:
            raise ConfigurationError(
                f"Invalid input.format: {input_format!r} (expected one of {', '.join(DOCUMENT_FORMATS)})"
            )

        output_format = self.config['reporting']['output_format']
        if isinstance(output_format, str):
            output_format = [output_format]
            self.config['reporting']['output_format'] = output_format
        for fmt in output_format:
            if fmt not in REPORT_FORMATS:
                raise ConfigurationError(f"Invalid reporting.output_format: {fmt!r}")

        level = str(self.config['logging']['level']).upper()
        if level not in LOG_LEVELS:
            raise ConfigurationError(f"Invalid logging.level: {level!r}")
        self.config['logging']['level'] = level

        if not isinstance(self.config['logging']['console'], bool):
            raise ConfigurationError("logging.console must be true or false")


def load_config(config_path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Convenience function to load configuration.

    Args:
        config_path: Path to configuration file

    Returns:
        Loaded configuration dictionary
    """
    loader = ConfigLoader(config_path)
    return loader.load()

"""YAML configuration loader for Clipster."""

import copy
import os
import yaml
from pathlib import Path
from typing import Dict, Any, Optional
import logging

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "CLIPSTER_CONFIG"

DEFAULT_CONFIG: Dict[str, Any] = {
    'audio': {
        'frames_per_buffer': 1024,
        'max_channels': 2,
        'encodings': ['float32', 'int16', 'uint16'],
        'lock_timeout_ms': 5,
    },
    'transcription': {
        'model': 'tiny.en',
        'device': 'cpu',
        'compute_type': 'int8',
        'language': 'en',
        'beam_size': 1,
    },
    'chat': {
        'timeout_seconds': 120,
        'connect_timeout_seconds': 10,
    },
    'providers': {},
    'output': {
        'preview_length': 100,
        'notifications': True,
    },
    'logging': {
        'level': 'INFO',
        'file_path': '~/.clipster/logs/clipster.log',
        'console_output': True,
    },
}


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


class ClipsterConfig:
    """Clipster configuration: built-in defaults overlaid with an optional YAML file."""

    def __init__(self, config_path: Optional[str] = None):
        """Initialize configuration loader.

        Args:
            config_path: Path to YAML config file. If None, CLIPSTER_CONFIG is
                        consulted; with neither set, defaults are used as-is.
        """
        config_path = config_path or os.environ.get(CONFIG_ENV_VAR)
        self.config_file: Optional[Path] = Path(config_path).expanduser() if config_path else None

        if self.config_file is None:
            logger.info("No configuration file given, using defaults")
            self.config = copy.deepcopy(DEFAULT_CONFIG)
            self._resolve_paths(self.config)
            return

        if not self.config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {self.config_file}")

        logger.info(f"Loading configuration from: {self.config_file}")
        self.config = _deep_merge(DEFAULT_CONFIG, self._load_config())
        self._resolve_paths(self.config)

    def _load_config(self) -> Dict[str, Any]:
        """Load and parse YAML configuration file."""
        try:
            with open(self.config_file, 'r', encoding='utf-8') as f:
                config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file: {e}") from e

        if config is None:
            return {}
        if not isinstance(config, dict):
            raise ValueError(f"Configuration file must contain a mapping, got {type(config).__name__}")

        logger.info("Configuration loaded successfully")
        return config

    def _resolve_paths(self, config: Dict[str, Any]) -> None:
        """Expand ~ and resolve a relative log path against the config file location."""
        log_path = config.get('logging', {}).get('file_path')
        if not log_path:
            return
        log_path = os.path.expanduser(log_path)
        if not os.path.isabs(log_path) and self.config_file is not None:
            log_path = str(self.config_file.parent / log_path)
        config['logging']['file_path'] = log_path

    def get(self, key_path: str, default: Any = None) -> Any:
        """Get configuration value using dot notation (e.g., 'chat.timeout_seconds').

        Args:
            key_path: Dot-separated key path (e.g., 'providers.openai.model')
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        keys = key_path.split('.')
        value = self.config

        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default

        return value

    def set(self, key_path: str, value: Any) -> None:
        """Set configuration value using dot notation.

        Args:
            key_path: Dot-separated path to config value (e.g., 'output.notifications')
            value: Value to set
        """
        keys = key_path.split('.')
        config_dict = self.config

        for key in keys[:-1]:
            if key not in config_dict:
                config_dict[key] = {}
            config_dict = config_dict[key]

        config_dict[keys[-1]] = value
        logger.debug(f"Configuration key '{key_path}' set to: {value}")

    def get_provider_overrides(self) -> Dict[str, Dict[str, Any]]:
        """Per-provider overrides keyed by provider id."""
        providers = self.get('providers') or {}
        return {key: value for key, value in providers.items() if isinstance(value, dict)}

"""Simple YAML configuration loader for SpeechCoach."""

import copy
import os
import yaml
from pathlib import Path
from typing import Dict, Any, Optional, Union
import logging

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path.home() / ".speechcoach" / "speechcoach.yaml"

DEFAULTS: Dict[str, Any] = {
    "ai": {
        "provider": "openai",
        "openai_api_key": None,
        "claude_api_key": None,
        "gemini_api_key": None,
        "ollama_base_url": None,
        "model": None,
        "request_timeout_seconds": 60,
    },
    "ui": {
        "theme": "light",
        "language": "en",
    },
    "audio": {
        "sample_rate": 16000,
        "channels": 1,
    },
    "logging": {
        "level": "INFO",
        "file_path": "logs/speechcoach.log",
        "console_output": True,
    },
}


class SpeechCoachConfig:
    """SpeechCoach configuration loader."""

    def __init__(self, config_path: Optional[Union[str, Path]] = None):
        """Initialize configuration loader.

        Args:
            config_path: Path to YAML config file. If None, uses
                        ~/.speechcoach/speechcoach.yaml. A missing file yields defaults.
        """
        self.config_file = Path(config_path) if config_path else DEFAULT_CONFIG_PATH

        if self.config_file.exists():
            logger.info(f"Loading configuration from: {self.config_file}")
            loaded = self._load_config()
        else:
            logger.info(f"No configuration file at {self.config_file}, using defaults")
            loaded = {}

        self.config = _merge(copy.deepcopy(DEFAULTS), loaded)
        self._resolve_paths(self.config)

    def _load_config(self) -> Dict[str, Any]:
        """Load and parse YAML configuration file."""
        try:
            with open(self.config_file, 'r', encoding='utf-8') as f:
                config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file: {e}") from e
        except OSError as e:
            raise ValueError(f"Failed to load configuration: {e}") from e

        if config is None:
            return {}
        if not isinstance(config, dict):
            raise ValueError("Configuration file must contain a mapping")

        logger.info("Configuration loaded successfully")
        return config

    def _resolve_paths(self, config: Dict[str, Any]) -> None:
        """Resolve relative paths in configuration relative to config file location."""
        config_dir = self.config_file.parent

        log_path = config.get('logging', {}).get('file_path')
        if log_path and not os.path.isabs(log_path):
            config['logging']['file_path'] = str(config_dir / log_path)

    def get(self, key_path: str, default: Any = None) -> Any:
        """Get configuration value using dot notation (e.g., 'ai.provider').

        Args:
            key_path: Dot-separated key path (e.g., 'ai.openai_api_key')
            default: Default value if key not found or unset

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

        return default if value is None else value

    def set(self, key_path: str, value: Any) -> None:
        """Set configuration value using dot notation.

        Args:
            key_path: Dot-separated path to config value (e.g., 'ai.provider')
            value: Value to set
        """
        keys = key_path.split('.')
        config_dict = self.config

        # Navigate to the parent dictionary
        for key in keys[:-1]:
            if not isinstance(config_dict.get(key), dict):
                config_dict[key] = {}
            config_dict = config_dict[key]

        config_dict[keys[-1]] = value
        if key_path.endswith("api_key"):
            logger.debug(f"Configuration key '{key_path}' updated")
        else:
            logger.debug(f"Configuration key '{key_path}' set to: {value}")

    def save(self) -> Path:
        """Persist the current configuration back to the YAML file."""
        self.config_file.parent.mkdir(parents=True, exist_ok=True)
        with open(self.config_file, 'w', encoding='utf-8') as f:
            yaml.safe_dump(self.config, f, default_flow_style=False, sort_keys=True)
        logger.info(f"Configuration saved to: {self.config_file}")
        return self.config_file


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _merge(base[key], value)
        else:
            base[key] = value
    return base

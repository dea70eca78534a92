"""
Settings for the RSS reader.
Handles loading and validation of configuration settings.
"""
import copy
import json
import logging
import os
from json.decoder import JSONDecodeError
from typing import Any, Dict, Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULTS = {
    "networking": {
        "timeout_seconds": 30,
        "verify_tls": True,
    },
    "logging": {
        "level": "INFO",
        "log_dir": None,
    },
}

# Environment variable -> (dot path, converter)
ENV_OVERRIDES = {
    "RSS_READER_TIMEOUT": ("networking.timeout_seconds", float),
    "RSS_READER_VERIFY_TLS": ("networking.verify_tls", lambda value: value.strip().lower() not in ("0", "false", "no", "off")),
    "RSS_READER_LOG_LEVEL": ("logging.level", str),
    "RSS_READER_LOG_DIR": ("logging.log_dir", str),
}

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def merge_dicts(source: Dict[str, Any], default: Dict[str, Any]) -> None:
    """Recursively merges default dict into source dict."""
    for key, value in default.items():
        if key not in source:
            source[key] = copy.deepcopy(value)
        elif isinstance(value, dict) and isinstance(source[key], dict):
            merge_dicts(source[key], value)
        # No else: existing values in source take precedence


class Settings:
    """
    Reader settings: defaults, optionally overlaid by a JSON file, then by
    environment variables (a .env file is honoured).
    """

    def __init__(self, settings_path: Optional[str] = None, use_env: bool = True):
        """
        Initialize settings.

        Args:
            settings_path: Path to a JSON settings file, None for defaults only
            use_env: Apply RSS_READER_* environment overrides

        Raises:
            FileNotFoundError: If settings_path does not exist
            json.JSONDecodeError: If the file contains invalid JSON
            TypeError, ValueError: If a setting has an invalid type or value
        """
        self.settings_path = settings_path
        self.settings: Dict[str, Any] = {}

        if settings_path:
            self.settings = self._load_json_file(settings_path)
        merge_dicts(self.settings, DEFAULTS)

        if use_env:
            load_dotenv()
            self._apply_env_overrides()

        self._validate_settings()
        logger.debug(f"Settings loaded (file: {settings_path or 'none'})")

    def _load_json_file(self, file_path: str) -> Dict[str, Any]:
        """
        Load a JSON settings file.

        Raises:
            FileNotFoundError: If the file does not exist.
            json.JSONDecodeError: If the file contains invalid JSON.
            TypeError: If the top level is not an object.
        """
        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                config = json.load(f)
        except JSONDecodeError as e:
            logger.error(f"Invalid JSON in settings file '{file_path}': {e}")
            raise

        if not isinstance(config, dict):
            raise TypeError(f"Settings file '{file_path}' must contain a JSON object")

        logger.info(f"Loaded settings from {file_path}")
        return config

    def _apply_env_overrides(self):
        """Override settings from RSS_READER_* environment variables."""
        for env_var, (key_path, convert) in ENV_OVERRIDES.items():
            raw = os.environ.get(env_var)
            if raw is None or raw == "":
                continue
            try:
                value = convert(raw)
            except ValueError as e:
                raise ValueError(f"Invalid value for {env_var}: {raw!r}") from e
            section, key = key_path.split('.')
            self.settings[section][key] = value
            logger.debug(f"Setting '{key_path}' overridden by {env_var}")

    def _validate_settings(self):
        """Validate types and values of known settings."""
        for section in DEFAULTS:
            if not isinstance(self.settings.get(section), dict):
                raise TypeError(f"Invalid type for settings section '{section}'. Expected object.")

        networking = self.settings["networking"]
        timeout = networking.get("timeout_seconds")
        if timeout is not None:
            if isinstance(timeout, bool) or not isinstance(timeout, (int, float)):
                raise TypeError("Invalid type for 'networking.timeout_seconds'. Expected int or float.")
            if timeout <= 0:
                raise ValueError("'networking.timeout_seconds' must be positive")
        if not isinstance(networking.get("verify_tls"), bool):
            raise TypeError("Invalid type for 'networking.verify_tls'. Expected boolean.")

        logging_settings = self.settings["logging"]
        level = logging_settings.get("level")
        if not isinstance(level, str):
            raise TypeError("Invalid type for 'logging.level'. Expected a string.")
        if level.upper() not in VALID_LOG_LEVELS:
            raise ValueError(f"Invalid 'logging.level': {level!r}")
        log_dir = logging_settings.get("log_dir")
        if log_dir is not None and not isinstance(log_dir, str):
            raise TypeError("Invalid type for 'logging.log_dir'. Expected a string.")

    def get_config_value(self, key_path: str, default=None):
        """
        Get configuration value using dot notation.

        Args:
            key_path: Dot-separated path to configuration value (e.g., "networking.timeout_seconds")
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        value = self.settings

        for key in key_path.split('.'):
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default

        return value

    @property
    def timeout(self) -> Optional[float]:
        return self.get_config_value("networking.timeout_seconds")

    @property
    def verify_tls(self) -> bool:
        return self.get_config_value("networking.verify_tls", True)

    @property
    def log_level(self) -> str:
        return self.get_config_value("logging.level", "INFO")

    @property
    def log_dir(self) -> Optional[str]:
        return self.get_config_value("logging.log_dir")

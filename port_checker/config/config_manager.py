#!/usr/bin/env python3
"""
Configuration Manager for Port Checker

Features:
- JSON configuration file (optional)
- Environment variable overrides
- Schema validation with jsonschema
- Default values matching the built-in probe timings
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import jsonschema

from ..core.errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "port_checker.json"

_TIMEOUT = {"type": "number", "minimum": 0.1, "maximum": 60.0}
_PORT_LIST = {
    "type": "array",
    "items": {"type": "integer", "minimum": 1, "maximum": 65535},
    "uniqueItems": True,
}


class ConfigSchema:
    """Configuration schema with validation"""

    SCHEMA = {
        "$schema": "http://json-schema.org/draft-07/schema#",
        "type": "object",
        "required": ["version", "general", "timeouts", "detection", "process"],
        "additionalProperties": False,
        "properties": {
            "version": {"type": "string", "pattern": r"^\d+\.\d+\.\d+$"},
            "general": {
                "type": "object",
                "required": ["log_level", "colors_enabled"],
                "additionalProperties": False,
                "properties": {
                    "log_level": {"type": "string", "enum": ["DEBUG", "INFO", "WARNING", "ERROR"]},
                    "colors_enabled": {"type": "boolean"}
                }
            },
            "timeouts": {
                "type": "object",
                "required": ["liveness", "http", "banner"],
                "additionalProperties": False,
                "properties": {
                    "liveness": _TIMEOUT,
                    "http": _TIMEOUT,
                    "banner": _TIMEOUT
                }
            },
            "detection": {
                "type": "object",
                "required": ["handshake_failed_ports", "tcp_fallback_ports", "always_run_banner_probe"],
                "additionalProperties": False,
                "properties": {
                    "handshake_failed_ports": _PORT_LIST,
                    "tcp_fallback_ports": _PORT_LIST,
                    "always_run_banner_probe": {"type": "boolean"}
                }
            },
            "process": {
                "type": "object",
                "required": ["prompt_kill"],
                "additionalProperties": False,
                "properties": {
                    "prompt_kill": {"type": "boolean"}
                }
            }
        }
    }

    @staticmethod
    def get_defaults() -> Dict[str, Any]:
        """Return default configuration"""
        return {
            "version": "1.0.0",
            "general": {
                "log_level": "WARNING",
                "colors_enabled": True
            },
            "timeouts": {
                "liveness": 2.0,
                "http": 5.0,
                "banner": 3.0
            },
            "detection": {
                "handshake_failed_ports": [443, 8243],
                "tcp_fallback_ports": [9615],
                "always_run_banner_probe": False
            },
            "process": {
                "prompt_kill": True
            }
        }


class ConfigManager:
    """
    Configuration manager with file, env, and validation support

    Usage:
        config = ConfigManager("port_checker.json")
        config.load()
        timeout = config.get("timeouts.banner")
    """

    ENV_PREFIX = "PORT_CHECKER_"

    def __init__(self, config_file: Optional[str] = None):
        """
        Initialize configuration manager

        Args:
            config_file: Path to JSON config file (default: port_checker.json)
        """
        self.config_file = config_file or DEFAULT_CONFIG_FILE
        self.config = ConfigSchema.get_defaults()
        self.validator = jsonschema.Draft7Validator(ConfigSchema.SCHEMA)

    def load(self, config_file: Optional[str] = None) -> bool:
        """
        Load configuration from file, then apply environment overrides

        Both sources go through schema validation.

        Args:
            config_file: Optional path override

        Returns:
            True if a file was loaded, False if none exists

        Raises:
            ConfigError: File or environment value is unreadable or invalid;
                defaults are restored
        """
        if config_file:
            self.config_file = config_file

        path = Path(self.config_file)
        found = path.exists()

        try:
            if found:
                self._merge_config(self.config, self._read_file(path))
            else:
                logger.debug("Config file not found: %s, using defaults", self.config_file)
            self._apply_env_overrides()
            self.validate()
        except ConfigError:
            self.config = ConfigSchema.get_defaults()
            raise

        logger.debug("Config loaded: %s", self.config_file if found else "<defaults>")
        return found

    def _read_file(self, path: Path) -> Dict[str, Any]:
        try:
            with open(path, 'r', encoding='utf-8') as f:
                loaded_config = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Config parse error in {self.config_file}: {e}") from e
        except OSError as e:
            raise ConfigError(f"Config load error in {self.config_file}: {e}") from e

        if not isinstance(loaded_config, dict):
            raise ConfigError(f"Config file {self.config_file} must contain a JSON object")
        return loaded_config

    def _merge_config(self, base: Dict, override: Dict) -> None:
        """Deep merge configuration"""
        for key, value in override.items():
            if (key in base and
                isinstance(base[key], dict) and
                isinstance(value, dict)):
                self._merge_config(base[key], value)
            else:
                base[key] = value

    def _apply_env_overrides(self) -> None:
        """Copy PORT_CHECKER_<SECTION>_<KEY> values into the config"""
        for section, values in ConfigSchema.get_defaults().items():
            if not isinstance(values, dict):
                continue
            for key, default in values.items():
                env_key = f"{self.ENV_PREFIX}{section}_{key}".upper()
                env_value = os.environ.get(env_key)
                if env_value is None:
                    continue
                if not isinstance(self.config.get(section), dict):
                    continue

                value = self._parse_env_value(env_value)
                # A single port parses as a bare int
                if isinstance(default, list) and isinstance(value, int) \
                        and not isinstance(value, bool):
                    value = [value]
                logger.debug("Config override from %s: %r", env_key, value)
                self.config[section][key] = value

    def validate(self) -> None:
        """
        Validate configuration against schema

        Raises:
            ConfigError: Listing every schema violation
        """
        errors = sorted(self.validator.iter_errors(self.config), key=lambda e: [str(p) for p in e.path])
        if errors:
            details = "; ".join(
                f"{'.'.join(str(p) for p in error.path) or '<root>'}: {error.message}"
                for error in errors
            )
            raise ConfigError(f"Invalid configuration: {details}")

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value using dot notation

        Args:
            key: Configuration key (e.g., "timeouts.banner")
            default: Default value if key not found
        """
        value = self.config
        for k in key.split("."):
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default
        return value

    def _parse_env_value(self, value: str) -> Any:
        """Parse environment variable value"""
        # Boolean
        if value.lower() in ("true", "yes"):
            return True
        if value.lower() in ("false", "no"):
            return False

        # Comma-separated port list
        if "," in value:
            try:
                return [int(v) for v in value.split(",") if v.strip()]
            except ValueError:
                return value

        # Integer
        try:
            return int(value)
        except ValueError:
            pass

        # Float
        try:
            return float(value)
        except ValueError:
            pass

        # String, left for the schema to reject where a number is expected
        return value

    def export_for_probe(self) -> Dict[str, Any]:
        """Export configuration as PortProbe / ServiceDetector keyword values"""
        return {
            "liveness_timeout": float(self.get("timeouts.liveness")),
            "http_timeout": float(self.get("timeouts.http")),
            "banner_timeout": float(self.get("timeouts.banner")),
            "handshake_failed_ports": tuple(self.get("detection.handshake_failed_ports")),
            "tcp_fallback_ports": tuple(self.get("detection.tcp_fallback_ports")),
            "always_run_banner_probe": self.get("detection.always_run_banner_probe"),
        }

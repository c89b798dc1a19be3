"""Configuration management for the package material protocol.

Implements multi-level configuration with precedence:
1. Environment variables (PKGMATERIAL_* prefix, highest priority)
2. Explicit config file passed to ``ProtocolConfig.load``
3. Project config (./.pkgmaterial.yaml)
4. Global config (~/.pkgmaterial/config.yaml)
5. Built-in defaults (lowest priority)
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml  # type: ignore[import-untyped]
from pydantic import BaseModel, Field

GLOBAL_CONFIG_DIR = ".pkgmaterial"
PROJECT_CONFIG_NAME = ".pkgmaterial.yaml"

_ENV_MAPPING = {
    "PKGMATERIAL_COMPACT_JSON": ["encoding", "compact"],
    "PKGMATERIAL_ENSURE_ASCII": ["encoding", "ensure_ascii"],
    "PKGMATERIAL_LOG_PAYLOADS": ["logging", "log_payloads"],
    "PKGMATERIAL_PAYLOAD_PREVIEW_CHARS": ["logging", "payload_preview_chars"],
}
_BOOLEAN_KEYS = {"compact", "ensure_ascii", "log_payloads"}
_INTEGER_KEYS = {"payload_preview_chars"}


class EncodingConfig(BaseModel):
    """Request serialization settings."""

    compact: bool = False
    ensure_ascii: bool = False


class LoggingConfig(BaseModel):
    """Diagnostic logging settings."""

    log_payloads: bool = False
    payload_preview_chars: int = Field(default=200, ge=0, le=10_000)


class ProtocolConfig(BaseModel):
    """Complete protocol configuration."""

    encoding: EncodingConfig = Field(default_factory=EncodingConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def load(
        cls,
        config_path: Path | None = None,
        skip_global: bool = False,
        skip_project: bool = False,
    ) -> ProtocolConfig:
        """Load configuration with precedence: env > explicit > project > global > defaults.

        Args:
            config_path: Optional explicit config file path
            skip_global: Skip loading global config
            skip_project: Skip loading project config

        Returns:
            Loaded and merged configuration

        Raises:
            ValueError: If a config file or value is invalid
        """
        config_data: dict[str, Any] = {}

        if not skip_global:
            global_config_path = Path.home() / GLOBAL_CONFIG_DIR / "config.yaml"
            if global_config_path.exists():
                config_data = cls._load_yaml_file(global_config_path)

        # An explicit file replaces the project file
        if not skip_project and not config_path:
            project_config_path = Path.cwd() / PROJECT_CONFIG_NAME
            if project_config_path.exists():
                config_data = cls._deep_merge(config_data, cls._load_yaml_file(project_config_path))

        if config_path:
            if not config_path.exists():
                raise ValueError(f"Config file not found: {config_path}")
            config_data = cls._deep_merge(config_data, cls._load_yaml_file(config_path))

        config_data = cls._deep_merge(config_data, cls._load_from_env())

        try:
            return cls(**config_data)
        except Exception as e:
            raise ValueError(f"Invalid configuration: {e}") from e

    @staticmethod
    def _load_yaml_file(path: Path) -> dict[str, Any]:
        """Load and parse a YAML file.

        Raises:
            ValueError: If the file cannot be read or is invalid YAML
        """
        try:
            with open(path) as f:
                data = yaml.safe_load(f)
                return data if isinstance(data, dict) else {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in {path}: {e}") from e
        except OSError as e:
            raise ValueError(f"Failed to read {path}: {e}") from e

    @staticmethod
    def _load_from_env() -> dict[str, Any]:
        """Load configuration from PKGMATERIAL_* environment variables."""
        result: dict[str, Any] = {}
        for env_var, path in _ENV_MAPPING.items():
            value = os.getenv(env_var)
            if value is not None:
                ProtocolConfig._set_nested(result, path, ProtocolConfig._convert_env_value(value, path))
        return result

    @staticmethod
    def _convert_env_value(value: str, path: list[str]) -> Any:
        """Convert an environment variable string to the type its key expects."""
        if path[-1] in _BOOLEAN_KEYS:
            return value.strip().lower() in ("true", "1", "yes", "on")
        if path[-1] in _INTEGER_KEYS:
            try:
                return int(value)
            except ValueError:
                # left as-is so model validation reports it
                return value
        return value

    @staticmethod
    def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
        result = base.copy()
        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = ProtocolConfig._deep_merge(result[key], value)
            else:
                result[key] = value
        return result

    @staticmethod
    def _set_nested(data: dict[str, Any], path: list[str], value: Any) -> None:
        for key in path[:-1]:
            data = data.setdefault(key, {})
        data[path[-1]] = value

    def to_yaml(self) -> str:
        return yaml.dump(self.model_dump(), default_flow_style=False, sort_keys=False)

"""Resolve upload configuration from the config file, environment, and CLI."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from liveupload.config_manager.helpers import parse_bytes
from liveupload.config_manager.upload_config import UploadConfig
from liveupload.const import CONFIG_DIR, CONFIG_FILE

logger = logging.getLogger(__name__)

_ENV_MAP: dict[str, str] = {
    "server_url": "LIVEUPLOAD_SERVER_URL",
    "auth_token": "LIVEUPLOAD_AUTH_TOKEN",
    "bypass_secret": "LIVEUPLOAD_BYPASS_SECRET",
    "chunk_size": "LIVEUPLOAD_CHUNK_SIZE",
}


class ConfigLoadError(Exception):
    """Raised when the configuration file cannot be read."""


class ConfigManager:
    """Build the effective upload configuration.

    Values are layered as defaults, then the YAML config file, then
    environment variables, then CLI overrides.
    """

    def __init__(self, config_path: Path | None = None) -> None:
        """Initialise ConfigManager.

        Args:
            config_path: Path of the YAML config file. Defaults to
                ``~/.liveupload/config.yaml``.
        """
        self.config_path = config_path or CONFIG_DIR / CONFIG_FILE

    def _read_file_config(self) -> dict[str, Any]:
        """Read configuration values from the YAML file, if it exists.

        Returns:
            A dictionary of configuration field names to values.

        Raises:
            ConfigLoadError: If the file exists but is not a YAML mapping, or
                its chunk_size cannot be parsed.
        """
        if not self.config_path.exists():
            return {}

        try:
            with open(self.config_path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigLoadError(
                f"Failed to read config file {self.config_path}: {e}"
            ) from e

        if not isinstance(data, dict):
            raise ConfigLoadError(
                f"Config file {self.config_path} must contain a mapping"
            )
        if "chunk_size" in data:
            try:
                data["chunk_size"] = parse_bytes(data["chunk_size"])
            except ValueError as e:
                raise ConfigLoadError(
                    f"Invalid chunk_size in {self.config_path}: {e}"
                ) from e
        return data

    def _read_env_overrides(self) -> dict[str, Any]:
        """Read configuration overrides from environment variables.

        Returns:
            A dictionary of configuration field names to override values.
        """
        overrides: dict[str, Any] = {}

        for field_name, env_var_name in _ENV_MAP.items():
            env_value = os.getenv(env_var_name)
            if env_value is None:
                continue

            if field_name == "chunk_size":
                try:
                    overrides[field_name] = parse_bytes(env_value)
                except ValueError:
                    logger.warning(
                        "Ignoring invalid %s=%r", env_var_name, env_value
                    )
                    continue
            else:
                overrides[field_name] = env_value

        return overrides

    def resolve_effective_config(
        self, cli_config: dict[str, Any] | None = None
    ) -> UploadConfig:
        """Resolve the effective upload configuration for this run.

        Args:
            cli_config: Optional CLI-provided configuration overrides. ``None``
                values are ignored.

        Returns:
            The resolved ``UploadConfig``.

        Raises:
            ConfigLoadError: If the file is unreadable or a value is invalid.
        """
        values = self._read_file_config()
        values.update(self._read_env_overrides())
        if cli_config is not None:
            values.update({k: v for k, v in cli_config.items() if v is not None})
        try:
            return UploadConfig(**values)
        except ValidationError as e:
            raise ConfigLoadError(f"Invalid upload configuration: {e}") from e

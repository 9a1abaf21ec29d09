"""
Configuration system using Pydantic for type-safe settings management.

Settings come from ``BUILDCREDS_*`` environment variables, optionally layered
under a YAML settings file loaded with :meth:`CredentialsSettings.from_yaml`.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Literal

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from build_credentials.exceptions import ConfigurationError

DEFAULT_API_BASE_URL = "https://exp.host/--/api/v2/"


class CredentialsSettings(BaseSettings):
    """Settings for talking to the credential service and finding the session."""

    model_config = SettingsConfigDict(
        env_prefix="BUILDCREDS_",
        case_sensitive=False,
        extra="ignore",
    )

    api_base_url: str = Field(default=DEFAULT_API_BASE_URL, description="Base URL of the credential service API")
    request_timeout: float = Field(default=30.0, gt=0.0, description="HTTP timeout in seconds")
    state_file: Path = Field(
        default_factory=lambda: Path.home() / ".buildcreds" / "state.yaml",
        description="Session state file holding the authenticated identity",
    )
    keytool_path: str = Field(default="keytool", description="keytool executable used for keystore operations")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="WARNING", description="Minimum structured log level"
    )

    @field_validator("api_base_url")
    @classmethod
    def ensure_trailing_slash(cls, value: str) -> str:
        """Relative API paths are joined onto the base URL, so it must end with '/'."""
        if not (value.startswith("http://") or value.startswith("https://")):
            raise ValueError(f"api_base_url must start with http:// or https://, got: {value}")
        return value if value.endswith("/") else f"{value}/"

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        return value.upper() if isinstance(value, str) else value

    @classmethod
    def from_yaml(cls, config_path: str | Path) -> CredentialsSettings:
        """Load settings from YAML file with environment variable interpolation.

        Supports ${VAR_NAME} and ${VAR_NAME:-default} substitution.

        Raises:
            ConfigurationError: If the file is missing, unreadable or invalid
        """
        config_file = Path(config_path)
        if not config_file.exists():
            raise ConfigurationError(f"Configuration file not found: {config_path}")

        try:
            yaml_content = config_file.read_text()
        except OSError as e:
            raise ConfigurationError(f"Cannot read configuration file: {config_path}") from e

        try:
            yaml_content = cls._interpolate_env_vars(yaml_content)
        except ValueError as e:
            raise ConfigurationError(f"Invalid environment variable reference in config: {e}") from e

        try:
            config_dict = yaml.safe_load(yaml_content) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML syntax in {config_path}: {e}") from e
        if not isinstance(config_dict, dict):
            raise ConfigurationError("Configuration must be a YAML object, not a list or scalar")

        try:
            return cls(**config_dict)
        except Exception as e:
            raise ConfigurationError(f"Failed to validate configuration: {e}") from e

    @staticmethod
    def _interpolate_env_vars(content: str) -> str:
        """Interpolate ${VAR_NAME} placeholders with environment variables.

        YAML comment lines are left untouched.

        Raises:
            ValueError: If a required environment variable is not set
        """
        pattern = re.compile(r"\$\{([A-Z_][A-Z0-9_]*)(?::-([^}]*))?\}")

        def replace_var(match: re.Match[str]) -> str:
            var_name = match.group(1)
            default_value = match.group(2)
            value = os.getenv(var_name)

            if value is not None:
                return value
            elif default_value is not None:
                return default_value
            else:
                raise ValueError(f"Environment variable {var_name} is not set")

        def process_line(line: str) -> str:
            if line.lstrip().startswith("#"):
                return line
            return pattern.sub(replace_var, line)

        return "\n".join(process_line(line) for line in content.split("\n"))

"""
Auth configuration.

Reads settings from the `auth` section of a YAML settings file, with
environment variable overrides.

```yaml
auth:
  google_client_id: "1234-abc.apps.googleusercontent.com"
  log_level: "INFO"
  structured_logging: false
  high_priority_user_properties: true
```
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from .exceptions import ConfigurationError

DEFAULT_CONFIG_PATH = Path.home() / ".session-auth" / "settings.yaml"

ENV_GOOGLE_CLIENT_ID = "SESSION_AUTH_GOOGLE_CLIENT_ID"
ENV_LOG_LEVEL = "SESSION_AUTH_LOG_LEVEL"


@dataclass
class AuthConfig:
    """Settings for the session manager and its logging."""

    google_client_id: str | None = None
    log_level: str = "INFO"
    structured_logging: bool = False
    high_priority_user_properties: bool = True

    @classmethod
    def load(cls, config_path: Path | None = None) -> "AuthConfig":
        """Load configuration from YAML file and environment.

        Args:
            config_path: Path to settings.yaml. Defaults to ~/.session-auth/settings.yaml

        Returns:
            AuthConfig with file values, overridden by environment variables

        Raises:
            ConfigurationError: If the file exists but is not valid
        """
        path = config_path or DEFAULT_CONFIG_PATH
        section = cls._load_section(path)

        config = cls(
            google_client_id=section.get("google_client_id"),
            log_level=str(section.get("log_level", "INFO")).upper(),
            structured_logging=bool(section.get("structured_logging", False)),
            high_priority_user_properties=bool(section.get("high_priority_user_properties", True)),
        )

        # Environment wins over file
        if client_id := os.environ.get(ENV_GOOGLE_CLIENT_ID):
            config.google_client_id = client_id
        if log_level := os.environ.get(ENV_LOG_LEVEL):
            config.log_level = log_level.upper()

        return config

    @staticmethod
    def _read_settings(path: Path) -> dict[str, Any]:
        """Read a whole YAML settings file, or {} if it does not exist."""
        if not path.exists():
            return {}

        try:
            content = yaml.safe_load(path.read_text()) or {}
        except (yaml.YAMLError, OSError) as e:
            raise ConfigurationError(str(path), "could not parse settings file", e) from e

        if not isinstance(content, dict):
            raise ConfigurationError(str(path), "settings file must contain a mapping")
        return content

    @classmethod
    def _load_section(cls, path: Path) -> dict[str, Any]:
        """Load the `auth` section from a YAML file."""
        section = cls._read_settings(path).get("auth") or {}
        if not isinstance(section, dict):
            raise ConfigurationError(str(path), "'auth' section must be a mapping")
        return section

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "google_client_id": self.google_client_id,
            "log_level": self.log_level,
            "structured_logging": self.structured_logging,
            "high_priority_user_properties": self.high_priority_user_properties,
        }

    def save(self, config_path: Path | None = None) -> None:
        """Write this configuration into the `auth` section of a settings file.

        Other sections of an existing file are preserved.

        Raises:
            ConfigurationError: If the existing file is not valid
        """
        path = config_path or DEFAULT_CONFIG_PATH
        content = self._read_settings(path)

        content["auth"] = self.to_dict()

        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(yaml.safe_dump(content, default_flow_style=False))

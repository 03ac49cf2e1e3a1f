"""Configuration management using Pydantic.

Provides:
- Typed configuration model with validation
- YAML file loading with defaults
- Environment variable overrides (LETSENCRYPT_EMAIL)
- Configuration initialization and display
"""

import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings

from lecert.core.exceptions import ConfigurationError
from lecert.core.validation import validate_email, validate_path, validate_url


# Default configuration paths
DEFAULT_CONFIG_PATH = Path("/etc/lecert/config.yaml")
DEFAULT_LETSENCRYPT_DIR = Path("/etc/letsencrypt")
DEFAULT_AUDIT_LOG = Path("/var/log/lecert/audit.log")

ACME_PRODUCTION_URL = "https://acme-v02.api.letsencrypt.org/directory"

# Used when neither the environment nor the config file provide an address
FALLBACK_EMAIL = "admin@example.com"

DEFAULT_WEB_SERVERS: list[list[str]] = [["nginx"], ["apache2", "httpd"]]


class LecertConfig(BaseModel):
    """Root configuration model.

    Loaded from /etc/lecert/config.yaml. Every field has a default so the
    tool works on a stock certbot install without any config file.
    """

    letsencrypt_dir: Path = DEFAULT_LETSENCRYPT_DIR
    default_email: Optional[str] = None
    acme_server: str = ACME_PRODUCTION_URL

    # Rows expiring in fewer days than this are highlighted
    warning_days: int = 30

    # Subprocess timeouts (seconds)
    registry_timeout: int = 60
    renewal_timeout: int = 1800
    service_timeout: int = 30

    # Groups of alternative unit names; first running member of each group wins
    web_servers: list[list[str]] = Field(
        default_factory=lambda: [list(group) for group in DEFAULT_WEB_SERVERS]
    )

    audit_enabled: bool = True
    audit_log: Path = DEFAULT_AUDIT_LOG

    @field_validator("letsencrypt_dir", "audit_log")
    @classmethod
    def validate_dir(cls, v: Path) -> Path:
        validate_path(str(v))
        return v

    @field_validator("default_email")
    @classmethod
    def validate_default_email(cls, v: Optional[str]) -> Optional[str]:
        if v:
            return validate_email(v)
        return v

    @field_validator("acme_server")
    @classmethod
    def validate_acme_server(cls, v: str) -> str:
        return validate_url(v, require_https=True)

    @field_validator("warning_days")
    @classmethod
    def validate_warning_days(cls, v: int) -> int:
        if v < 0:
            raise ValueError("warning_days must be zero or positive")
        return v

    @field_validator("registry_timeout", "renewal_timeout", "service_timeout")
    @classmethod
    def validate_timeout(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("timeouts must be positive")
        return v

    @field_validator("web_servers")
    @classmethod
    def validate_web_servers(cls, v: list[list[str]]) -> list[list[str]]:
        if any(not group for group in v):
            raise ValueError("web_servers groups must not be empty")
        return v

    @property
    def live_dir(self) -> Path:
        """Directory with one subdirectory per certificate."""
        return self.letsencrypt_dir / "live"

    @property
    def renewal_dir(self) -> Path:
        """Directory with one <name>.conf renewal file per certificate."""
        return self.letsencrypt_dir / "renewal"

    @classmethod
    def load(cls, path: Path) -> "LecertConfig":
        """Load configuration from YAML file.

        Args:
            path: Path to configuration file

        Returns:
            Loaded configuration

        Raises:
            ConfigurationError: If file not found or invalid
        """
        if not path.exists():
            raise ConfigurationError(
                f"Configuration file not found: {path}",
                hint="Create it with: lecert config init",
            )

        try:
            with open(path) as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(
                f"Invalid YAML in configuration file: {path}",
                details=[str(e)],
            ) from e
        except PermissionError:
            raise ConfigurationError(
                f"Cannot read configuration file: {path}",
                hint="Check file permissions or run with sudo",
            )

        if not isinstance(data, dict):
            raise ConfigurationError(
                f"Configuration file must contain a mapping: {path}",
            )

        try:
            return cls(**data)
        except Exception as e:
            raise ConfigurationError(
                f"Invalid configuration: {e}",
                details=[str(e)],
            ) from e

    @classmethod
    def load_or_default(cls, path: Optional[Path] = None) -> "LecertConfig":
        """Load configuration, falling back to defaults if file doesn't exist."""
        if path is None:
            path = DEFAULT_CONFIG_PATH

        if path.exists():
            return cls.load(path)
        return cls()

    def to_yaml(self) -> str:
        """Convert configuration to YAML string."""
        data = self.model_dump(mode="json", exclude_none=True)
        return yaml.dump(data, default_flow_style=False, sort_keys=False)


class EnvironmentSettings(BaseSettings):
    """Overrides loaded from environment variables."""

    letsencrypt_email: Optional[str] = Field(None, alias="LETSENCRYPT_EMAIL")

    class Config:
        extra = "ignore"


class AppConfig:
    """Application configuration combining config file and environment.

    This is the main interface for accessing configuration throughout the app.
    """

    def __init__(
        self,
        config_path: Optional[Path] = None,
        config: Optional[LecertConfig] = None,
    ) -> None:
        """Initialize application configuration.

        Args:
            config_path: Path to config file (uses default if None)
            config: Pre-loaded config (skips file loading if provided)
        """
        self.config_path = config_path or DEFAULT_CONFIG_PATH
        self._config = config or LecertConfig.load_or_default(self.config_path)
        self._env = EnvironmentSettings()

    @property
    def config(self) -> LecertConfig:
        """Get the loaded configuration."""
        return self._config

    @property
    def env(self) -> EnvironmentSettings:
        """Get the environment overrides."""
        return self._env

    @property
    def email(self) -> str:
        """Default ACME email: environment, then config file, then fallback."""
        return (
            self._env.letsencrypt_email
            or self._config.default_email
            or FALLBACK_EMAIL
        )

    @property
    def email_source(self) -> str:
        """Where the default email came from (for display)."""
        if self._env.letsencrypt_email:
            return "LETSENCRYPT_EMAIL"
        if self._config.default_email:
            return "config file"
        return "built-in fallback"


def get_example_config() -> str:
    """Generate example configuration file content."""
    return f"""# lecert configuration
# All settings are optional; defaults match a stock certbot install.

# certbot configuration root (contains live/ and renewal/)
letsencrypt_dir: {DEFAULT_LETSENCRYPT_DIR}

# ACME account email used in renewal commands.
# The LETSENCRYPT_EMAIL environment variable takes precedence.
# default_email: ops@example.com

acme_server: {ACME_PRODUCTION_URL}

# Highlight certificates expiring within this many days
warning_days: 30

# Subprocess timeouts in seconds
registry_timeout: 60
renewal_timeout: 1800   # manual DNS challenges wait for you
service_timeout: 30

# Web servers offered for reload after a successful renewal.
# Each entry is a group of alternative unit names.
web_servers:
  - [nginx]
  - [apache2, httpd]

# JSON-lines audit trail of renewals and reloads
audit_enabled: true
audit_log: {DEFAULT_AUDIT_LOG}
"""


def init_config(path: Path, force: bool = False) -> None:
    """Initialize a new configuration file.

    Args:
        path: Path to create config file
        force: Overwrite if exists

    Raises:
        ConfigurationError: If file exists and force is False
    """
    if path.exists() and not force:
        raise ConfigurationError(
            f"Configuration file already exists: {path}",
            hint="Use --force to overwrite",
        )

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(get_example_config())
    os.chmod(path, 0o600)

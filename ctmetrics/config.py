"""
Centralized configuration for the commercetools metrics job.

Configuration is loaded from environment variables (and a local .env file)
with sensible defaults for everything that is not a credential.

Usage:
    from ctmetrics.config import load_config, validate_config

    cfg = load_config()
    validate_config(cfg)
    graphql_url = cfg.commercetools.graphql_url
"""

import os
from dataclasses import dataclass, field
from typing import List, Optional

from dotenv import load_dotenv

from ctmetrics.exceptions import ConfigurationError

# Load environment variables
load_dotenv()


def _env_flag(name: str) -> bool:
    return os.getenv(name, "").strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class CommercetoolsConfig:
    """commercetools API connection parameters."""

    project_key: str = field(default_factory=lambda: os.getenv("CT_PROJECT_KEY", ""))
    client_id: str = field(default_factory=lambda: os.getenv("CT_CLIENT_ID", ""))
    client_secret: str = field(default_factory=lambda: os.getenv("CT_CLIENT_SECRET", ""))
    auth_url: str = field(default_factory=lambda: os.getenv("CT_AUTH_URL", ""))
    api_url: str = field(default_factory=lambda: os.getenv("CT_API_URL", ""))
    store_key: str = field(default_factory=lambda: os.getenv("CT_STORE_KEY", "kwh"))
    request_timeout: float = 30.0
    token_expiry_margin_seconds: int = 60

    @property
    def token_url(self) -> str:
        return f"{self.auth_url.rstrip('/')}/oauth/token"

    @property
    def graphql_url(self) -> str:
        return f"{self.api_url.rstrip('/')}/{self.project_key}/graphql"


@dataclass(frozen=True)
class JobConfig:
    """Report selection; CLI flags take precedence over these."""

    mode: Optional[str] = field(default_factory=lambda: os.getenv("MODE") or None)
    start_date: Optional[str] = field(default_factory=lambda: os.getenv("START_DATE") or None)
    end_date: Optional[str] = field(default_factory=lambda: os.getenv("END_DATE") or None)
    page_size: int = 500


@dataclass(frozen=True)
class LoggingConfig:
    """Logging output configuration."""

    level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    json_format: bool = field(default_factory=lambda: _env_flag("LOG_JSON"))


@dataclass(frozen=True)
class AppConfig:
    """Main application configuration."""

    version: str = "0.1.0"
    commercetools: CommercetoolsConfig = field(default_factory=CommercetoolsConfig)
    job: JobConfig = field(default_factory=JobConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def load_config() -> AppConfig:
    """Build a fresh config from the current environment."""
    return AppConfig()


# Global config instance
config = AppConfig()

REQUIRED_ENV_VARS = {
    "CT_PROJECT_KEY": "project_key",
    "CT_CLIENT_ID": "client_id",
    "CT_CLIENT_SECRET": "client_secret",
    "CT_AUTH_URL": "auth_url",
    "CT_API_URL": "api_url",
}


def missing_connection_params(cfg: AppConfig) -> List[str]:
    """Names of required environment variables that are unset or blank."""
    return [
        env_name
        for env_name, attr in REQUIRED_ENV_VARS.items()
        if not getattr(cfg.commercetools, attr).strip()
    ]


def validate_config(cfg: Optional[AppConfig] = None) -> None:
    """
    Validate that all required configuration is present.

    Call this on startup to fail fast before any query runs.

    Args:
        cfg: Config to check (defaults to the global instance)

    Raises:
        ConfigurationError: If required configuration is missing
    """
    cfg = cfg or config
    errors = [f"{name} is required but not set" for name in missing_connection_params(cfg)]

    if not cfg.commercetools.store_key.strip():
        errors.append("CT_STORE_KEY must not be blank")

    if cfg.job.page_size <= 0:
        errors.append("page_size must be positive")

    if errors:
        error_msg = "Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
        raise ConfigurationError(error_msg)

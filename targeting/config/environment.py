"""Environment variable loading and validation."""

import os
from typing import Optional

from .exceptions import ConfigurationError

DEFAULT_DATABASE_URL = "sqlite:///./data/targeting.db"

_VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class EnvironmentConfig:
    """Secrets and deployment settings read from the environment."""

    def __init__(
        self,
        meta_access_token: str,
        openai_api_key: Optional[str] = None,
        soprism_api_url: Optional[str] = None,
        soprism_username: Optional[str] = None,
        soprism_password: Optional[str] = None,
        log_level: Optional[str] = None,
        database_url: Optional[str] = None,
    ):
        self.meta_access_token = meta_access_token
        self.openai_api_key = openai_api_key
        self.soprism_api_url = soprism_api_url
        self.soprism_username = soprism_username
        self.soprism_password = soprism_password
        self.log_level = log_level
        self.database_url = database_url or DEFAULT_DATABASE_URL

    @property
    def has_soprism_credentials(self) -> bool:
        return bool(self.soprism_username and self.soprism_password)


def load_environment_config() -> EnvironmentConfig:
    """
    Load and validate environment variables.

    Required:
    - META_ACCESS_TOKEN: Graph API access token used for interest search

    Optional:
    - OPENAI_API_KEY: Needed only when criteria are generated by the language model
    - SOPRISM_API_URL: Overrides soprism.base_url from the config file
    - SOPRISM_USERNAME / SOPRISM_PASSWORD: Export credentials (both or neither)
    - LOG_LEVEL: Override log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    - DATABASE_URL: SQLAlchemy URL (default: sqlite:///./data/targeting.db)

    Returns:
        EnvironmentConfig with validated values

    Raises:
        ConfigurationError: If required variables are missing or invalid
    """
    errors = []

    meta_access_token = (os.getenv("META_ACCESS_TOKEN") or "").strip()
    openai_api_key = os.getenv("OPENAI_API_KEY") or None
    soprism_api_url = os.getenv("SOPRISM_API_URL") or None
    soprism_username = os.getenv("SOPRISM_USERNAME") or None
    soprism_password = os.getenv("SOPRISM_PASSWORD") or None
    log_level = os.getenv("LOG_LEVEL") or None
    database_url = os.getenv("DATABASE_URL") or None

    if not meta_access_token:
        errors.append("Missing required environment variable: META_ACCESS_TOKEN")

    if log_level and log_level.upper() not in _VALID_LOG_LEVELS:
        errors.append(
            f"Invalid LOG_LEVEL: '{log_level}'. Must be one of: {', '.join(_VALID_LOG_LEVELS)}"
        )

    if soprism_username and not soprism_password:
        errors.append(
            "SOPRISM_USERNAME is set but SOPRISM_PASSWORD is not. Both must be set for export."
        )
    elif soprism_password and not soprism_username:
        errors.append(
            "SOPRISM_PASSWORD is set but SOPRISM_USERNAME is not. Both must be set for export."
        )

    if soprism_api_url and not soprism_api_url.startswith(("http://", "https://")):
        errors.append(f"Invalid SOPRISM_API_URL: '{soprism_api_url}'. Must be an http(s) URL.")

    if errors:
        raise ConfigurationError(
            "Environment variable validation failed",
            errors=errors,
            suggestions=[
                "Copy .env.example to .env and fill in your credentials",
                "Generate a Graph API token with ads_read permission for META_ACCESS_TOKEN",
            ],
        )

    return EnvironmentConfig(
        meta_access_token=meta_access_token,
        openai_api_key=openai_api_key,
        soprism_api_url=soprism_api_url.rstrip("/") if soprism_api_url else None,
        soprism_username=soprism_username,
        soprism_password=soprism_password,
        log_level=log_level.upper() if log_level else None,
        database_url=database_url,
    )

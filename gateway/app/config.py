"""
Configuration module for the CentralAuth gateway.

This module uses Pydantic Settings to load and validate environment variables
for the CentralAuth client, the public base URL of this server, session
cookies and logging.

Environment variables are loaded from .env file or system environment.
"""

from functools import lru_cache
from typing import Optional
from urllib.parse import urlparse

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_PORT = 3000


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    The AUTH_* values are handed to a fresh CentralAuth client on every
    request; they are optional here so the server can start (and report
    what is missing) before the organization is configured.
    """

    # =========================================================================
    # Server Configuration
    # =========================================================================

    BASE_URL: str = Field(
        default="http://localhost:3000",
        description="Public base URL of this server (callback and return-to URLs are built from it)",
        min_length=1,
    )

    # =========================================================================
    # CentralAuth Configuration
    # =========================================================================

    AUTH_ORGANIZATION_ID: Optional[str] = Field(
        None,
        description="CentralAuth organization ID, used as the OAuth client ID",
    )

    AUTH_SECRET: Optional[str] = Field(
        None,
        description="CentralAuth organization secret",
    )

    AUTH_BASE_URL: str = Field(
        default="https://centralauth.com",
        description="Base URL of the CentralAuth provider",
        min_length=1,
    )

    AUTH_DEBUG: bool = Field(
        default=True,
        description="Log every CentralAuth client step at INFO level",
    )

    # =========================================================================
    # Session / Logging
    # =========================================================================

    SESSION_SECRET: Optional[str] = Field(
        None,
        description="Key for signing the session cookie (defaults to AUTH_SECRET)",
    )

    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # =========================================================================
    # Computed Properties
    # =========================================================================

    @property
    def base_url(self) -> str:
        """BASE_URL without a trailing slash."""
        return self.BASE_URL.rstrip("/")

    @property
    def auth_base_url(self) -> str:
        return self.AUTH_BASE_URL.rstrip("/")

    @property
    def callback_url(self) -> str:
        """URL the provider redirects back to after login."""
        return f"{self.base_url}/api/auth/callback"

    @property
    def profile_url(self) -> str:
        return f"{self.base_url}/profile"

    @property
    def port(self) -> int:
        """
        Port to listen on, taken from BASE_URL.

        Returns:
            The explicit port of BASE_URL, or 3000 when it has none.
        """
        return urlparse(self.base_url).port or DEFAULT_PORT

    @property
    def session_secret(self) -> Optional[str]:
        return self.SESSION_SECRET or self.AUTH_SECRET

    # =========================================================================
    # Validators
    # =========================================================================

    @field_validator("BASE_URL", "AUTH_BASE_URL")
    @classmethod
    def validate_http_url(cls, v: str) -> str:
        """
        Validate that a URL setting is an absolute http(s) URL.

        Raises:
            ValueError: If the scheme or host is missing
        """
        parsed = urlparse(v)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError(
                f"Invalid URL: '{v}'. Expected format: 'http://host[:port]'"
            )
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        allowed_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

        level = v.upper()
        if level not in allowed_levels:
            raise ValueError(
                f"LOG_LEVEL must be one of {allowed_levels}, got: {v}"
            )

        return level


# =============================================================================
# Settings Singleton
# =============================================================================

@lru_cache()
def get_settings() -> Settings:
    """
    Get or create a singleton Settings instance.

    Cached so the environment is read once per process; also used as a
    FastAPI dependency so tests can override it.

    Raises:
        ValidationError: If an environment variable is invalid.
    """
    return Settings()


# =============================================================================
# Configuration Helpers
# =============================================================================

def validate_configuration(settings: Settings) -> dict:
    """
    Validate the auth configuration and return a status report.

    Missing credentials are errors (every login will fail), but they do not
    stop the server from starting.

    Returns:
        Dictionary with validation status, errors, warnings and a per-variable
        presence map suitable for startup logging.
    """
    errors = []
    warnings = []

    if not settings.AUTH_ORGANIZATION_ID:
        errors.append("AUTH_ORGANIZATION_ID is not set")

    if not settings.AUTH_SECRET:
        errors.append("AUTH_SECRET is not set")

    if not settings.session_secret:
        warnings.append(
            "Neither SESSION_SECRET nor AUTH_SECRET is set; sessions will not survive a restart"
        )

    if settings.base_url.startswith("http://") and "localhost" not in settings.base_url:
        warnings.append("BASE_URL is not HTTPS; session cookies will be sent in clear text")

    return {
        "valid": len(errors) == 0,
        "errors": errors,
        "warnings": warnings,
        "variables": {
            "AUTH_ORGANIZATION_ID": bool(settings.AUTH_ORGANIZATION_ID),
            "AUTH_SECRET": bool(settings.AUTH_SECRET),
            "AUTH_BASE_URL": settings.auth_base_url,
            "BASE_URL": settings.base_url,
        },
    }

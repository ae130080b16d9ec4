"""
Configuration module for the Auth Facade service.

This module uses Pydantic Settings to load and validate environment variables
for the identity provider (Supabase Auth), password-reset redirects,
session cookies, CORS and logging.

Environment variables are loaded from .env file or system environment.
"""

from functools import lru_cache
from typing import List, Optional

from pydantic import Field, HttpUrl, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All configuration for the identity provider, redirect targets,
    cookie forwarding and server behaviour is defined here.
    """

    # =========================================================================
    # Identity Provider (Supabase Auth / GoTrue)
    # =========================================================================

    SUPABASE_URL: HttpUrl = Field(
        ...,
        description="Supabase project URL (e.g., https://xyzcompany.supabase.co)",
    )

    SUPABASE_ANON_KEY: str = Field(
        ...,
        description="Supabase anon (public) API key",
        min_length=1,
    )

    IDENTITY_TIMEOUT_SECONDS: float = Field(
        default=10.0,
        description="Timeout for identity provider requests in seconds",
        gt=0,
        le=120,
    )

    # =========================================================================
    # Redirect Targets
    # =========================================================================

    APP_URL: str = Field(
        default="http://localhost:3000",
        description="Public base URL of the application (password reset links point to {APP_URL}/reset-password)",
        min_length=1,
    )

    OAUTH_REDIRECT_URL: Optional[str] = Field(
        None,
        description="Where the provider sends users after OAuth sign in (omitted when unset)",
    )

    # =========================================================================
    # Session Cookie Forwarding
    # =========================================================================

    ACCESS_TOKEN_COOKIE: str = Field(
        default="sb-access-token",
        description="Cookie name carrying the provider access token",
    )

    REFRESH_TOKEN_COOKIE: str = Field(
        default="sb-refresh-token",
        description="Cookie name carrying the provider refresh token",
    )

    SESSION_COOKIE_SECURE: bool = Field(
        default=True,
        description="Mark session cookies as Secure (disable only for local http development)",
    )

    # =========================================================================
    # Server Configuration
    # =========================================================================

    HOST: str = Field(
        default="0.0.0.0",
        description="Host to bind the service",
    )

    PORT: int = Field(
        default=8080,
        description="Port to bind the service",
        ge=1,
        le=65535,
    )

    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    # =========================================================================
    # CORS Configuration
    # =========================================================================

    ALLOWED_ORIGINS: Optional[str] = Field(
        None,
        description="Comma-separated list of allowed CORS origins (leave empty for no CORS)",
    )

    # =========================================================================
    # Pydantic Settings Configuration
    # =========================================================================

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",  # Ignore extra env vars not defined here
    )

    # =========================================================================
    # Computed Properties
    # =========================================================================

    @property
    def allowed_origins_list(self) -> List[str]:
        """
        Parse and return ALLOWED_ORIGINS as a list.

        Returns:
            List of allowed origin URLs, or empty list if not configured.
        """
        if not self.ALLOWED_ORIGINS:
            return []

        origins = [
            origin.strip()
            for origin in self.ALLOWED_ORIGINS.split(",")
            if origin.strip()
        ]
        return origins

    @property
    def auth_base_url(self) -> str:
        """
        Construct the GoTrue REST base URL for the configured project.

        Returns:
            Auth API base URL without trailing slash.
        """
        return f"{str(self.SUPABASE_URL).rstrip('/')}/auth/v1"

    @property
    def app_url_str(self) -> str:
        """Application base URL without trailing slash."""
        return self.APP_URL.rstrip("/")

    @property
    def password_reset_redirect(self) -> str:
        """Redirect target embedded in password-reset emails."""
        return f"{self.app_url_str}/reset-password"

    # =========================================================================
    # Validators
    # =========================================================================

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """
        Validate LOG_LEVEL is a standard logging level name.

        Raises:
            ValueError: If the level is unknown
        """
        allowed_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

        level = v.upper()
        if level not in allowed_levels:
            raise ValueError(
                f"LOG_LEVEL must be one of {allowed_levels}, got: {v}"
            )

        return level

    @field_validator("APP_URL")
    @classmethod
    def validate_app_url(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError(
                f"Invalid APP_URL: '{v}'. "
                "Expected an absolute http(s) URL"
            )
        return v


# =============================================================================
# Settings Singleton
# =============================================================================

@lru_cache()
def get_settings() -> Settings:
    """
    Get or create a singleton Settings instance.

    This function is cached so that the settings are loaded only once
    during the application lifecycle. Call ``get_settings.cache_clear()``
    to force a reload from the environment.

    Returns:
        Settings instance with all configuration loaded and validated.

    Raises:
        ValidationError: If required environment variables are missing
                        or invalid.

    Example:
        >>> from app.config import get_settings
        >>> settings = get_settings()
        >>> print(settings.auth_base_url)
    """
    return Settings()


# =============================================================================
# Configuration Helpers
# =============================================================================

def validate_configuration(config: Optional[Settings] = None) -> dict:
    """
    Validate critical configuration settings and return a status report.

    This is called during application startup to surface risky
    configuration in the logs.

    Returns:
        Dictionary with validation status and any warnings.

    Example:
        >>> status = validate_configuration()
        >>> if not status["valid"]:
        ...     print(status["errors"])
    """
    config = config or get_settings()
    errors = []
    warnings = []

    # Provider URL
    if config.SUPABASE_URL.scheme != "https":
        if config.SUPABASE_URL.host in ("localhost", "127.0.0.1"):
            warnings.append("SUPABASE_URL points to a local provider over http")
        else:
            errors.append("SUPABASE_URL must use https outside local development")

    # Cookies
    if not config.SESSION_COOKIE_SECURE:
        warnings.append("SESSION_COOKIE_SECURE is disabled (tokens may travel over http)")

    if config.ACCESS_TOKEN_COOKIE == config.REFRESH_TOKEN_COOKIE:
        errors.append("ACCESS_TOKEN_COOKIE and REFRESH_TOKEN_COOKIE must differ")

    # Redirects
    if "localhost" in config.APP_URL or "127.0.0.1" in config.APP_URL:
        warnings.append("APP_URL points to localhost (reset links will not work for real users)")

    return {
        "valid": len(errors) == 0,
        "errors": errors,
        "warnings": warnings,
        "auth_base_url": config.auth_base_url,
        "password_reset_redirect": config.password_reset_redirect,
    }

"""
mailbridge.settings - Centralized Configuration

Single source of truth for all mailbridge configuration.
Loads from .env files and environment variables using pydantic-settings.

Usage:
    >>> from mailbridge.settings import get_settings
    >>> settings = get_settings()
    >>> settings.upstream_timeout_seconds
    30.0
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from mailbridge.integrations.email.postmark import DEFAULT_SENDER_DOMAIN


class MailBridgeSettings(BaseSettings):
    """Centralized mailbridge configuration loaded from .env / environment variables.

    All MAILBRIDGE_* prefixed env vars are loaded automatically.
    Deployment secrets keep their established names (no prefix) via aliases.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="MAILBRIDGE_",
        extra="ignore",
        populate_by_name=True,
    )

    # -- Environment -----------------------------------------------------------
    env: str = "development"

    # -- API Server ------------------------------------------------------------
    api_host: str = "0.0.0.0"
    api_port: int = Field(default=3000, alias="PORT")
    # Shared secret every caller must send as x-api-key
    app_secret_key: str = Field(default="", alias="APP_SECRET_KEY")
    # Comma separated; "*" allows any origin
    allowed_origins: str = Field(default="*", alias="ALLOWED_ORIGINS")

    # -- Logging ---------------------------------------------------------------
    log_level: str = "INFO"

    # -- Upstream providers ----------------------------------------------------
    upstream_timeout_seconds: float = 30.0
    postmark_api_token: str | None = Field(default=None, alias="POSTMARK_API_TOKEN")
    postmark_sender_domain: str = DEFAULT_SENDER_DOMAIN

    # -- Pagination cursor cache -----------------------------------------------
    # None keeps every cursor for the life of the process
    cursor_cache_max_entries: int | None = None

    # -- Validators ------------------------------------------------------------

    @field_validator("cursor_cache_max_entries")
    @classmethod
    def _positive_cache_bound(cls, value: int | None) -> int | None:
        if value is not None and value < 1:
            raise ValueError("cursor_cache_max_entries must be positive")
        return value

    # -- Helpers ---------------------------------------------------------------

    def cors_origins(self) -> list[str]:
        """Return allowed CORS origins as a list."""
        origins = [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]
        return origins or ["*"]


# ---------------------------------------------------------------------------
# Singleton accessor
# ---------------------------------------------------------------------------


@lru_cache(maxsize=1)
def get_settings() -> MailBridgeSettings:
    """Return the cached MailBridgeSettings singleton."""
    return MailBridgeSettings()


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for tests)."""
    get_settings.cache_clear()

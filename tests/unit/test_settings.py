"""
Unit tests for mailbridge.settings - Centralized Configuration

Tests default values, environment variable overrides (prefixed and aliased),
.env file loading, validation, and clear_settings_cache().
"""

from pathlib import Path

import pytest
from pydantic import ValidationError

from mailbridge.settings import MailBridgeSettings, clear_settings_cache, get_settings

# Keys that alias-based fields read from the environment (no MAILBRIDGE_ prefix).
# We strip these during tests so the real env doesn't leak in.
_ALIAS_KEYS = [
    "APP_SECRET_KEY",
    "ALLOWED_ORIGINS",
    "POSTMARK_API_TOKEN",
    "PORT",
]


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch):
    """Clear settings cache and strip deployment env vars so tests are isolated."""
    clear_settings_cache()
    for key in _ALIAS_KEYS:
        monkeypatch.delenv(key, raising=False)
    yield
    clear_settings_cache()


# ============================================================================
# Default Values
# ============================================================================


class TestDefaults:
    def test_default_env(self):
        settings = MailBridgeSettings(_env_file=None)
        assert settings.env == "development"

    def test_default_server(self):
        settings = MailBridgeSettings(_env_file=None)
        assert settings.api_host == "0.0.0.0"
        assert settings.api_port == 3000

    def test_default_upstream(self):
        settings = MailBridgeSettings(_env_file=None)
        assert settings.upstream_timeout_seconds == 30.0
        assert settings.postmark_api_token is None
        assert settings.postmark_sender_domain == "drayinsight.com"

    def test_default_cache_is_unbounded(self):
        assert MailBridgeSettings(_env_file=None).cursor_cache_max_entries is None

    def test_default_cors_allows_any_origin(self):
        assert MailBridgeSettings(_env_file=None).cors_origins() == ["*"]


# ============================================================================
# Environment Overrides
# ============================================================================


class TestEnvOverrides:
    def test_deployment_names_without_prefix(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("APP_SECRET_KEY", "s3cret")
        monkeypatch.setenv("POSTMARK_API_TOKEN", "pm-token")
        monkeypatch.setenv("PORT", "8080")

        settings = MailBridgeSettings(_env_file=None)

        assert settings.app_secret_key == "s3cret"
        assert settings.postmark_api_token == "pm-token"
        assert settings.api_port == 8080

    def test_prefixed_names(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("MAILBRIDGE_UPSTREAM_TIMEOUT_SECONDS", "5")
        monkeypatch.setenv("MAILBRIDGE_CURSOR_CACHE_MAX_ENTRIES", "1000")
        monkeypatch.setenv("MAILBRIDGE_LOG_LEVEL", "DEBUG")

        settings = MailBridgeSettings(_env_file=None)

        assert settings.upstream_timeout_seconds == 5.0
        assert settings.cursor_cache_max_entries == 1000
        assert settings.log_level == "DEBUG"

    def test_allowed_origins_list(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("ALLOWED_ORIGINS", "https://a.example.com, https://b.example.com,")

        settings = MailBridgeSettings(_env_file=None)

        assert settings.cors_origins() == ["https://a.example.com", "https://b.example.com"]

    def test_env_file(self, tmp_path: Path):
        env_file = tmp_path / ".env"
        env_file.write_text("APP_SECRET_KEY=from-file\nMAILBRIDGE_ENV=production\n")

        settings = MailBridgeSettings(_env_file=env_file)

        assert settings.app_secret_key == "from-file"
        assert settings.env == "production"


# ============================================================================
# Validation
# ============================================================================


class TestValidation:
    def test_cache_bound_must_be_positive(self):
        with pytest.raises(ValidationError, match="must be positive"):
            MailBridgeSettings(_env_file=None, cursor_cache_max_entries=0)


# ============================================================================
# Singleton
# ============================================================================


class TestSingleton:
    def test_cached(self):
        assert get_settings() is get_settings()

    def test_clear_settings_cache(self, monkeypatch: pytest.MonkeyPatch):
        first = get_settings()
        monkeypatch.setenv("APP_SECRET_KEY", "rotated")
        clear_settings_cache()

        second = get_settings()

        assert second is not first
        assert second.app_secret_key == "rotated"

"""Tests for settings loaded from the environment."""

from pathlib import Path

import pytest

from accesshub.config import DEFAULT_SECRET_KEY, Settings


class TestFromEnv:
    def test_defaults(self):
        settings = Settings.from_env({})
        assert settings.database_url == "memory://"
        assert settings.secret_key == DEFAULT_SECRET_KEY
        assert settings.environment == "development"
        assert settings.log_level == "INFO"
        assert settings.metadata_path is None
        assert settings.disable_auth is False
        assert settings.cookie_name == "token"
        assert settings.cors_origins == []

    def test_values(self):
        settings = Settings.from_env(
            {
                "DATABASE_URL": "sqlite:///data/app.db",
                "ACCESSHUB_SECRET_KEY": "s" * 40,
                "ACCESSHUB_ENV": "Production",
                "ACCESSHUB_LOG_LEVEL": "debug",
                "ACCESSHUB_METADATA_PATH": "/etc/accesshub",
                "ACCESSHUB_DISABLE_AUTH": "yes",
                "ACCESSHUB_COOKIE_NAME": "sid",
                "ACCESSHUB_COOKIE_SAMESITE": "Lax",
                "ACCESSHUB_CORS_ORIGINS": "http://a.test, http://b.test,",
            }
        )
        assert settings.database_url == "sqlite:///data/app.db"
        assert settings.environment == "production"
        assert settings.log_level == "DEBUG"
        assert settings.metadata_path == Path("/etc/accesshub")
        assert settings.disable_auth is True
        assert settings.cookie_name == "sid"
        assert settings.cookie_samesite == "lax"
        assert settings.cors_origins == ["http://a.test", "http://b.test"]

    def test_production_requires_a_secret(self):
        with pytest.raises(ValueError):
            Settings.from_env({"ACCESSHUB_ENV": "production"})

    @pytest.mark.parametrize("value", ["1", "true", "on", "YES"])
    def test_disable_auth_flag(self, value):
        assert Settings.from_env({"ACCESSHUB_DISABLE_AUTH": value}).disable_auth is True

    def test_disable_auth_off(self):
        assert Settings.from_env({"ACCESSHUB_DISABLE_AUTH": "0"}).disable_auth is False


class TestCookiePolicy:
    def test_lax_outside_production(self):
        assert Settings(environment="development").cookie_samesite == "lax"
        assert Settings(environment="test", production_samesite="strict").cookie_samesite == "lax"

    def test_strict_in_production(self):
        settings = Settings(environment="production")
        assert settings.is_production
        assert settings.cookie_samesite == "strict"

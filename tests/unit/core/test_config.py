"""Unit tests for settings loading and validation."""

import os
from datetime import timedelta
from unittest.mock import patch

import pytest

from chatauth.core.config import get_settings, load_settings, parse_duration
from chatauth.core.exceptions import ConfigError

REQUIRED_ENV = {
    "DATABASE_URL": "postgresql://chat:secret@db:5432/chatapp",
    "REDIS_URL": "redis://cache:6379/0",
    "JWT_SECRET": "access-secret",
    "JWT_REFRESH_SECRET": "refresh-secret",
    "FRONTEND_URL": "https://chat.example.com/",
}


def test_settings_defaults():
    """Test that optional settings fall back to their defaults."""
    with patch.dict(os.environ, REQUIRED_ENV, clear=True):
        settings = load_settings(_env_file=None)

    assert settings.environment == "development"
    assert settings.jwt_expires_in == timedelta(minutes=15)
    assert settings.jwt_refresh_expires_in == timedelta(days=7)
    assert settings.bcrypt_rounds == 12
    assert settings.smtp_port == 587
    assert settings.rate_limit_window_ms == 900000
    assert settings.rate_limit_max_requests == 100
    assert settings.smtp_configured is False
    assert settings.is_development is True


def test_postgres_url_uses_asyncpg_driver():
    with patch.dict(os.environ, REQUIRED_ENV, clear=True):
        settings = load_settings(_env_file=None)

    assert settings.database_url == "postgresql+asyncpg://chat:secret@db:5432/chatapp"


def test_frontend_url_trailing_slash_is_stripped():
    with patch.dict(os.environ, REQUIRED_ENV, clear=True):
        settings = load_settings(_env_file=None)

    assert settings.frontend_url == "https://chat.example.com"


def test_env_override():
    """Test that environment variables override defaults."""
    env = {
        **REQUIRED_ENV,
        "ENVIRONMENT": "production",
        "JWT_EXPIRES_IN": "30m",
        "JWT_REFRESH_EXPIRES_IN": "14d",
        "BCRYPT_ROUNDS": "10",
        "SMTP_HOST": "smtp.example.com",
        "SMTP_PORT": "465",
    }
    with patch.dict(os.environ, env, clear=True):
        settings = load_settings(_env_file=None)

    assert settings.is_production is True
    assert settings.jwt_expires_in == timedelta(minutes=30)
    assert settings.jwt_refresh_expires_in == timedelta(days=14)
    assert settings.bcrypt_rounds == 10
    assert settings.smtp_configured is True
    assert settings.smtp_port == 465


@pytest.mark.parametrize("missing", sorted(REQUIRED_ENV))
def test_missing_required_variable_is_config_error(missing):
    env = {k: v for k, v in REQUIRED_ENV.items() if k != missing}
    with patch.dict(os.environ, env, clear=True):
        with pytest.raises(ConfigError, match=f"{missing} is required"):
            load_settings(_env_file=None)


def test_empty_secret_is_rejected():
    env = {**REQUIRED_ENV, "JWT_SECRET": ""}
    with patch.dict(os.environ, env, clear=True):
        with pytest.raises(ConfigError, match="JWT_SECRET"):
            load_settings(_env_file=None)


def test_shared_secret_is_rejected():
    env = {**REQUIRED_ENV, "JWT_REFRESH_SECRET": REQUIRED_ENV["JWT_SECRET"]}
    with patch.dict(os.environ, env, clear=True):
        with pytest.raises(ConfigError, match="must be different"):
            load_settings(_env_file=None)


def test_invalid_duration_is_rejected():
    env = {**REQUIRED_ENV, "JWT_EXPIRES_IN": "soon"}
    with patch.dict(os.environ, env, clear=True):
        with pytest.raises(ConfigError, match="JWT_EXPIRES_IN"):
            load_settings(_env_file=None)


def test_get_settings_is_cached():
    with patch.dict(os.environ, REQUIRED_ENV, clear=True):
        assert get_settings() is get_settings()


@pytest.mark.parametrize(
    "value, expected",
    [
        ("15m", timedelta(minutes=15)),
        ("7d", timedelta(days=7)),
        ("2h", timedelta(hours=2)),
        ("30s", timedelta(seconds=30)),
        ("3600", timedelta(seconds=3600)),
        (90, timedelta(seconds=90)),
        ("1D", timedelta(days=1)),
    ],
)
def test_parse_duration(value, expected):
    assert parse_duration(value) == expected


def test_parse_duration_rejects_garbage():
    with pytest.raises(ValueError):
        parse_duration("fifteen minutes")

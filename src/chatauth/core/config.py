"""Configuration management for chatauth.

This module uses Pydantic Settings to load and validate configuration from
environment variables and .env files. Configuration is read once at process
start; a missing or invalid required value is a fatal startup error.
"""

import re
from datetime import timedelta
from functools import lru_cache
from typing import Literal

from pydantic import Field, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from chatauth.core.exceptions import ConfigError

_DURATION_PATTERN = re.compile(r"^\s*(\d+)\s*([smhd]?)\s*$", re.IGNORECASE)
_DURATION_UNITS = {"": "seconds", "s": "seconds", "m": "minutes", "h": "hours", "d": "days"}


def parse_duration(value: str | int | float | timedelta) -> timedelta:
    """Parse a duration such as ``15m``, ``7d``, ``3600`` or ``30s``.

    Args:
        value: Duration string, number of seconds, or a timedelta.

    Returns:
        timedelta: The parsed duration.

    Raises:
        ValueError: If the value cannot be interpreted as a duration.
    """
    if isinstance(value, timedelta):
        return value
    if isinstance(value, (int, float)):
        return timedelta(seconds=value)
    match = _DURATION_PATTERN.match(value)
    if match is None:
        raise ValueError(f"Invalid duration: {value!r} (expected e.g. '15m', '7d', '3600')")
    amount, unit = match.groups()
    return timedelta(**{_DURATION_UNITS[unit.lower()]: int(amount)})


class Settings(BaseSettings):
    """Application configuration settings.

    Variable names match the deployment environment (``DATABASE_URL``,
    ``JWT_SECRET`` and so on), so no prefix is applied.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application Settings
    app_name: str = "chatauth"
    environment: Literal["development", "production", "testing"] = "development"

    # Stores
    database_url: str
    redis_url: str
    db_echo: bool = False

    # Token Settings
    jwt_secret: str = Field(..., min_length=1, description="Secret for signing access tokens")
    jwt_refresh_secret: str = Field(
        ..., min_length=1, description="Secret for signing refresh tokens"
    )
    jwt_expires_in: timedelta = timedelta(minutes=15)
    jwt_refresh_expires_in: timedelta = timedelta(days=7)

    # SMTP Settings
    smtp_host: str | None = None
    smtp_port: int = 587
    smtp_user: str | None = None
    smtp_pass: str | None = None
    from_email: str | None = None
    from_name: str = "Secure Chat App"

    # Password hashing cost factor
    bcrypt_rounds: int = Field(default=12, ge=1, le=31)

    # Public base URL used in email links
    frontend_url: str

    # Rate Limiting Settings
    rate_limit_window_ms: int = Field(default=900000, gt=0)
    rate_limit_max_requests: int = Field(default=100, gt=0)

    # Logging Settings
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_format: Literal["json", "console"] = "json"

    @field_validator("jwt_expires_in", "jwt_refresh_expires_in", mode="before")
    @classmethod
    def parse_token_lifetime(cls, v: str | int | timedelta) -> timedelta:
        """Accept ``15m``/``7d`` style durations as well as plain seconds."""
        delta = parse_duration(v)
        if delta.total_seconds() <= 0:
            raise ValueError("Token lifetime must be positive")
        return delta

    @field_validator("database_url")
    @classmethod
    def normalize_database_url(cls, v: str) -> str:
        """Select the async driver for plain Postgres and SQLite URLs."""
        if v.startswith("postgres://"):
            v = "postgresql://" + v[len("postgres://"):]
        if v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        if v.startswith("sqlite://"):
            return v.replace("sqlite://", "sqlite+aiosqlite://", 1)
        return v

    @field_validator("frontend_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @model_validator(mode="after")
    def validate_distinct_secrets(self) -> "Settings":
        """Access and refresh tokens must not share a signing secret."""
        if self.jwt_secret == self.jwt_refresh_secret:
            raise ValueError("JWT_SECRET and JWT_REFRESH_SECRET must be different")
        return self

    @property
    def smtp_configured(self) -> bool:
        """Check if an SMTP relay is configured."""
        return bool(self.smtp_host)

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"

    @property
    def is_testing(self) -> bool:
        """Check if running in testing environment."""
        return self.environment == "testing"


def load_settings(**overrides: object) -> Settings:
    """Load and validate settings, failing fast with a ConfigError.

    Args:
        **overrides: Values that take precedence over the environment.

    Returns:
        Settings: Validated settings instance.

    Raises:
        ConfigError: If a required variable is missing or a value is invalid.
    """
    try:
        return Settings(**overrides)
    except ValidationError as e:
        problems = []
        for error in e.errors():
            name = ".".join(str(part) for part in error["loc"]).upper() or "SETTINGS"
            if error["type"] == "missing":
                problems.append(f"{name} is required")
            else:
                problems.append(f"{name}: {error['msg']}")
        raise ConfigError(
            "Invalid configuration: " + "; ".join(problems)
        ) from e


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Settings are loaded once at startup; call ``get_settings.cache_clear()``
    to force a reload.

    Returns:
        Settings: Cached application settings instance.
    """
    return load_settings()

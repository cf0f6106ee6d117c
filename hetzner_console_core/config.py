"""
Centralized configuration management for the Hetzner console core.

This module provides a unified configuration system with support for:
- Environment variables
- Database connection settings
- Upstream gateway settings
- Session verification settings
- Validation using Pydantic
"""

import os
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator
from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError

from .constants import HETZNER_API_BASE_URL, EnvironmentVariable, LogLevel


def _split_csv(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class DatabaseConfig(BaseModel):
    """Database connection configuration."""

    url: str = Field(
        default_factory=lambda: os.getenv(EnvironmentVariable.DATABASE_URL.value, "sqlite:///:memory:"),
        validate_default=True,
        description="SQLAlchemy URL; bare postgres URLs get the psycopg driver",
    )
    echo: bool = Field(
        default_factory=lambda: os.getenv(EnvironmentVariable.DATABASE_ECHO.value, "false").lower() == "true",
        description="Log emitted SQL",
    )
    pool_size: int = Field(
        default_factory=lambda: int(os.getenv(EnvironmentVariable.DATABASE_POOL_SIZE.value, "5")),
        gt=0,
        description="Connection pool size for server databases",
    )
    max_overflow: int = Field(default=10, ge=0, description="Connections allowed beyond the pool")
    pool_timeout: int = Field(default=30, gt=0, description="Seconds to wait for a pooled connection")

    @field_validator("url")
    def normalize_url(cls, v: str) -> str:
        """Pin PostgreSQL to psycopg and reject unsupported backends."""
        try:
            url = make_url(v)
        except ArgumentError as e:
            raise ValueError(f"Invalid database URL: {e}")

        backend = url.get_backend_name()
        if backend in ("postgres", "postgresql"):
            if not url.host or not url.database:
                raise ValueError("PostgreSQL URL needs a host and a database name")
            url = url.set(drivername="postgresql+psycopg")
        elif backend != "sqlite":
            raise ValueError(f"Unsupported database backend: {backend}")
        return url.render_as_string(hide_password=False)

    @property
    def is_sqlite(self) -> bool:
        return make_url(self.url).get_backend_name() == "sqlite"

    @property
    def is_memory(self) -> bool:
        return self.is_sqlite and make_url(self.url).database in (None, "", ":memory:")

    def __repr__(self) -> str:
        return f"DatabaseConfig(url='{make_url(self.url).render_as_string(hide_password=True)}')"

    __str__ = __repr__


class HetznerConfig(BaseModel):
    """Upstream Hetzner Cloud API configuration."""

    base_url: str = Field(
        default_factory=lambda: os.getenv(
            EnvironmentVariable.HETZNER_API_BASE_URL.value, HETZNER_API_BASE_URL
        ),
        validate_default=True,
        description="Hetzner Cloud API base URL",
    )
    timeout: float = Field(
        default_factory=lambda: float(os.getenv(EnvironmentVariable.HETZNER_API_TIMEOUT.value, "30")),
        description="Request timeout in seconds",
    )
    token_override: str = Field(
        default_factory=lambda: os.getenv(EnvironmentVariable.HETZNER_API_TOKEN.value, ""),
        description="Process-wide API token that takes precedence over stored tokens",
    )
    token_override_scope: List[str] = Field(
        default_factory=lambda: _split_csv(
            os.getenv(EnvironmentVariable.HETZNER_API_TOKEN_SCOPE.value, "")
        ),
        description="Extension instance ids the override applies to (empty means all)",
    )
    validate_token_on_store: bool = Field(
        default=True, description="Check a token against the API before storing it"
    )

    @field_validator("base_url")
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    def override_applies_to(self, owner_id: str) -> bool:
        """Whether the process-wide token override is in effect for an owner."""
        if not self.token_override or not self.token_override.strip():
            return False
        if not self.token_override_scope:
            return True
        return owner_id in self.token_override_scope


class IdentityConfig(BaseModel):
    """Session token verification configuration."""

    extension_id: Optional[str] = Field(
        default_factory=lambda: os.getenv(EnvironmentVariable.EXTENSION_ID.value) or None,
        description="Expected extension id claim",
    )
    extension_secret: Optional[str] = Field(
        default_factory=lambda: os.getenv(EnvironmentVariable.EXTENSION_SECRET.value) or None,
        description="Shared secret for HS256 session tokens",
    )
    jwks_url: Optional[str] = Field(
        default_factory=lambda: os.getenv(EnvironmentVariable.SESSION_JWKS_URL.value) or None,
        description="JWKS endpoint of the identity host",
    )
    algorithms: List[str] = Field(
        default_factory=lambda: ["RS256", "RS384", "RS512", "ES256", "ES384", "ES512"],
        description="Accepted asymmetric algorithms when verifying against the JWKS",
    )
    leeway_seconds: int = Field(default=30, ge=0, description="Clock skew tolerance")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(
        default_factory=lambda: os.getenv(EnvironmentVariable.LOG_LEVEL.value, LogLevel.INFO.value),
        validate_default=True,
        description="Logging level",
    )
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log format string",
    )

    @field_validator("level")
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is valid."""
        valid_levels = {level.value for level in LogLevel}
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v.upper()


class SecurityConfig(BaseModel):
    """Security-related configuration."""

    encryption_key: Optional[str] = Field(
        default_factory=lambda: os.getenv(EnvironmentVariable.ENCRYPTION_KEY.value) or None,
        description="Master key for encrypting stored API tokens",
    )
    kdf_iterations: int = Field(
        default=100_000, gt=0, description="PBKDF2 iterations for per-owner key derivation"
    )


class AppConfig(BaseModel):
    """Main application configuration."""

    environment: str = Field(
        default_factory=lambda: os.getenv(EnvironmentVariable.APP_ENV.value, "development"),
        description="Application environment",
    )
    debug: bool = Field(
        default_factory=lambda: os.getenv(EnvironmentVariable.DEBUG.value, "false").lower() == "true",
        description="Debug mode",
    )

    database: DatabaseConfig = Field(default_factory=DatabaseConfig, description="Database connection")
    hetzner: HetznerConfig = Field(default_factory=HetznerConfig, description="Upstream API")
    identity: IdentityConfig = Field(
        default_factory=IdentityConfig, description="Session verification"
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description="Logging configuration"
    )
    security: SecurityConfig = Field(
        default_factory=SecurityConfig, description="Security configuration"
    )

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Create configuration from environment variables."""
        return cls()


# Global configuration instance
_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = AppConfig.from_env()
    return _config


def set_config(config: AppConfig) -> None:
    """Set the global configuration instance."""
    global _config
    _config = config


def reset_config() -> None:
    """Reset the global configuration instance."""
    global _config
    _config = None

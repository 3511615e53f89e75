"""
Centralized configuration management for the gateway identity core.

This module provides a unified configuration system with support for:
- Environment variables
- Feature flags
- Validation using Pydantic

Configuration is loaded once per process and treated as read-only afterwards.
"""

import os
import re
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator

from .constants import DEFAULT_TOKEN_EXPIRY, EnvironmentVariable, HeaderName, LogLevel

_DURATION_PATTERN = re.compile(r"^\s*(\d+)\s*([smhd]?)\s*$")
_DURATION_UNITS = {"": 1, "s": 1, "m": 60, "h": 3600, "d": 86400}


def parse_duration(value: str) -> int:
    """
    Convert a duration string such as "24h", "30m" or "3600" into seconds.

    Args:
        value: Duration string with an optional s/m/h/d suffix

    Returns:
        Number of seconds

    Raises:
        ValueError: If the value is not a recognised duration
    """
    match = _DURATION_PATTERN.match(str(value))
    if not match:
        raise ValueError(f"Invalid duration: {value!r}")
    amount, unit = match.groups()
    return int(amount) * _DURATION_UNITS[unit]


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() == "true"


class DatabaseConfig(BaseModel):
    """Database connection configuration."""

    connection_string: str = Field(
        default_factory=lambda: os.getenv(
            EnvironmentVariable.DATABASE_URL.value, "sqlite:///./gateway_identity.db"
        ),
        description="Database connection string",
    )
    pool_size: int = Field(default=5, description="Connection pool size")
    max_overflow: int = Field(default=10, description="Maximum overflow connections")
    pool_timeout: int = Field(default=30, description="Pool timeout in seconds")
    echo: bool = Field(default=False, description="Echo SQL statements")


class QueueConfig(BaseModel):
    """Queue configuration for shipping logs to Azure Storage Queues."""

    connection_string: str = Field(
        default_factory=lambda: os.getenv(EnvironmentVariable.AZURE_STORAGE_CONNECTION.value, ""),
        description="Azure Storage connection string",
    )
    logs_queue_name: str = Field(default="logs-queue", description="Logs queue name")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(
        default_factory=lambda: os.getenv(EnvironmentVariable.LOG_LEVEL.value, LogLevel.INFO.value),
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


class CryptoConfig(BaseModel):
    """Secret hashing and symmetric cipher configuration."""

    cipher_key: str = Field(
        default_factory=lambda: os.getenv(
            EnvironmentVariable.CIPHER_KEY.value, "change-this-32-char-key-in-prod!"
        ),
        description="Symmetric cipher key (raw string, length must match the algorithm)",
    )
    cipher_algorithm: str = Field(
        default_factory=lambda: os.getenv(EnvironmentVariable.CIPHER_ALGORITHM.value, "aes-256-cbc"),
        description="Cipher algorithm name",
    )
    salt_rounds: int = Field(
        default_factory=lambda: int(os.getenv(EnvironmentVariable.SALT_ROUNDS.value, "10")),
        description="bcrypt work factor",
    )

    @field_validator("cipher_algorithm")
    def validate_cipher_algorithm(cls, v: str) -> str:
        """Only AES in CBC mode is supported."""
        allowed = {"aes-128-cbc", "aes-192-cbc", "aes-256-cbc"}
        if v.lower() not in allowed:
            raise ValueError(f"Invalid cipher algorithm: {v}. Must be one of {allowed}")
        return v.lower()

    @field_validator("salt_rounds")
    def validate_salt_rounds(cls, v: int) -> int:
        """bcrypt accepts work factors between 4 and 31."""
        if not 4 <= v <= 31:
            raise ValueError(f"salt_rounds must be between 4 and 31, got {v}")
        return v


class JWTConfig(BaseModel):
    """Signed bearer token configuration."""

    secret: str = Field(
        default_factory=lambda: os.getenv(
            EnvironmentVariable.JWT_SECRET.value, "change-this-secret-in-production"
        ),
        description="Token signing secret",
    )
    algorithm: str = Field(default="HS256", description="Token signing algorithm")
    expires_in: str = Field(
        default_factory=lambda: os.getenv(
            EnvironmentVariable.JWT_EXPIRES_IN.value, DEFAULT_TOKEN_EXPIRY
        ),
        description="Token lifetime, e.g. '24h'",
    )

    @field_validator("expires_in")
    def validate_expires_in(cls, v: str) -> str:
        """Reject durations that cannot be parsed."""
        parse_duration(v)
        return v

    @property
    def expires_in_seconds(self) -> int:
        return parse_duration(self.expires_in)


class ApiKeyConfig(BaseModel):
    """API key guard configuration."""

    static_api_key: Optional[str] = Field(
        default_factory=lambda: os.getenv(EnvironmentVariable.API_KEY.value) or None,
        description="Single static key accepted in legacy mode",
    )
    legacy_mode: bool = Field(
        default_factory=lambda: _env_flag(EnvironmentVariable.API_KEY_LEGACY_MODE.value),
        description="Accept the static key for requests without keyId:keySecret",
    )
    header_name: str = Field(default=HeaderName.API_KEY.value, description="Primary key header")
    fallback_header_name: str = Field(
        default=HeaderName.AUTHORIZATION.value, description="Bearer-style fallback header"
    )


class TimeoutConfig(BaseModel):
    """Bounds for calls that leave the event loop."""

    store_seconds: float = Field(
        default_factory=lambda: float(
            os.getenv(EnvironmentVariable.STORE_TIMEOUT_SECONDS.value, "5")
        ),
        description="Timeout for store, oracle and registry calls",
    )
    hash_seconds: float = Field(
        default_factory=lambda: float(
            os.getenv(EnvironmentVariable.HASH_TIMEOUT_SECONDS.value, "10")
        ),
        description="Timeout for adaptive hashing",
    )
    read_retries: int = Field(default=1, description="Transparent retries for idempotent reads")

    @field_validator("store_seconds", "hash_seconds")
    def validate_positive(cls, v: float) -> float:
        """Timeouts must be bounded and positive."""
        if v <= 0:
            raise ValueError("Timeouts must be positive")
        return v


class FeatureFlags(BaseModel):
    """Feature flags for controlling package behavior."""

    enable_logs_queue: bool = Field(default=False, description="Ship logs to an Azure queue")
    store_plaintext_basic_password: bool = Field(
        default=False,
        description="Write the legacy plaintext echo column for BASIC credentials",
    )


class AppConfig(BaseModel):
    """Main application configuration."""

    environment: str = Field(
        default_factory=lambda: os.getenv(EnvironmentVariable.APP_ENV.value, "development"),
        description="Application environment",
    )
    debug: bool = Field(
        default_factory=lambda: _env_flag("DEBUG"),
        description="Debug mode",
    )

    # Sub-configurations
    database: DatabaseConfig = Field(
        default_factory=DatabaseConfig, description="Database configuration"
    )
    queue: QueueConfig = Field(default_factory=QueueConfig, description="Queue configuration")
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description="Logging configuration"
    )
    crypto: CryptoConfig = Field(default_factory=CryptoConfig, description="Crypto configuration")
    jwt: JWTConfig = Field(default_factory=JWTConfig, description="Token configuration")
    api_key: ApiKeyConfig = Field(default_factory=ApiKeyConfig, description="API key guard")
    timeouts: TimeoutConfig = Field(default_factory=TimeoutConfig, description="Call bounds")
    features: FeatureFlags = Field(default_factory=FeatureFlags, description="Feature flags")

    # Custom configuration
    custom: Dict[str, Any] = Field(default_factory=dict, description="Custom configuration values")

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Create configuration from environment variables."""
        return cls()

    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment.lower() in ("production", "prod")


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

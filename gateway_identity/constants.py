"""
Constants and enums for the gateway identity core.

This module centralizes all magic strings and constants used throughout
the package to ensure consistency and maintainability.
"""

from enum import Enum


class LogLevel(str, Enum):
    """Standard logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class EnvironmentVariable(str, Enum):
    """Standard environment variable names."""

    AZURE_STORAGE_CONNECTION = "AzureWebJobsStorage"
    DATABASE_URL = "DATABASE_URL"
    APP_ENV = "APP_ENV"
    LOG_LEVEL = "LOG_LEVEL"
    API_KEY = "API_KEY"
    API_KEY_LEGACY_MODE = "API_KEY_LEGACY_MODE"
    CIPHER_KEY = "CIPHER_KEY"
    CIPHER_ALGORITHM = "CIPHER_ALGORITHM"
    SALT_ROUNDS = "SALT_ROUNDS"
    JWT_SECRET = "JWT_SECRET"
    JWT_EXPIRES_IN = "JWT_EXPIRES_IN"
    STORE_TIMEOUT_SECONDS = "STORE_TIMEOUT_SECONDS"
    HASH_TIMEOUT_SECONDS = "HASH_TIMEOUT_SECONDS"


class HeaderName(str, Enum):
    """Inbound request headers read by the guards."""

    API_KEY = "x-api-key"
    AUTHORIZATION = "authorization"
    REQUEST_ID = "x-request-id"


BEARER_PREFIX = "Bearer "
API_KEY_SEPARATOR = ":"
DEFAULT_SCOPE = "admin"
DEFAULT_UPDATED_BY = "system"
DEFAULT_TOKEN_EXPIRY = "24h"

# Attribute names stored on route handlers by the guard decorators
PUBLIC_ROUTE_ATTR = "__gateway_public__"
ROLES_ROUTE_ATTR = "__gateway_roles__"

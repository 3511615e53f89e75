"""
Enums used across the gateway_identity package.

This module contains enum definitions that are used by multiple modules
to avoid circular import issues.
"""

import enum


class CredentialType(str, enum.Enum):
    """Kinds of credential a consumer can hold."""

    BASIC = "basic-auth"
    KEY = "key-auth"
    JWT = "jwt"
    OAUTH2 = "oauth2"


class ConsumerType(str, enum.Enum):
    """Who owns a credential."""

    USER = "user"
    APP = "app"


class UserRole(str, enum.Enum):
    """Roles a user can carry."""

    ADMIN = "admin"
    USER = "user"

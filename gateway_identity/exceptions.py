"""
Consolidated exception system with error codes, context, and correlation support.

This module provides a unified exception hierarchy for the identity core,
with automatic logging and correlation ID tracking. Every error carries a
stable machine-checkable ``kind`` and never embeds secret values.
"""

import traceback
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

# Correlation ID for the current request; ContextVar follows asyncio tasks
_correlation_id: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)


class ErrorCode(str, Enum):
    """Standardized error codes for API responses."""

    # System errors (1xxx)
    INTERNAL_ERROR = "1000"
    DATABASE_ERROR = "1001"
    CONFIGURATION_ERROR = "1003"
    SECRET_HASHING_FAILED = "1005"
    UNAVAILABLE = "1006"

    # Validation errors (2xxx)
    VALIDATION_FAILED = "2000"
    INVALID_FORMAT = "2001"
    CONSTRAINT_VIOLATION = "2004"

    # Resource errors (3xxx)
    NOT_FOUND = "3000"
    DUPLICATE = "3001"
    CONSUMER_NOT_FOUND = "3006"
    CREDENTIAL_ALREADY_ACTIVE = "3007"

    # Authentication errors (6xxx)
    MISSING_API_KEY = "6001"
    INVALID_API_KEY_FORMAT = "6002"
    INVALID_API_KEY = "6003"
    INVALID_CREDENTIALS = "6004"
    AUTHENTICATION_REQUIRED = "6005"
    INSUFFICIENT_ROLE = "6006"


class BaseError(Exception):
    """Base exception with context, error codes, logging, and error chaining."""

    kind = "Internal"
    retryable = False

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        status_code: int = 500,
        cause: Optional[Exception] = None,
        **context: Any,
    ):
        """
        Initialize base error with rich context.

        Args:
            message: Human-readable error message
            error_code: Standardized error code from ErrorCode enum
            status_code: HTTP status code for API responses
            cause: Original exception that caused this error
            **context: Additional context information (never secrets)
        """
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.cause = cause
        self.timestamp = datetime.now(timezone.utc).isoformat()
        self.error_id = str(uuid.uuid4())
        self.context = context

        correlation_id = get_correlation_id()
        if correlation_id:
            self.context["correlation_id"] = correlation_id

        self.context["error_id"] = self.error_id

        if cause:
            self.context["cause"] = {
                "type": type(cause).__name__,
                "message": str(cause),
                "traceback": traceback.format_exception(type(cause), cause, cause.__traceback__),
            }

        self._log_error()

        super().__init__(message)

    def _log_error(self) -> None:
        """Log error with appropriate level based on status code."""
        # Lazy import to avoid circular dependency at module load time
        from .utils.logger import get_logger

        logger = get_logger()

        log_data = {
            "error_id": self.error_id,
            "error_kind": self.kind,
            "error_code": self.error_code.value,
            "status_code": self.status_code,
            "error_message": self.message,
            "timestamp": self.timestamp,
            "context": {k: v for k, v in self.context.items() if k not in ["cause", "traceback"]},
        }

        if "correlation_id" in self.context:
            log_data["correlation_id"] = self.context["correlation_id"]

        if self.status_code >= 500:
            logger.error(
                f"Error {self.error_code}: {self.message}", extra=log_data, exc_info=self.cause
            )
        elif self.status_code >= 400:
            logger.warning(f"Client error {self.error_code}: {self.message}", extra=log_data)
        else:
            logger.info(f"Error {self.error_code}: {self.message}", extra=log_data)

    def to_dict(
        self, include_cause: bool = False, include_traceback: bool = False
    ) -> Dict[str, Any]:
        """
        Convert to dict for API responses.

        Args:
            include_cause: Include cause information (useful for debugging)
            include_traceback: Include full traceback (only in debug mode)

        Returns:
            Dictionary representation suitable for JSON serialization
        """
        result: Dict[str, Any] = {
            "error": {
                "id": self.error_id,
                "kind": self.kind,
                "code": self.error_code.value,
                "message": self.message,
                "retryable": self.retryable,
                "timestamp": self.timestamp,
                "context": {
                    k: v
                    for k, v in self.context.items()
                    if k not in ["cause", "error_id", "correlation_id"]
                },
            }
        }

        if "correlation_id" in self.context:
            result["error"]["correlation_id"] = self.context["correlation_id"]

        if include_cause and "cause" in self.context:
            result["error"]["cause"] = {
                "type": self.context["cause"]["type"],
                "message": self.context["cause"]["message"],
            }
            if include_traceback:
                result["error"]["cause"]["traceback"] = self.context["cause"]["traceback"]

        return result

    def add_context(self, **kwargs: Any) -> "BaseError":
        """
        Add additional context to the error (fluent interface).

        Returns:
            Self for method chaining
        """
        self.context.update(kwargs)
        return self

    @property
    def error_chain(self) -> List[Exception]:
        """Get the full chain of errors."""
        chain: List[Exception] = [self]
        current = self.cause
        while current:
            chain.append(current)
            current = getattr(current, "cause", None)
        return chain


# Layer-specific base exceptions
class RepositoryError(BaseError):
    """Repository layer errors."""

    kind = "Repository"

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.DATABASE_ERROR,
        status_code: int = 500,
        cause: Optional[Exception] = None,
        **context,
    ):
        """Initialize repository error with database context."""
        super().__init__(message, error_code, status_code, cause, **context)


class ServiceError(BaseError):
    """Service layer errors."""

    kind = "Service"

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        operation: Optional[str] = None,
        cause: Optional[Exception] = None,
        **context,
    ):
        """Initialize service error with operation context."""
        if operation:
            context["operation"] = operation
        super().__init__(message, error_code, 500, cause, **context)


class ValidationError(BaseError):
    """Validation errors."""

    kind = "Validation"

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        error_code: ErrorCode = ErrorCode.VALIDATION_FAILED,
        cause: Optional[Exception] = None,
        **context,
    ):
        """Initialize validation error with field context."""
        if field:
            context["field"] = field
        super().__init__(message, error_code, 400, cause, **context)


class InvalidArgumentError(ValidationError):
    """Raised when a primitive receives an argument it cannot work with."""

    kind = "InvalidArgument"

    def __init__(self, message: str = "Invalid arguments", **kwargs):
        super().__init__(message, error_code=ErrorCode.INVALID_FORMAT, **kwargs)


# ==================== RESOURCE EXCEPTIONS ====================


class NotFoundError(BaseError):
    """Raised when an entity is absent."""

    kind = "NotFound"

    def __init__(self, message: str = "Entity not found", **kwargs):
        super().__init__(message=message, error_code=ErrorCode.NOT_FOUND, status_code=404, **kwargs)


class ConsumerNotFoundError(BaseError):
    """Raised when the user or app named on a credential does not exist."""

    kind = "ConsumerNotFound"

    def __init__(self, message: str = "Consumer not found", **kwargs):
        super().__init__(
            message=message, error_code=ErrorCode.CONSUMER_NOT_FOUND, status_code=404, **kwargs
        )


class CredentialAlreadyActiveError(BaseError):
    """Raised when a consumer already holds an active credential."""

    kind = "CredentialAlreadyActive"

    def __init__(self, message: str = "Credential already exists and is active", **kwargs):
        super().__init__(
            message=message,
            error_code=ErrorCode.CREDENTIAL_ALREADY_ACTIVE,
            status_code=409,
            **kwargs,
        )


# ==================== SECRET / INFRASTRUCTURE EXCEPTIONS ====================


class SecretHashingFailedError(BaseError):
    """Raised when a secret cannot be hashed."""

    kind = "SecretHashingFailed"

    def __init__(self, message: str = "Cannot create secret hash", **kwargs):
        super().__init__(
            message=message,
            error_code=ErrorCode.SECRET_HASHING_FAILED,
            status_code=500,
            **kwargs,
        )


class UnavailableError(BaseError):
    """Raised when a store, registry or hashing call times out or keeps failing."""

    kind = "Unavailable"
    retryable = True

    def __init__(self, message: str = "Service temporarily unavailable", **kwargs):
        super().__init__(
            message=message,
            error_code=ErrorCode.UNAVAILABLE,
            status_code=503,
            **kwargs,
        )


# ==================== AUTHENTICATION / AUTHORIZATION EXCEPTIONS ====================


class UnauthorizedError(BaseError):
    """Base class for authentication failures (HTTP 401)."""

    kind = "Unauthorized"

    def __init__(
        self,
        message: str = "Unauthorized",
        error_code: ErrorCode = ErrorCode.INVALID_CREDENTIALS,
        **kwargs,
    ):
        super().__init__(message=message, error_code=error_code, status_code=401, **kwargs)


class MissingApiKeyError(UnauthorizedError):
    """Raised when no API key header is present."""

    kind = "MissingApiKey"

    def __init__(self, message: str = "API key is required", **kwargs):
        super().__init__(message=message, error_code=ErrorCode.MISSING_API_KEY, **kwargs)


class InvalidApiKeyFormatError(UnauthorizedError):
    """Raised when a presented key is not keyId:keySecret and no legacy key matches."""

    kind = "InvalidApiKeyFormat"

    def __init__(
        self,
        message: str = "Invalid API key format. Expected format: keyId:keySecret",
        **kwargs,
    ):
        super().__init__(message=message, error_code=ErrorCode.INVALID_API_KEY_FORMAT, **kwargs)


class InvalidApiKeyError(UnauthorizedError):
    """Raised for any API key verification failure."""

    kind = "InvalidApiKey"

    def __init__(self, message: str = "Invalid API key", **kwargs):
        super().__init__(message=message, error_code=ErrorCode.INVALID_API_KEY, **kwargs)


class InvalidCredentialsError(UnauthorizedError):
    """Raised when a login or bearer token cannot be verified."""

    kind = "InvalidCredentials"

    def __init__(self, message: str = "Invalid credentials", **kwargs):
        super().__init__(message=message, error_code=ErrorCode.INVALID_CREDENTIALS, **kwargs)


class AuthenticationRequiredError(UnauthorizedError):
    """Raised when an authorization check has no resolvable acting user."""

    kind = "AuthenticationRequired"

    def __init__(self, message: str = "Authentication required", **kwargs):
        super().__init__(message=message, error_code=ErrorCode.AUTHENTICATION_REQUIRED, **kwargs)


class InsufficientRoleError(BaseError):
    """Raised when an authenticated user lacks every required role."""

    kind = "InsufficientRole"

    def __init__(self, message: str = "Insufficient role", **kwargs):
        super().__init__(
            message=message, error_code=ErrorCode.INSUFFICIENT_ROLE, status_code=403, **kwargs
        )


# Factory functions for common error patterns
def not_found(resource_type: str, cause: Optional[Exception] = None, **identifiers) -> NotFoundError:
    """
    Factory for not found errors.

    Args:
        resource_type: Type of resource (e.g., 'Credential', 'User')
        cause: Original exception if any
        **identifiers: Resource identifiers (e.g., credential_id='123')

    Returns:
        Configured NotFoundError instance
    """
    id_parts = [f"{k}={v}" for k, v in identifiers.items()]
    message = f"{resource_type} not found"
    if id_parts:
        message += f": {', '.join(id_parts)}"

    return NotFoundError(message, cause=cause, resource_type=resource_type, **identifiers)


# Correlation ID management
def set_correlation_id(correlation_id: str) -> None:
    """Set the correlation ID for the current request context."""
    _correlation_id.set(correlation_id)


def get_correlation_id() -> Optional[str]:
    """Get the current request's correlation ID."""
    return _correlation_id.get()


def clear_correlation_id() -> None:
    """Clear the current request's correlation ID."""
    _correlation_id.set(None)

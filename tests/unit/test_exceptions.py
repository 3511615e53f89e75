"""
Unit tests for the exception system.
"""

import pytest

from gateway_identity.exceptions import (
    AuthenticationRequiredError,
    BaseError,
    ConsumerNotFoundError,
    CredentialAlreadyActiveError,
    ErrorCode,
    InsufficientRoleError,
    InvalidApiKeyError,
    InvalidApiKeyFormatError,
    InvalidArgumentError,
    InvalidCredentialsError,
    MissingApiKeyError,
    NotFoundError,
    SecretHashingFailedError,
    UnauthorizedError,
    UnavailableError,
    clear_correlation_id,
    get_correlation_id,
    not_found,
    set_correlation_id,
)


class TestErrorKinds:
    """Every error kind has a stable name, code and status."""

    @pytest.mark.parametrize(
        "error_class,kind,code,status",
        [
            (NotFoundError, "NotFound", ErrorCode.NOT_FOUND, 404),
            (ConsumerNotFoundError, "ConsumerNotFound", ErrorCode.CONSUMER_NOT_FOUND, 404),
            (
                CredentialAlreadyActiveError,
                "CredentialAlreadyActive",
                ErrorCode.CREDENTIAL_ALREADY_ACTIVE,
                409,
            ),
            (InvalidCredentialsError, "InvalidCredentials", ErrorCode.INVALID_CREDENTIALS, 401),
            (InvalidApiKeyError, "InvalidApiKey", ErrorCode.INVALID_API_KEY, 401),
            (MissingApiKeyError, "MissingApiKey", ErrorCode.MISSING_API_KEY, 401),
            (InvalidApiKeyFormatError, "InvalidApiKeyFormat", ErrorCode.INVALID_API_KEY_FORMAT, 401),
            (
                AuthenticationRequiredError,
                "AuthenticationRequired",
                ErrorCode.AUTHENTICATION_REQUIRED,
                401,
            ),
            (InsufficientRoleError, "InsufficientRole", ErrorCode.INSUFFICIENT_ROLE, 403),
            (SecretHashingFailedError, "SecretHashingFailed", ErrorCode.SECRET_HASHING_FAILED, 500),
            (UnavailableError, "Unavailable", ErrorCode.UNAVAILABLE, 503),
            (InvalidArgumentError, "InvalidArgument", ErrorCode.INVALID_FORMAT, 400),
        ],
    )
    def test_kind_code_status(self, error_class, kind, code, status):
        error = error_class()

        assert error.kind == kind
        assert error.error_code == code
        assert error.status_code == status
        assert isinstance(error, BaseError)

    def test_api_key_errors_are_unauthorized(self):
        for error_class in (MissingApiKeyError, InvalidApiKeyFormatError, InvalidApiKeyError):
            assert issubclass(error_class, UnauthorizedError)

    def test_only_unavailable_is_retryable(self):
        assert UnavailableError().retryable is True
        assert InvalidApiKeyError().retryable is False

    def test_invalid_api_key_message(self):
        assert InvalidApiKeyError().message == "Invalid API key"

    def test_unauthorized_defaults_to_invalid_credentials(self):
        error = UnauthorizedError()

        assert error.error_code == ErrorCode.INVALID_CREDENTIALS
        assert error.status_code == 401


class TestBaseError:
    def test_to_dict(self):
        error = CredentialAlreadyActiveError(consumer_ref="user-1")

        payload = error.to_dict()["error"]

        assert payload["kind"] == "CredentialAlreadyActive"
        assert payload["code"] == "3007"
        assert payload["retryable"] is False
        assert payload["context"]["consumer_ref"] == "user-1"
        assert "error_id" not in payload["context"]

    def test_cause_only_included_on_request(self):
        error = SecretHashingFailedError(cause=ValueError("boom"))

        assert "cause" not in error.to_dict()["error"]
        assert error.to_dict(include_cause=True)["error"]["cause"]["type"] == "ValueError"

    def test_error_chain(self):
        root = ValueError("root")
        middle = InvalidArgumentError(cause=root)
        top = SecretHashingFailedError(cause=middle)

        assert top.error_chain == [top, middle, root]

    def test_add_context_is_fluent(self):
        error = NotFoundError().add_context(operation_name="find_one")

        assert error.context["operation_name"] == "find_one"


class TestCorrelationId:
    def teardown_method(self):
        clear_correlation_id()

    def test_error_carries_correlation_id(self):
        set_correlation_id("corr-123")

        error = NotFoundError()

        assert error.context["correlation_id"] == "corr-123"
        assert error.to_dict()["error"]["correlation_id"] == "corr-123"

    def test_clear(self):
        set_correlation_id("corr-123")
        clear_correlation_id()

        assert get_correlation_id() is None


class TestFactories:
    def test_not_found(self):
        error = not_found("Credential", credential_id="abc")

        assert isinstance(error, NotFoundError)
        assert error.message == "Credential not found: credential_id=abc"
        assert error.context["credential_id"] == "abc"

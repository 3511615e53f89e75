"""
Unit tests for configuration loading and validation.
"""

import pytest
from pydantic import ValidationError as PydanticValidationError

from gateway_identity.config import (
    AppConfig,
    ApiKeyConfig,
    CryptoConfig,
    JWTConfig,
    LoggingConfig,
    TimeoutConfig,
    get_config,
    parse_duration,
    reset_config,
    set_config,
)


class TestParseDuration:
    @pytest.mark.parametrize(
        "value,expected",
        [("24h", 86400), ("30m", 1800), ("45s", 45), ("2d", 172800), ("3600", 3600), (" 1h ", 3600)],
    )
    def test_valid(self, value, expected):
        assert parse_duration(value) == expected

    @pytest.mark.parametrize("value", ["", "h", "1w", "-1h", "one hour"])
    def test_invalid(self, value):
        with pytest.raises(ValueError):
            parse_duration(value)


class TestCryptoConfig:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("SALT_ROUNDS", raising=False)
        monkeypatch.delenv("CIPHER_ALGORITHM", raising=False)

        config = CryptoConfig()

        assert config.salt_rounds == 10
        assert config.cipher_algorithm == "aes-256-cbc"

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("SALT_ROUNDS", "6")
        monkeypatch.setenv("CIPHER_ALGORITHM", "AES-128-CBC")

        config = CryptoConfig()

        assert config.salt_rounds == 6
        assert config.cipher_algorithm == "aes-128-cbc"

    def test_rejects_unknown_algorithm(self):
        with pytest.raises(PydanticValidationError):
            CryptoConfig(cipher_algorithm="rc4")

    @pytest.mark.parametrize("rounds", [3, 32])
    def test_rejects_out_of_range_rounds(self, rounds):
        with pytest.raises(PydanticValidationError):
            CryptoConfig(salt_rounds=rounds)


class TestJWTConfig:
    def test_default_expiry_is_one_day(self, monkeypatch):
        monkeypatch.delenv("JWT_EXPIRES_IN", raising=False)

        assert JWTConfig().expires_in_seconds == 86400

    def test_rejects_bad_expiry(self):
        with pytest.raises(PydanticValidationError):
            JWTConfig(expires_in="forever")


class TestApiKeyConfig:
    def test_legacy_mode_off_by_default(self, monkeypatch):
        monkeypatch.delenv("API_KEY_LEGACY_MODE", raising=False)
        monkeypatch.delenv("API_KEY", raising=False)

        config = ApiKeyConfig()

        assert config.legacy_mode is False
        assert config.static_api_key is None
        assert config.header_name == "x-api-key"

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("API_KEY", "static-key")
        monkeypatch.setenv("API_KEY_LEGACY_MODE", "true")

        config = ApiKeyConfig()

        assert config.static_api_key == "static-key"
        assert config.legacy_mode is True


class TestOtherSections:
    def test_log_level_normalised(self):
        assert LoggingConfig(level="debug").level == "DEBUG"

    def test_log_level_rejected(self):
        with pytest.raises(PydanticValidationError):
            LoggingConfig(level="LOUD")

    def test_timeouts_must_be_positive(self):
        with pytest.raises(PydanticValidationError):
            TimeoutConfig(store_seconds=0)


class TestGlobalConfig:
    def setup_method(self):
        reset_config()

    def teardown_method(self):
        reset_config()

    def test_get_config_is_cached(self):
        assert get_config() is get_config()

    def test_set_and_reset(self):
        custom = AppConfig(environment="production")
        set_config(custom)

        assert get_config() is custom
        assert get_config().is_production()

        reset_config()
        assert get_config() is not custom

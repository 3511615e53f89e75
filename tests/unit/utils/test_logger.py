"""
Unit tests for logger utilities.
"""

import logging
from unittest.mock import Mock, patch

import pytest

from gateway_identity.exceptions import clear_correlation_id, set_correlation_id
from gateway_identity.utils import logger as logger_module
from gateway_identity.utils.logger import (
    AzureQueueHandler,
    ContextAwareLogger,
    RequestContextFilter,
    configure_logging,
    get_logger,
    mask_sensitive,
)


class TestMaskSensitive:
    def test_masks_secret_like_keys(self):
        masked = mask_sensitive(
            {
                "password": "p",
                "key_secret_hash": "h",
                "access_token": "t",
                "api_key": "k",
                "credential_id": "abc",
            }
        )

        assert masked == {
            "password": "***",
            "key_secret_hash": "***",
            "access_token": "***",
            "api_key": "***",
            "credential_id": "abc",
        }

    def test_masks_nested(self):
        assert mask_sensitive({"context": {"secret": "x", "scope": "admin"}}) == {
            "context": {"secret": "***", "scope": "admin"}
        }

    def test_none_values_left_alone(self):
        assert mask_sensitive({"password": None}) == {"password": None}


class TestContextAwareLogger:
    def setup_method(self):
        self.mock_logger = Mock(spec=logging.Logger)
        self.context_logger = ContextAwareLogger(self.mock_logger)

    def test_no_extras(self):
        self.context_logger.info("Test message")

        self.mock_logger.info.assert_called_once_with("Test message", extra={})

    def test_extras_formatted_into_message(self):
        self.context_logger.warning("Rejected", extra={"key_id": "k1", "scope": "admin"})

        self.mock_logger.warning.assert_called_once_with(
            "Rejected | key_id=k1 | scope=admin", extra={"key_id": "k1", "scope": "admin"}
        )

    def test_secrets_never_reach_the_logger(self):
        self.context_logger.error("Failed", extra={"secret": "s3cr3t"})

        message = self.mock_logger.error.call_args.args[0]
        assert "s3cr3t" not in message
        assert self.mock_logger.error.call_args.kwargs["extra"] == {"secret": "***"}

    def test_passes_exc_info_through(self):
        self.context_logger.error("Failed", exc_info=True)

        self.mock_logger.error.assert_called_once_with("Failed", extra={}, exc_info=True)

    def test_set_level(self):
        self.context_logger.set_level(logging.DEBUG)

        self.mock_logger.setLevel.assert_called_once_with(logging.DEBUG)


class TestRequestContextFilter:
    def teardown_method(self):
        clear_correlation_id()

    def test_adds_correlation_id(self):
        set_correlation_id("corr-1")
        record = logging.LogRecord("test", logging.INFO, __file__, 1, "msg", None, None)

        assert RequestContextFilter().filter(record) is True
        assert record.correlation_id == "corr-1"


class TestAzureQueueHandler:
    def test_without_connection_string_buffers_only(self):
        handler = AzureQueueHandler(queue_name="logs", connection_string="", batch_size=10)
        record = logging.LogRecord("test", logging.INFO, __file__, 1, "hello", None, None)

        handler.emit(record)
        handler.flush()

        assert handler.log_buffer[0]["message"] == "hello"

    @patch("gateway_identity.utils.logger.QueueClient")
    @patch("gateway_identity.utils.logger.QueueServiceClient")
    def test_flush_sends_masked_entries(self, mock_service_client, mock_queue_client):
        mock_service_client.from_connection_string.return_value.list_queues.return_value = []
        queue = mock_queue_client.from_connection_string.return_value

        handler = AzureQueueHandler(
            queue_name="logs", connection_string="UseDevelopmentStorage=true", batch_size=1
        )
        record = logging.LogRecord("test", logging.INFO, __file__, 1, "hello", None, None)
        record.password = "p"

        handler.emit(record)

        queue.send_message.assert_called_once()
        sent = queue.send_message.call_args.args[0]
        assert '"password": "***"' in sent
        assert handler.log_buffer == []


class TestGetLogger:
    def test_returns_context_aware_logger(self):
        with patch.object(logger_module, "_function_logger", None):
            logger = get_logger()

        assert isinstance(logger, ContextAwareLogger)
        assert logger.logger.name == "gateway_identity"

    @pytest.mark.parametrize("level", ["DEBUG", logging.WARNING])
    def test_accepts_level(self, level):
        with patch.object(logger_module, "_function_logger", None):
            logger = get_logger(level)

        assert logger.logger.level == (logging.DEBUG if level == "DEBUG" else logging.WARNING)


class TestConfigureLogging:
    def test_console_only(self, app_config):
        with patch.object(logger_module, "_function_logger", None):
            logger = configure_logging("credentials-api", log_level="DEBUG", enable_queue=False)

            assert get_logger() is logger

        assert logger.logger.name == "function.credentials-api"
        assert logger.logger.level == logging.DEBUG
        assert len(logger.logger.handlers) == 1

    def test_queue_handler_added(self, app_config):
        with patch.object(logger_module, "_function_logger", None):
            logger = configure_logging(
                "credentials-api", enable_queue=True, queue_name="logs", connection_string=""
            )

        assert any(isinstance(h, AzureQueueHandler) for h in logger.logger.handlers)

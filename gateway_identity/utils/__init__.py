"""Utility modules for the gateway identity core."""

from .json_utils import dumps, loads
from .logger import (
    AzureQueueHandler,
    ContextAwareLogger,
    configure_logging,
    get_logger,
    mask_sensitive,
)
from .secret_codec import SecretCodec, constant_time_equals

__all__ = [
    # JSON
    "dumps",
    "loads",
    # Logging utilities
    "ContextAwareLogger",
    "AzureQueueHandler",
    "configure_logging",
    "get_logger",
    "mask_sensitive",
    # Secrets
    "SecretCodec",
    "constant_time_equals",
]

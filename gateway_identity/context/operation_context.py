"""
Operation context for handling cross-cutting concerns.

This module provides context management for operations including logging
and error enrichment. The ``operation`` decorator works on both plain and
``async`` callables.
"""

import asyncio
import logging
import time
import uuid
from contextlib import contextmanager
from functools import wraps
from typing import Any, Callable, Dict, Optional, TypeVar, Union

from ..exceptions import BaseError, get_correlation_id, set_correlation_id
from ..utils.logger import ContextAwareLogger, get_logger


class OperationContext:
    """Context for a specific operation."""

    def __init__(self, operation_name: str, correlation_id: Optional[str] = None, **context):
        self.operation_name = operation_name
        self.operation_id = str(uuid.uuid4())

        # Use provided correlation_id or get from context or generate new one
        self.correlation_id = correlation_id or get_correlation_id() or str(uuid.uuid4())
        set_correlation_id(self.correlation_id)

        self.context = context
        self.context["operation_id"] = self.operation_id
        self.context["correlation_id"] = self.correlation_id

        self.start_time = time.time()
        self.metrics: Dict[str, Union[int, float]] = {}

    @property
    def duration_ms(self) -> float:
        """Get the operation duration in milliseconds."""
        return (time.time() - self.start_time) * 1000

    def add_context(self, **kwargs) -> None:
        self.context.update(kwargs)

    def add_metric(self, name: str, value: Union[int, float]) -> None:
        self.metrics[name] = value


class OperationHandler:
    """Handles operation logging and error enrichment."""

    def __init__(self, logger: Optional[Union[logging.Logger, ContextAwareLogger]] = None):
        self.logger = logger if logger is not None else get_logger()

    @contextmanager
    def operation(self, name: str, **context):
        """Context manager for operations."""
        op_ctx = OperationContext(name, **context)

        self.logger.debug(
            f"ENTER: {name}",
            extra={
                **context,
                "operation_id": op_ctx.operation_id,
                "correlation_id": op_ctx.correlation_id,
            },
        )

        try:
            yield op_ctx

            self.logger.info(
                f"EXIT: {name}",
                extra={
                    **context,
                    "operation_id": op_ctx.operation_id,
                    "correlation_id": op_ctx.correlation_id,
                    "duration_ms": round(op_ctx.duration_ms, 2),
                    "status": "success",
                    **op_ctx.metrics,
                },
            )

        except BaseError as e:
            # BaseError already logged itself; add where it happened
            e.add_context(
                operation_name=name,
                operation_id=op_ctx.operation_id,
                operation_duration_ms=round(op_ctx.duration_ms, 2),
            )

            log = self.logger.error if e.status_code >= 500 else self.logger.warning
            log(
                f"ERROR: {name} -> {e.kind}",
                extra={
                    **context,
                    "operation_id": op_ctx.operation_id,
                    "correlation_id": op_ctx.correlation_id,
                    "duration_ms": round(op_ctx.duration_ms, 2),
                    "error_id": e.error_id,
                    "error_code": e.error_code.value,
                    "status": "error",
                },
            )
            raise

        except Exception as e:
            self.logger.exception(
                f"ERROR: {name} -> {type(e).__name__}",
                extra={
                    **context,
                    "operation_id": op_ctx.operation_id,
                    "correlation_id": op_ctx.correlation_id,
                    "duration_ms": round(op_ctx.duration_ms, 2),
                    "error_type": type(e).__name__,
                    "status": "error",
                },
            )
            raise


F = TypeVar("F", bound=Callable[..., Any])


def _operation_name(func: Callable, args: tuple, name: Optional[str]) -> str:
    if name is not None:
        return name
    op_name = func.__name__
    if args and hasattr(args[0], func.__name__):
        op_name = f"{args[0].__class__.__name__}.{op_name}"
    return f"{func.__module__.split('.')[-1]}.{op_name}"


def operation(name: Optional[str] = None):
    """
    Decorator for operations.

    Arguments are never logged; they routinely carry secrets.

    Args:
        name: Optional operation name. If not provided, one is built from the
              module, class and function names.
    """

    def decorator(func: F) -> F:
        if asyncio.iscoroutinefunction(func):

            @wraps(func)
            async def async_wrapper(*args, **kwargs) -> Any:
                op_name = _operation_name(func, args, name)
                with OperationHandler().operation(op_name, source_module=func.__module__):
                    return await func(*args, **kwargs)

            return async_wrapper  # type: ignore[return-value]

        @wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            op_name = _operation_name(func, args, name)
            with OperationHandler().operation(op_name, source_module=func.__module__):
                return func(*args, **kwargs)

        return wrapper  # type: ignore[return-value]

    return decorator

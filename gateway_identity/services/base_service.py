"""
Base service implementation with common functionality for all services.

Store, registry and hashing calls are blocking, so services run them on a
worker thread under a timeout. Reads that fail for infrastructure reasons are
retried; writes never are.
"""

import asyncio
from typing import Callable, Optional, TypeVar

from ..config import TimeoutConfig, get_config
from ..exceptions import ErrorCode, RepositoryError, UnavailableError
from ..utils.logger import get_logger

T = TypeVar("T")

# Repository failures that say nothing about the request itself
INFRASTRUCTURE_CODES = frozenset({ErrorCode.DATABASE_ERROR, ErrorCode.INTERNAL_ERROR})


class BoundedCall:
    """Runs blocking callables off the event loop with a timeout."""

    def __init__(self, timeouts: Optional[TimeoutConfig] = None):
        self.timeouts = timeouts or get_config().timeouts
        self.logger = get_logger()

    async def _run(self, label: str, timeout: float, fn: Callable[..., T], *args, **kwargs) -> T:
        try:
            return await asyncio.wait_for(asyncio.to_thread(fn, *args, **kwargs), timeout)
        except asyncio.TimeoutError as e:
            raise UnavailableError(
                f"{label} timed out",
                cause=e,
                call=label,
                timeout_seconds=timeout,
            ) from e

    async def read(self, label: str, fn: Callable[..., T], *args, **kwargs) -> T:
        """
        Idempotent store or registry read.

        Raises:
            UnavailableError: If every attempt timed out or hit a store error
        """
        attempts = self.timeouts.read_retries + 1
        last_error: Optional[Exception] = None

        for attempt in range(1, attempts + 1):
            try:
                return await self._run(label, self.timeouts.store_seconds, fn, *args, **kwargs)
            except (UnavailableError, RepositoryError) as e:
                last_error = e
                if attempt < attempts:
                    self.logger.warning(
                        f"{label} failed, retrying",
                        extra={"call": label, "attempt": attempt, "error_kind": e.kind},
                    )

        if isinstance(last_error, UnavailableError):
            raise last_error
        raise UnavailableError(
            f"{label} failed after {attempts} attempts",
            cause=last_error,
            call=label,
            attempts=attempts,
        ) from last_error

    async def _run_once(self, label: str, timeout: float, fn: Callable[..., T], *args, **kwargs) -> T:
        try:
            return await self._run(label, timeout, fn, *args, **kwargs)
        except RepositoryError as e:
            if e.error_code not in INFRASTRUCTURE_CODES:
                raise
            raise UnavailableError(f"{label} failed", cause=e, call=label) from e

    async def write(self, label: str, fn: Callable[..., T], *args, **kwargs) -> T:
        """
        Store write. Never retried; a timeout leaves the outcome unknown.

        Raises:
            UnavailableError: On timeout or a store failure
            RepositoryError: For duplicates and constraint violations
        """
        return await self._run_once(label, self.timeouts.store_seconds, fn, *args, **kwargs)

    async def hash(self, label: str, fn: Callable[..., T], *args, **kwargs) -> T:
        """CPU-bound hashing or verification."""
        return await self._run_once(label, self.timeouts.hash_seconds, fn, *args, **kwargs)


class BaseService:
    """Base service holding the logger and the call bounds."""

    def __init__(self, bounded: Optional[BoundedCall] = None):
        self.bounded = bounded or BoundedCall()
        self.logger = get_logger()

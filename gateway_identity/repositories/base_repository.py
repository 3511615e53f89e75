"""
Base repository implementation with common functionality for all repositories.

Repositories are synchronous and open one short-lived session per call through
the DatabaseManager; they return pydantic schemas, never ORM rows, so nothing
bound to a closed session escapes.
"""

from typing import Any, NoReturn, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..db.db_config import DatabaseManager, get_db_manager
from ..exceptions import BaseError, ErrorCode, RepositoryError
from ..utils.logger import get_logger


class BaseRepository:
    """Base repository with shared session handling and error mapping."""

    entity_name = "Entity"

    def __init__(self, db_manager: Optional[DatabaseManager] = None):
        """
        Initialize the base repository.

        Args:
            db_manager: Database manager; defaults to the global one
        """
        self.db_manager = db_manager or get_db_manager()
        self.logger = get_logger()

    def _on_integrity_error(self, e: IntegrityError, error_context: dict) -> None:
        """Hook for subclasses to translate known constraint violations."""

    def _handle_db_error(
        self,
        e: Exception,
        operation_name: str,
        entity_id: Optional[str] = None,
        **context: Any,
    ) -> NoReturn:
        """
        Map database errors onto the error hierarchy.

        Raises:
            BaseError: Unchanged if already one of ours
            RepositoryError: With an appropriate error code and context
        """
        if isinstance(e, BaseError):
            raise e

        error_context = {
            "operation_name": operation_name,
            "entity_type": self.entity_name,
            **context,
        }
        if entity_id:
            error_context["entity_id"] = entity_id

        if isinstance(e, IntegrityError):
            self._on_integrity_error(e, error_context)

            error_message = str(e.orig).lower() if getattr(e, "orig", None) else str(e).lower()
            if "unique" in error_message or "duplicate" in error_message:
                raise RepositoryError(
                    f"Duplicate {self.entity_name}",
                    error_code=ErrorCode.DUPLICATE,
                    status_code=409,
                    cause=e,
                    **error_context,
                ) from e

            raise RepositoryError(
                f"Database constraint violation for {self.entity_name}",
                error_code=ErrorCode.CONSTRAINT_VIOLATION,
                status_code=400,
                cause=e,
                **error_context,
            ) from e

        if isinstance(e, SQLAlchemyError):
            raise RepositoryError(
                f"Database error for {self.entity_name}",
                error_code=ErrorCode.DATABASE_ERROR,
                cause=e,
                **error_context,
            ) from e

        raise RepositoryError(
            f"Unexpected error in {operation_name}",
            error_code=ErrorCode.INTERNAL_ERROR,
            cause=e,
            **error_context,
        ) from e

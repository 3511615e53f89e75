"""
Credential store adapter.

Maps between the ``credentials`` table and ``StoredCredential`` schemas. The
type-specific secret columns are folded into the tagged secret union on read
and unfolded into their own columns on write.
"""

from typing import Any, Dict, List, Optional

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError

from ..db.db_credential_models import Credential
from ..enums import ConsumerType, CredentialType
from ..exceptions import CredentialAlreadyActiveError
from ..schemas.credential_schemas import (
    BasicSecret,
    JwtSecret,
    KeySecret,
    OAuth2Secret,
    StoredCredential,
)
from .base_repository import BaseRepository

# Indexes/columns whose violation means "consumer already has an active credential"
_ACTIVE_UNIQUE_MARKERS = (
    "uq_credentials_active_consumer",
    "uq_credentials_active_app",
    "credentials.consumer_id",
    "credentials.app_id",
)

# Columns an update is allowed to touch
_UPDATABLE_COLUMNS = {
    "scope",
    "is_active",
    "updated_by",
    "password",
    "password_hash",
    "key_secret_hash",
    "secret_hash",
}


def _secret_from_row(row: Credential):
    kind = CredentialType(row.type)
    if kind == CredentialType.BASIC:
        return BasicSecret(password_hash=row.password_hash, password=row.password)
    if kind == CredentialType.KEY:
        return KeySecret(key_id=row.key_id, key_secret_hash=row.key_secret_hash)
    if kind == CredentialType.JWT:
        return JwtSecret(secret_hash=row.secret_hash)
    return OAuth2Secret(secret_hash=row.secret_hash)


def _secret_columns(secret) -> Dict[str, Any]:
    if isinstance(secret, BasicSecret):
        return {"password_hash": secret.password_hash, "password": secret.password}
    if isinstance(secret, KeySecret):
        return {"key_id": secret.key_id, "key_secret_hash": secret.key_secret_hash}
    return {"secret_hash": secret.secret_hash}


def to_stored(row: Credential) -> StoredCredential:
    """Convert an ORM row to the unredacted internal schema."""
    return StoredCredential(
        id=row.id,
        consumer_type=ConsumerType(row.consumer_type),
        consumer_id=row.consumer_id,
        app_id=row.app_id,
        scope=row.scope,
        is_active=bool(row.is_active),
        secret=_secret_from_row(row),
        created_at=row.created_at,
        updated_at=row.updated_at,
        updated_by=row.updated_by,
    )


class CredentialRepository(BaseRepository):
    """Persistence for credentials. Every method opens and closes its own session."""

    entity_name = "Credential"

    def _on_integrity_error(self, e: IntegrityError, error_context: dict) -> None:
        error_message = str(e.orig).lower() if getattr(e, "orig", None) else str(e).lower()
        if any(marker in error_message for marker in _ACTIVE_UNIQUE_MARKERS):
            raise CredentialAlreadyActiveError(cause=e, **error_context) from e

    def save(self, record: StoredCredential) -> StoredCredential:
        """
        Insert a new credential with all of its columns in one transaction.

        Raises:
            CredentialAlreadyActiveError: If the consumer gained an active credential concurrently
            RepositoryError: If the insert fails for any other reason
        """
        try:
            with self.db_manager.session_scope() as session:
                row = Credential(
                    id=record.id,
                    consumer_type=record.consumer_type.value,
                    consumer_id=record.consumer_id,
                    app_id=record.app_id,
                    type=record.type.value,
                    scope=record.scope,
                    is_active=record.is_active,
                    updated_by=record.updated_by,
                    **_secret_columns(record.secret),
                )
                session.add(row)
                session.flush()
                session.refresh(row)
                stored = to_stored(row)

            self.logger.info(
                "Credential saved",
                extra={
                    "credential_id": stored.id,
                    "credential_type": stored.type.value,
                    "consumer_type": stored.consumer_type.value,
                },
            )
            return stored
        except Exception as e:
            self._handle_db_error(e, "save", record.id)

    def update(self, credential_id: str, changes: Dict[str, Any]) -> Optional[StoredCredential]:
        """
        Apply column changes to an existing credential.

        Returns:
            The updated record, or None if no credential has that id
        """
        unknown = set(changes) - _UPDATABLE_COLUMNS
        if unknown:
            raise ValueError(f"Columns cannot be updated: {sorted(unknown)}")

        try:
            with self.db_manager.session_scope() as session:
                row = session.get(Credential, credential_id)
                if row is None:
                    return None
                for column, value in changes.items():
                    setattr(row, column, value)
                session.flush()
                session.refresh(row)
                stored = to_stored(row)

            self.logger.info(
                "Credential updated",
                extra={"credential_id": credential_id, "changed_fields": sorted(changes)},
            )
            return stored
        except Exception as e:
            self._handle_db_error(e, "update", credential_id)

    def find_by_id(self, credential_id: str) -> Optional[StoredCredential]:
        try:
            with self.db_manager.session_scope() as session:
                row = session.get(Credential, credential_id)
                return to_stored(row) if row is not None else None
        except Exception as e:
            self._handle_db_error(e, "find_by_id", credential_id)

    def find_by_consumer_id(self, consumer_ref: str) -> Optional[StoredCredential]:
        """
        Find the credential held by a user or app.

        The active credential is preferred; otherwise the most recently
        created one is returned.
        """
        try:
            with self.db_manager.session_scope() as session:
                row = (
                    session.query(Credential)
                    .filter(
                        or_(
                            Credential.consumer_id == consumer_ref,
                            Credential.app_id == consumer_ref,
                        )
                    )
                    .order_by(Credential.is_active.desc(), Credential.created_at.desc())
                    .first()
                )
                return to_stored(row) if row is not None else None
        except Exception as e:
            self._handle_db_error(e, "find_by_consumer_id", consumer_ref=consumer_ref)

    def find_all(self) -> List[StoredCredential]:
        try:
            with self.db_manager.session_scope() as session:
                rows = session.query(Credential).order_by(Credential.created_at).all()
                return [to_stored(row) for row in rows]
        except Exception as e:
            self._handle_db_error(e, "find_all")

    def find_all_active_by_type(self, credential_type: CredentialType) -> List[StoredCredential]:
        try:
            with self.db_manager.session_scope() as session:
                rows = (
                    session.query(Credential)
                    .filter(
                        Credential.type == CredentialType(credential_type).value,
                        Credential.is_active.is_(True),
                    )
                    .all()
                )
                return [to_stored(row) for row in rows]
        except Exception as e:
            self._handle_db_error(e, "find_all_active_by_type", credential_type=str(credential_type))

"""
Service for issuing and managing consumer credentials.

Lifecycle: nonexistent -> active -> inactive. Inactive credentials are kept
for audit; nothing is ever hard-deleted. Every value handed back to callers
is a redacted ``CredentialRead``; unredacted records are reserved for the
guards through the ``find_by_consumer_id`` / ``find_active_by_type`` helpers.
"""

import uuid
from typing import Any, Dict, List, Optional

from ..config import AppConfig, get_config
from ..constants import DEFAULT_UPDATED_BY
from ..context.operation_context import operation
from ..enums import ConsumerType, CredentialType
from ..exceptions import (
    BaseError,
    ConsumerNotFoundError,
    CredentialAlreadyActiveError,
    SecretHashingFailedError,
    not_found,
)
from ..repositories.consumer_repository import ConsumerRegistry
from ..repositories.credential_repository import CredentialRepository
from ..schemas.credential_schemas import (
    BasicSecret,
    CredentialCreate,
    CredentialRead,
    CredentialUpdate,
    JwtSecret,
    KeySecret,
    OAuth2Secret,
    StoredCredential,
)
from ..utils.secret_codec import SecretCodec
from .base_service import BaseService, BoundedCall


class CredentialService(BaseService):
    """Credential lifecycle across the BASIC, KEY, JWT and OAUTH2 kinds."""

    def __init__(
        self,
        repository: CredentialRepository,
        consumers: ConsumerRegistry,
        codec: SecretCodec,
        config: Optional[AppConfig] = None,
        bounded: Optional[BoundedCall] = None,
    ):
        self.config = config or get_config()
        super().__init__(bounded or BoundedCall(self.config.timeouts))
        self.repository = repository
        self.consumers = consumers
        self.codec = codec

    # ==================== INTERNAL HELPERS ====================

    async def _hash_secret(self, secret: str) -> str:
        try:
            hashed = await self.bounded.hash("codec.hash", self.codec.hash, secret)
        except BaseError as e:
            if e.retryable:
                raise
            raise SecretHashingFailedError(cause=e) from e
        except ValueError as e:
            raise SecretHashingFailedError(cause=e) from e

        if not hashed:
            raise SecretHashingFailedError()
        return hashed

    def _build_secret(self, credential_type: CredentialType, plain: str, hashed: str):
        if credential_type == CredentialType.BASIC:
            echo = plain if self.config.features.store_plaintext_basic_password else None
            return BasicSecret(password_hash=hashed, password=echo)
        if credential_type == CredentialType.KEY:
            return KeySecret(key_id=str(uuid.uuid4()), key_secret_hash=hashed)
        if credential_type == CredentialType.JWT:
            return JwtSecret(secret_hash=hashed)
        return OAuth2Secret(secret_hash=hashed)

    def _secret_changes(self, stored: StoredCredential, plain: str, hashed: str) -> Dict[str, Any]:
        secret = stored.secret
        if isinstance(secret, BasicSecret):
            echo = plain if self.config.features.store_plaintext_basic_password else None
            return {"password_hash": hashed, "password": echo}
        if isinstance(secret, KeySecret):
            return {"key_secret_hash": hashed}
        return {"secret_hash": hashed}

    async def _load(self, credential_id: str) -> StoredCredential:
        stored = await self.bounded.read(
            "credentials.find_by_id", self.repository.find_by_id, credential_id
        )
        if stored is None:
            raise not_found("Credential", credential_id=credential_id)
        return stored

    async def _ensure_no_active_credential(
        self, consumer_ref: str, excluding_id: Optional[str] = None
    ) -> None:
        current = await self.bounded.read(
            "credentials.find_by_consumer_id", self.repository.find_by_consumer_id, consumer_ref
        )
        if current is not None and current.is_active and current.id != excluding_id:
            raise CredentialAlreadyActiveError(consumer_ref=consumer_ref)

    # ==================== OPERATIONS ====================

    @operation()
    async def create(self, data: CredentialCreate) -> CredentialRead:
        """
        Issue a credential.

        Runs consumer existence, uniqueness, hashing and persistence in that
        order; the first failing step ends the pipeline. Not retried.

        Raises:
            ConsumerNotFoundError: The user or app does not exist
            CredentialAlreadyActiveError: The consumer already holds an active credential
            SecretHashingFailedError: The secret could not be hashed
            UnavailableError: A dependency timed out
        """
        consumer_ref = await self.bounded.read(
            "consumers.resolve", self.consumers.resolve, data.consumer_type, data.consumer_ref
        )
        if consumer_ref is None:
            raise ConsumerNotFoundError(
                consumer_type=data.consumer_type.value, consumer_ref=data.consumer_ref
            )

        # Stored under the canonical id so uniqueness holds however the consumer was named
        is_app = data.consumer_type == ConsumerType.APP
        consumer_id = None if is_app else consumer_ref
        app_id = consumer_ref if is_app else None

        await self._ensure_no_active_credential(consumer_ref)

        plain = data.secret.get_secret_value()
        hashed = await self._hash_secret(plain)

        record = StoredCredential(
            id=str(uuid.uuid4()),
            consumer_type=data.consumer_type,
            consumer_id=consumer_id,
            app_id=app_id,
            scope=data.scope,
            is_active=True,
            secret=self._build_secret(data.type, plain, hashed),
            updated_by=DEFAULT_UPDATED_BY,
        )

        saved = await self.bounded.write("credentials.save", self.repository.save, record)

        self.logger.info(
            "Credential issued",
            extra={
                "credential_id": saved.id,
                "credential_type": saved.type.value,
                "consumer_type": saved.consumer_type.value,
            },
        )
        return saved.redact()

    @operation()
    async def find_all(self) -> List[CredentialRead]:
        records = await self.bounded.read("credentials.find_all", self.repository.find_all)
        return [record.redact() for record in records]

    @operation()
    async def find_one(self, credential_id: str) -> CredentialRead:
        """
        Raises:
            NotFoundError: No credential has that id
        """
        return (await self._load(credential_id)).redact()

    @operation()
    async def find_by_consumer_id(self, consumer_ref: str) -> Optional[StoredCredential]:
        """Unredacted credential of a consumer, active one first. Internal callers only."""
        return await self.bounded.read(
            "credentials.find_by_consumer_id", self.repository.find_by_consumer_id, consumer_ref
        )

    @operation()
    async def find_active_by_type(self, credential_type: CredentialType) -> List[StoredCredential]:
        """Unredacted active credentials of one kind. Internal callers only."""
        return await self.bounded.read(
            "credentials.find_all_active_by_type",
            self.repository.find_all_active_by_type,
            credential_type,
        )

    @operation()
    async def update(self, credential_id: str, patch: CredentialUpdate) -> CredentialRead:
        """
        Apply the fields set on ``patch``; everything else is left as is.

        Raises:
            NotFoundError: No credential has that id
            CredentialAlreadyActiveError: Re-activating while another credential is active
            SecretHashingFailedError: A new secret could not be hashed
        """
        stored = await self._load(credential_id)
        fields = patch.model_fields_set

        changes: Dict[str, Any] = {}
        if "scope" in fields and patch.scope is not None:
            changes["scope"] = patch.scope
        if "is_active" in fields and patch.is_active is not None:
            if patch.is_active and not stored.is_active:
                await self._ensure_no_active_credential(stored.consumer_ref, stored.id)
            changes["is_active"] = patch.is_active
        if "secret" in fields and patch.secret is not None:
            plain = patch.secret.get_secret_value()
            hashed = await self._hash_secret(plain)
            changes.update(self._secret_changes(stored, plain, hashed))

        changes["updated_by"] = patch.updated_by or DEFAULT_UPDATED_BY

        updated = await self.bounded.write(
            "credentials.update", self.repository.update, credential_id, changes
        )
        if updated is None:
            raise not_found("Credential", credential_id=credential_id)
        return updated.redact()

    @operation()
    async def remove(self, credential_id: str) -> CredentialRead:
        """
        Soft-delete a credential.

        Raises:
            NotFoundError: No credential has that id
        """
        await self._load(credential_id)

        updated = await self.bounded.write(
            "credentials.update",
            self.repository.update,
            credential_id,
            {"is_active": False, "updated_by": DEFAULT_UPDATED_BY},
        )
        if updated is None:
            raise not_found("Credential", credential_id=credential_id)

        self.logger.info("Credential deactivated", extra={"credential_id": credential_id})
        return updated.redact()

"""
Pydantic schemas for consumer credentials.

The type-specific secret is a discriminated union with one variant per
credential kind, each carrying only its own fields. ``CredentialRead`` is the
only shape that leaves the service boundary and has no secret fields at all;
``StoredCredential`` is the unredacted internal record.
"""

from datetime import datetime
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, SecretStr, model_validator

from ..constants import DEFAULT_SCOPE
from ..enums import ConsumerType, CredentialType


# ==================== SECRET VARIANTS ====================


class BaseSecretSchema(BaseModel):
    """Base schema for all stored secret variants."""

    model_config = ConfigDict(frozen=True, extra="forbid")


class BasicSecret(BaseSecretSchema):
    """Password hash for basic-auth, plus the optional legacy plaintext echo."""

    type: Literal["basic-auth"] = "basic-auth"
    password_hash: Optional[str] = Field(None, repr=False)
    password: Optional[str] = Field(None, repr=False)


class KeySecret(BaseSecretSchema):
    """Public key identifier and hashed key secret for key-auth."""

    type: Literal["key-auth"] = "key-auth"
    key_id: str
    key_secret_hash: Optional[str] = Field(None, repr=False)


class JwtSecret(BaseSecretSchema):
    """Hashed signing secret for jwt credentials."""

    type: Literal["jwt"] = "jwt"
    secret_hash: Optional[str] = Field(None, repr=False)


class OAuth2Secret(BaseSecretSchema):
    """Hashed client secret for oauth2 credentials."""

    type: Literal["oauth2"] = "oauth2"
    secret_hash: Optional[str] = Field(None, repr=False)


CredentialSecret = Annotated[
    Union[BasicSecret, KeySecret, JwtSecret, OAuth2Secret],
    Field(discriminator="type"),
]


# ==================== INPUT SCHEMAS ====================


class CredentialCreate(BaseModel):
    """Schema for creating a credential."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    scope: str = Field(default=DEFAULT_SCOPE, min_length=1, description="Authorization scope")
    consumer_type: ConsumerType = Field(default=ConsumerType.USER, description="Owner kind")
    consumer_id: Optional[str] = Field(None, description="User id (USER consumers)")
    app_id: Optional[str] = Field(None, description="App id (APP consumers)")
    type: CredentialType = Field(..., description="Credential kind")
    secret: SecretStr = Field(..., description="Plain secret, hashed before storage")

    @model_validator(mode="after")
    def validate_consumer_exclusivity(self):
        """Exactly one of consumer_id / app_id, matching consumer_type."""
        if self.consumer_type == ConsumerType.USER:
            if not self.consumer_id or self.app_id:
                raise ValueError("USER credentials need consumer_id and no app_id")
        elif not self.app_id or self.consumer_id:
            raise ValueError("APP credentials need app_id and no consumer_id")
        return self

    @property
    def consumer_ref(self) -> str:
        """Identifier of the owning user or app."""
        return self.consumer_id if self.consumer_type == ConsumerType.USER else self.app_id


class CredentialUpdate(BaseModel):
    """Schema for patching a credential. Unset fields are left untouched."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    scope: Optional[str] = Field(None, min_length=1, description="New scope")
    is_active: Optional[bool] = Field(None, description="Activate or deactivate")
    secret: Optional[SecretStr] = Field(None, description="New plain secret")
    updated_by: Optional[str] = Field(None, description="Operator making the change")


# ==================== OUTPUT SCHEMAS ====================


class CredentialRead(BaseModel):
    """Redacted credential; the only shape returned to callers."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: str
    consumer_type: ConsumerType
    consumer_id: Optional[str] = None
    app_id: Optional[str] = None
    type: CredentialType
    scope: str
    is_active: bool
    key_id: Optional[str] = Field(None, description="Public key identifier (KEY only)")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    updated_by: Optional[str] = None


class StoredCredential(BaseModel):
    """Unredacted credential record for trusted internal callers only."""

    model_config = ConfigDict(frozen=True)

    id: str
    consumer_type: ConsumerType
    consumer_id: Optional[str] = None
    app_id: Optional[str] = None
    scope: str
    is_active: bool
    secret: CredentialSecret = Field(..., repr=False)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    updated_by: Optional[str] = None

    @property
    def type(self) -> CredentialType:
        return CredentialType(self.secret.type)

    @property
    def key_id(self) -> Optional[str]:
        return self.secret.key_id if isinstance(self.secret, KeySecret) else None

    @property
    def key_secret_hash(self) -> Optional[str]:
        return self.secret.key_secret_hash if isinstance(self.secret, KeySecret) else None

    @property
    def consumer_ref(self) -> str:
        return self.consumer_id if self.consumer_type == ConsumerType.USER else self.app_id

    def redact(self) -> CredentialRead:
        """Strip every secret field."""
        return CredentialRead(
            id=self.id,
            consumer_type=self.consumer_type,
            consumer_id=self.consumer_id,
            app_id=self.app_id,
            type=self.type,
            scope=self.scope,
            is_active=self.is_active,
            key_id=self.key_id,
            created_at=self.created_at,
            updated_at=self.updated_at,
            updated_by=self.updated_by,
        )


class Principal(BaseModel):
    """Request-scoped identity resolved from an API key. Never persisted."""

    model_config = ConfigDict(frozen=True)

    key_id: str
    consumer_id: str
    scope: str
    consumer_type: ConsumerType = ConsumerType.USER

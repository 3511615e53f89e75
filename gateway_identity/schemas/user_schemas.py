"""
Pydantic schemas for users, registered apps and issued tokens.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator, model_validator

from ..enums import UserRole


class UserCreate(BaseModel):
    """Schema for registering a user."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    email: str = Field(..., max_length=255, description="Contact email")
    username: Optional[str] = Field(None, max_length=255, description="Login name")
    firstname: Optional[str] = Field(None, max_length=255)
    lastname: Optional[str] = Field(None, max_length=255)
    redirect_uri: Optional[str] = Field(None, max_length=1024)
    role: UserRole = Field(default=UserRole.USER, description="Initial role")
    password: Optional[SecretStr] = Field(None, description="Plain password, hashed on save")

    @field_validator("email")
    def validate_email(cls, v: str) -> str:
        """Basic email validation."""
        if "@" not in v:
            raise ValueError("Invalid email address")
        return v.lower()

    @model_validator(mode="after")
    def default_username_to_email(self):
        """Users registered without a username log in with their email."""
        if not self.username:
            self.username = str(self.email)
        return self


class UserRead(BaseModel):
    """User as returned to callers; carries no password material."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: str
    username: str
    email: Optional[str] = None
    firstname: Optional[str] = None
    lastname: Optional[str] = None
    redirect_uri: Optional[str] = None
    role: UserRole
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class UserWithPassword(UserRead):
    """Internal user record including the stored password hash."""

    password_hash: Optional[str] = Field(None, repr=False)

    def public(self) -> UserRead:
        return UserRead.model_validate(self.model_dump(exclude={"password_hash"}))


class AppCreate(BaseModel):
    """Schema for registering an application."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=500)
    redirect_uri: Optional[str] = Field(None, max_length=500)
    user_id: Optional[str] = Field(None, description="Owning user")
    is_active: bool = Field(default=True, description="Inactive apps cannot hold credentials")


class AppRead(BaseModel):
    """Registered application."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: str
    name: str
    description: Optional[str] = None
    redirect_uri: Optional[str] = None
    is_active: bool = True
    user_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class TokenClaims(BaseModel):
    """Claims carried by an issued bearer token."""

    model_config = ConfigDict(frozen=True)

    sub: str
    username: str
    email: Optional[str] = None
    role: UserRole
    iat: Optional[int] = None
    exp: Optional[int] = None


class AuthResponse(BaseModel):
    """Result of a successful login."""

    access_token: str = Field(..., repr=False)
    token_type: str = "Bearer"
    expires_in: int = Field(..., description="Token lifetime in seconds")
    user: UserRead

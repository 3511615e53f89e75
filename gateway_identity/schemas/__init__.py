from .credential_schemas import (
    BasicSecret,
    CredentialCreate,
    CredentialRead,
    CredentialSecret,
    CredentialUpdate,
    JwtSecret,
    KeySecret,
    OAuth2Secret,
    Principal,
    StoredCredential,
)
from .user_schemas import (
    AppCreate,
    AppRead,
    AuthResponse,
    TokenClaims,
    UserCreate,
    UserRead,
    UserWithPassword,
)

__all__ = [
    "BasicSecret",
    "KeySecret",
    "JwtSecret",
    "OAuth2Secret",
    "CredentialSecret",
    "CredentialCreate",
    "CredentialUpdate",
    "CredentialRead",
    "StoredCredential",
    "Principal",
    "UserCreate",
    "UserRead",
    "UserWithPassword",
    "AppCreate",
    "AppRead",
    "AuthResponse",
    "TokenClaims",
]

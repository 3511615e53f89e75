from .app_service import AppService
from .auth_service import AuthService
from .base_service import BaseService, BoundedCall
from .credential_service import CredentialService
from .user_service import UserService

__all__ = [
    "BaseService",
    "BoundedCall",
    "CredentialService",
    "AuthService",
    "UserService",
    "AppService",
]

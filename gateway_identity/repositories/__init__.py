from .base_repository import BaseRepository
from .consumer_repository import AppRepository, ConsumerRegistry, UserRepository
from .credential_repository import CredentialRepository

__all__ = [
    "BaseRepository",
    "CredentialRepository",
    "UserRepository",
    "AppRepository",
    "ConsumerRegistry",
]

from .api_key_guard import ApiKeyGuard, split_api_key
from .decorators import declared_roles, is_public, public, roles
from .http import GatewayIdentity, error_response, request_context
from .roles_guard import RolesGuard
from .token_guard import TokenGuard

__all__ = [
    "ApiKeyGuard",
    "RolesGuard",
    "TokenGuard",
    "GatewayIdentity",
    "public",
    "roles",
    "is_public",
    "declared_roles",
    "split_api_key",
    "error_response",
    "request_context",
]

"""
Bearer token guard for interactive sessions.
"""

from typing import Callable, Optional

from ..constants import BEARER_PREFIX, HeaderName
from ..context.request_context import RequestContext
from ..exceptions import AuthenticationRequiredError
from ..services.auth_service import AuthService
from .decorators import is_public


class TokenGuard:
    """Verifies ``Authorization: Bearer <jwt>`` and attaches the claims."""

    def __init__(self, auth: AuthService):
        self.auth = auth

    async def can_activate(self, ctx: RequestContext, handler: Optional[Callable] = None) -> bool:
        """
        Raises:
            AuthenticationRequiredError: No bearer token
            InvalidCredentialsError: Token is expired, tampered with or malformed
        """
        if is_public(handler):
            return True

        authorization = ctx.header(HeaderName.AUTHORIZATION.value)
        if not authorization or not authorization.startswith(BEARER_PREFIX):
            raise AuthenticationRequiredError()

        ctx.claims = self.auth.verify_token(authorization[len(BEARER_PREFIX):].strip())
        return True

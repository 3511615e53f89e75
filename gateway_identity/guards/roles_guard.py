"""
Role-based authorization guard.

Runs after authentication. The acting user is re-read from the registry on
every check, so a role change takes effect on the next request even while
an older token is still valid.
"""

from typing import Callable, Optional

from ..config import AppConfig, get_config
from ..context.request_context import RequestContext
from ..exceptions import AuthenticationRequiredError, InsufficientRoleError
from ..repositories.consumer_repository import UserRepository
from ..services.base_service import BoundedCall
from ..utils.logger import get_logger
from .decorators import declared_roles


class RolesGuard:
    """Allows a handler only for users whose current role it declares."""

    def __init__(
        self,
        users: UserRepository,
        config: Optional[AppConfig] = None,
        bounded: Optional[BoundedCall] = None,
    ):
        self.users = users
        config = config or get_config()
        self.bounded = bounded or BoundedCall(config.timeouts)
        self.logger = get_logger()

    async def can_activate(self, ctx: RequestContext, handler: Optional[Callable] = None) -> bool:
        """
        Allow the request or raise.

        Raises:
            AuthenticationRequiredError: No acting user, or the user no longer exists
            InsufficientRoleError: The user's role is not among the declared ones
            UnavailableError: The registry timed out
        """
        allowed = declared_roles(handler)
        if allowed is None:
            return True
        if not allowed:
            raise InsufficientRoleError(required_roles=[])

        user_id = ctx.acting_user_id
        if not user_id:
            raise AuthenticationRequiredError()

        user = await self.bounded.read(
            "users.find_by_reference", self.users.find_by_reference, user_id
        )
        if user is None:
            raise AuthenticationRequiredError(acting_user_id=user_id)

        if user.role not in allowed:
            raise InsufficientRoleError(
                acting_user_id=user.id,
                required_roles=[role.value for role in allowed],
            )

        self.logger.debug("Role check passed", extra={"user_id": user.id, "role": user.role.value})
        return True

"""
Route metadata read by the guards.

    @public
    def health(req): ...

    @roles(UserRole.ADMIN)
    def delete_user(req): ...

Attributes live on the function itself, so they survive ``functools.wraps``.
"""

from typing import Callable, List, Optional, TypeVar, Union

from ..constants import PUBLIC_ROUTE_ATTR, ROLES_ROUTE_ATTR
from ..enums import UserRole

F = TypeVar("F", bound=Callable)


def public(func: F) -> F:
    """Mark a handler as reachable without an API key."""
    setattr(func, PUBLIC_ROUTE_ATTR, True)
    return func


def roles(*allowed: Union[UserRole, str]) -> Callable[[F], F]:
    """
    Declare the roles allowed to call a handler.

    ``@roles()`` with no arguments declares an empty list, which nobody satisfies.
    """
    declared = [UserRole(role) for role in allowed]

    def decorator(func: F) -> F:
        setattr(func, ROLES_ROUTE_ATTR, declared)
        return func

    return decorator


def is_public(handler: Optional[Callable]) -> bool:
    return bool(getattr(handler, PUBLIC_ROUTE_ATTR, False))


def declared_roles(handler: Optional[Callable]) -> Optional[List[UserRole]]:
    """Roles declared on ``handler``; None when it declares none at all."""
    return getattr(handler, ROLES_ROUTE_ATTR, None)

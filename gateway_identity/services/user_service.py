"""
User registration and role assignment.
"""

from typing import Optional

from ..config import AppConfig, get_config
from ..context.operation_context import operation
from ..enums import UserRole
from ..exceptions import (
    AuthenticationRequiredError,
    BaseError,
    InsufficientRoleError,
    SecretHashingFailedError,
    ValidationError,
    not_found,
)
from ..repositories.consumer_repository import UserRepository
from ..schemas.user_schemas import UserCreate, UserRead
from ..utils.secret_codec import SecretCodec
from .base_service import BaseService, BoundedCall


class UserService(BaseService):
    """Creates users and changes their role."""

    def __init__(
        self,
        users: UserRepository,
        codec: SecretCodec,
        config: Optional[AppConfig] = None,
        bounded: Optional[BoundedCall] = None,
    ):
        self.config = config or get_config()
        super().__init__(bounded or BoundedCall(self.config.timeouts))
        self.users = users
        self.codec = codec

    @operation()
    async def create_user(self, data: UserCreate) -> UserRead:
        """
        Register a user, hashing the password if one is given.

        Raises:
            SecretHashingFailedError: The password could not be hashed
            RepositoryError: DUPLICATE if the username or email is taken
        """
        password_hash = None
        if data.password is not None:
            try:
                password_hash = await self.bounded.hash(
                    "codec.hash", self.codec.hash, data.password.get_secret_value()
                )
            except BaseError as e:
                if e.retryable:
                    raise
                raise SecretHashingFailedError(cause=e) from e

        return await self.bounded.write(
            "users.create",
            self.users.create,
            username=data.username,
            email=data.email,
            role=data.role,
            password_hash=password_hash,
            firstname=data.firstname,
            lastname=data.lastname,
            redirect_uri=data.redirect_uri,
        )

    @operation()
    async def get_user(self, user_id: str) -> UserRead:
        user = await self.bounded.read("users.find_by_id", self.users.find_by_id, user_id)
        if user is None:
            raise not_found("User", user_id=user_id)
        return user

    @operation()
    async def change_role(self, user_id: str, role: UserRole, acting_user_id: str) -> UserRead:
        """
        Assign a new role to a user. Only a current administrator may do this.

        Raises:
            AuthenticationRequiredError: The acting user is unknown
            InsufficientRoleError: The acting user is not an administrator
            NotFoundError: The target user does not exist
        """
        if not acting_user_id:
            raise AuthenticationRequiredError()

        actor = await self.bounded.read("users.find_by_id", self.users.find_by_id, acting_user_id)
        if actor is None:
            raise AuthenticationRequiredError(acting_user_id=acting_user_id)
        if actor.role != UserRole.ADMIN:
            raise InsufficientRoleError(
                acting_user_id=acting_user_id, required_roles=[UserRole.ADMIN.value]
            )

        try:
            role = UserRole(role)
        except ValueError as e:
            raise ValidationError(f"Unknown role: {role}", field="role", cause=e) from e

        updated = await self.bounded.write(
            "users.update_role", self.users.update_role, user_id, role
        )
        if updated is None:
            raise not_found("User", user_id=user_id)

        self.logger.info(
            "Role assigned",
            extra={"user_id": user_id, "role": role.value, "acting_user_id": acting_user_id},
        )
        return updated

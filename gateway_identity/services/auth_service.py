"""
Password login and signed bearer tokens.

Tokens are stateless HS256 JWTs carrying ``{sub, username, email, role}``;
logout therefore has nothing to revoke.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from jwt.exceptions import ExpiredSignatureError, InvalidTokenError
from pydantic import ValidationError as PydanticValidationError

from ..config import AppConfig, get_config
from ..context.operation_context import operation
from ..exceptions import InvalidCredentialsError
from ..repositories.consumer_repository import UserRepository
from ..schemas.user_schemas import AuthResponse, TokenClaims, UserWithPassword
from ..utils.secret_codec import SecretCodec
from .base_service import BaseService, BoundedCall


class AuthService(BaseService):
    """Issues and verifies session tokens for users."""

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

    def _issue_token(self, user: UserWithPassword) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "sub": user.id,
            "username": user.username,
            "email": user.email,
            "role": user.role.value,
            "iat": now,
            "exp": now + timedelta(seconds=self.config.jwt.expires_in_seconds),
        }
        return jwt.encode(payload, self.config.jwt.secret, algorithm=self.config.jwt.algorithm)

    @operation()
    async def login(self, username: str, password: str) -> AuthResponse:
        """
        Verify a username/password pair and issue a token.

        The same error is raised for an unknown user, a user without a
        password and a wrong password.

        Raises:
            InvalidCredentialsError: Login refused
            UnavailableError: The registry or hashing timed out
        """
        if not username or not password:
            raise InvalidCredentialsError()

        user = await self.bounded.read(
            "users.find_by_username", self.users.find_by_username, username
        )
        if user is None or not user.password_hash:
            raise InvalidCredentialsError()

        matches = await self.bounded.hash(
            "codec.verify", self.codec.verify, password, user.password_hash
        )
        if not matches:
            raise InvalidCredentialsError()

        token = self._issue_token(user)
        self.logger.info("User logged in", extra={"user_id": user.id})

        return AuthResponse(
            access_token=token,
            expires_in=self.config.jwt.expires_in_seconds,
            user=user.public(),
        )

    async def logout(self) -> bool:
        return True

    def verify_token(self, token: str) -> TokenClaims:
        """
        Check a bearer token's signature and expiry.

        Raises:
            InvalidCredentialsError: Token expired, tampered with or malformed
        """
        if not token:
            raise InvalidCredentialsError()
        try:
            payload = jwt.decode(
                token,
                self.config.jwt.secret,
                algorithms=[self.config.jwt.algorithm],
                options={"require": ["sub", "exp"]},
            )
            return TokenClaims(**payload)
        except ExpiredSignatureError as e:
            raise InvalidCredentialsError("Token has expired", cause=e) from e
        except (InvalidTokenError, PydanticValidationError, TypeError) as e:
            raise InvalidCredentialsError(cause=e) from e

"""
Azure Functions integration.

``GatewayIdentity`` wires repositories, services and guards from one
AppConfig. ``guarded`` wraps an HTTP-triggered function so that it runs only
after authentication and role checks pass; errors become JSON responses
carrying the error's status code.

    identity = GatewayIdentity.from_config()

    @app.route(route="credentials", methods=["GET"])
    @identity.guarded()
    @roles(UserRole.ADMIN)
    async def list_credentials(req: func.HttpRequest) -> func.HttpResponse:
        ...
"""

import inspect
from functools import update_wrapper
from typing import Callable, Optional

import azure.functions as func

from ..config import AppConfig, get_config
from ..context.request_context import RequestContext
from ..db.db_config import DatabaseManager, get_db_manager
from ..exceptions import BaseError, ServiceError, clear_correlation_id, set_correlation_id
from ..repositories.consumer_repository import AppRepository, ConsumerRegistry, UserRepository
from ..repositories.credential_repository import CredentialRepository
from ..services.app_service import AppService
from ..services.auth_service import AuthService
from ..services.base_service import BoundedCall
from ..services.credential_service import CredentialService
from ..services.user_service import UserService
from ..utils.json_utils import dumps
from ..utils.logger import get_logger
from ..utils.secret_codec import SecretCodec
from .api_key_guard import ApiKeyGuard
from .roles_guard import RolesGuard
from .token_guard import TokenGuard

SCHEME_API_KEY = "api_key"
SCHEME_TOKEN = "token"

# Name of the attribute the wrapper uses to hand the RequestContext to the handler
REQUEST_CONTEXT_ATTR = "gateway_context"


def error_response(error: BaseError, include_cause: bool = False) -> func.HttpResponse:
    """Serialize an error for the client; never contains secrets."""
    return func.HttpResponse(
        dumps(error.to_dict(include_cause=include_cause)),
        status_code=error.status_code,
        mimetype="application/json",
    )


def request_context(req: func.HttpRequest) -> Optional[RequestContext]:
    """RequestContext attached by ``guarded``, if any."""
    return getattr(req, REQUEST_CONTEXT_ATTR, None)


class GatewayIdentity:
    """All identity components built from one configuration."""

    def __init__(self, config: AppConfig, db_manager: DatabaseManager):
        self.config = config
        self.db_manager = db_manager

        bounded = BoundedCall(config.timeouts)
        self.codec = SecretCodec.from_config(config.crypto)

        self.credential_repository = CredentialRepository(db_manager)
        self.user_repository = UserRepository(db_manager)
        self.app_repository = AppRepository(db_manager)
        self.consumers = ConsumerRegistry(self.user_repository, self.app_repository)

        self.credentials = CredentialService(
            self.credential_repository, self.consumers, self.codec, config, bounded
        )
        self.auth = AuthService(self.user_repository, self.codec, config, bounded)
        self.users = UserService(self.user_repository, self.codec, config, bounded)
        self.apps = AppService(self.app_repository, config, bounded)

        self.api_key_guard = ApiKeyGuard(self.credentials, self.codec, config, bounded)
        self.token_guard = TokenGuard(self.auth)
        self.roles_guard = RolesGuard(self.user_repository, config, bounded)

        self.logger = get_logger()

    @classmethod
    def from_config(
        cls, config: Optional[AppConfig] = None, db_manager: Optional[DatabaseManager] = None
    ) -> "GatewayIdentity":
        return cls(config or get_config(), db_manager or get_db_manager())

    async def authorize(
        self, ctx: RequestContext, handler: Optional[Callable], scheme: str = SCHEME_API_KEY
    ) -> None:
        """Run the authentication guard for ``scheme`` and then the roles guard."""
        if scheme == SCHEME_TOKEN:
            await self.token_guard.can_activate(ctx, handler)
        elif scheme == SCHEME_API_KEY:
            await self.api_key_guard.can_activate(ctx, handler)
        else:
            raise ValueError(f"Unknown authentication scheme: {scheme}")
        await self.roles_guard.can_activate(ctx, handler)

    def guarded(self, scheme: str = SCHEME_API_KEY):
        """
        Decorator for HTTP-triggered functions.

        The handler may be sync or async and receives the request only; use
        :func:`request_context` to read the resolved principal or claims.
        """

        def decorator(handler: Callable) -> Callable:
            async def wrapper(req: func.HttpRequest) -> func.HttpResponse:
                ctx = RequestContext.from_http_request(req)
                set_correlation_id(ctx.correlation_id)
                try:
                    await self.authorize(ctx, handler, scheme)
                    setattr(req, REQUEST_CONTEXT_ATTR, ctx)

                    result = handler(req)
                    if inspect.isawaitable(result):
                        result = await result
                    return result
                except BaseError as e:
                    return error_response(e, include_cause=self.config.debug)
                except Exception as e:
                    self.logger.exception(
                        "Unhandled error in guarded function",
                        extra={"function": handler.__name__},
                    )
                    return error_response(
                        ServiceError("Internal server error", operation=handler.__name__, cause=e),
                        include_cause=self.config.debug,
                    )
                finally:
                    clear_correlation_id()

            update_wrapper(wrapper, handler)
            # The Functions host binds parameters from the wrapper's own signature
            del wrapper.__wrapped__
            return wrapper

        return decorator

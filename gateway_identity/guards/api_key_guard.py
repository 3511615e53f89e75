"""
API key authentication guard.

A key is presented as ``keyId:keySecret`` in the ``x-api-key`` header, or as
``Authorization: Bearer keyId:keySecret``. The key id selects an active KEY
credential; the secret is checked against its stored hash. On success a
``Principal`` is attached to the request context.
"""

from typing import Callable, Optional, Tuple

from ..config import AppConfig, get_config
from ..constants import API_KEY_SEPARATOR, BEARER_PREFIX
from ..context.request_context import RequestContext
from ..enums import CredentialType
from ..exceptions import (
    InvalidApiKeyError,
    InvalidApiKeyFormatError,
    MissingApiKeyError,
    UnauthorizedError,
    UnavailableError,
)
from ..schemas.credential_schemas import Principal
from ..services.base_service import BoundedCall
from ..services.credential_service import CredentialService
from ..utils.logger import get_logger
from ..utils.secret_codec import SecretCodec, constant_time_equals
from .decorators import is_public


def split_api_key(raw: str) -> Tuple[Optional[str], Optional[str]]:
    """Split at the first separator; either half may come back empty."""
    key_id, separator, key_secret = raw.partition(API_KEY_SEPARATOR)
    if not separator:
        return raw or None, None
    return key_id or None, key_secret or None


class ApiKeyGuard:
    """Verifies API keys against stored KEY credentials."""

    def __init__(
        self,
        credentials: CredentialService,
        codec: SecretCodec,
        config: Optional[AppConfig] = None,
        bounded: Optional[BoundedCall] = None,
    ):
        self.credentials = credentials
        self.codec = codec
        self.config = config or get_config()
        self.bounded = bounded or BoundedCall(self.config.timeouts)
        self.logger = get_logger()

    def _extract_key(self, ctx: RequestContext) -> Optional[str]:
        key = ctx.header(self.config.api_key.header_name)
        if key:
            return key
        authorization = ctx.header(self.config.api_key.fallback_header_name)
        if authorization:
            if authorization.startswith(BEARER_PREFIX):
                authorization = authorization[len(BEARER_PREFIX):]
            return authorization.strip() or None
        return None

    def _accept_legacy_key(self, raw: str) -> bool:
        settings = self.config.api_key
        if not settings.legacy_mode or not settings.static_api_key:
            return False
        return constant_time_equals(raw, settings.static_api_key)

    async def _resolve(self, key_id: str, key_secret: str) -> Principal:
        candidates = await self.credentials.find_active_by_type(CredentialType.KEY)
        match = next((c for c in candidates if c.key_id == key_id), None)
        if match is None:
            raise InvalidApiKeyError()

        full = await self.credentials.find_by_consumer_id(match.consumer_ref)
        if (
            full is None
            or not full.is_active
            or full.type != CredentialType.KEY
            or full.key_id != key_id
            or not full.key_secret_hash
        ):
            raise InvalidApiKeyError()

        valid = await self.bounded.hash(
            "codec.verify", self.codec.verify, key_secret, full.key_secret_hash
        )
        if not valid:
            raise InvalidApiKeyError()

        return Principal(
            key_id=full.key_id,
            consumer_id=full.consumer_ref,
            scope=full.scope,
            consumer_type=full.consumer_type,
        )

    async def can_activate(self, ctx: RequestContext, handler: Optional[Callable] = None) -> bool:
        """
        Allow the request or raise.

        Raises:
            MissingApiKeyError: No key header
            InvalidApiKeyFormatError: Not ``keyId:keySecret`` and no legacy key matched
            InvalidApiKeyError: Any verification failure
            UnavailableError: The store or hashing timed out
        """
        if is_public(handler):
            return True

        raw = self._extract_key(ctx)
        if not raw:
            raise MissingApiKeyError()

        key_id, key_secret = split_api_key(raw)
        if not key_id or not key_secret:
            if self._accept_legacy_key(raw):
                self.logger.warning("Request accepted with the legacy static API key")
                return True
            raise InvalidApiKeyFormatError()

        try:
            principal = await self._resolve(key_id, key_secret)
        except (UnauthorizedError, UnavailableError):
            raise
        except Exception as e:
            raise InvalidApiKeyError(cause=e) from e

        ctx.principal = principal
        self.logger.info(
            "API key accepted",
            extra={
                "key_id": principal.key_id,
                "consumer_id": principal.consumer_id,
                "scope": principal.scope,
            },
        )
        return True

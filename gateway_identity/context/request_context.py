"""
Per-request state shared by the guards.

A RequestContext is created once per inbound request and carries the headers,
the correlation id and whatever identity the guards resolved: a ``Principal``
from an API key and/or ``TokenClaims`` from a bearer token. Nothing here is
shared between requests.
"""

import uuid
from typing import Any, Dict, Mapping, Optional

import azure.functions as func

from ..constants import HeaderName
from ..enums import ConsumerType
from ..schemas.credential_schemas import Principal
from ..schemas.user_schemas import TokenClaims


class RequestContext:
    """Headers plus the identity attached to one request."""

    def __init__(
        self,
        headers: Optional[Mapping[str, str]] = None,
        correlation_id: Optional[str] = None,
        route_params: Optional[Dict[str, Any]] = None,
    ):
        # Header lookup is case-insensitive
        self.headers: Dict[str, str] = {k.lower(): v for k, v in (headers or {}).items()}
        self.correlation_id = (
            correlation_id or self.headers.get(HeaderName.REQUEST_ID.value) or str(uuid.uuid4())
        )
        self.route_params = dict(route_params or {})
        self.principal: Optional[Principal] = None
        self.claims: Optional[TokenClaims] = None

    @classmethod
    def from_http_request(cls, req: func.HttpRequest) -> "RequestContext":
        """Build a context from an Azure Functions HTTP request."""
        return cls(headers=dict(req.headers), route_params=dict(req.route_params or {}))

    def header(self, name: str) -> Optional[str]:
        value = self.headers.get(name.lower())
        return value if value else None

    @property
    def acting_user_id(self) -> Optional[str]:
        """
        Identifier of the user on whose behalf the request runs.

        Token subject wins; otherwise the consumer of a USER API key.
        App keys do not act as a user.
        """
        if self.claims is not None:
            return self.claims.sub
        if self.principal is not None and self.principal.consumer_type == ConsumerType.USER:
            return self.principal.consumer_id
        return None

    @property
    def is_authenticated(self) -> bool:
        return self.principal is not None or self.claims is not None

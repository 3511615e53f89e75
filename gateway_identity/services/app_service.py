"""
Registered application lifecycle.

An app can hold credentials only while it is active; deactivating one makes
it unknown to credential issuance without touching credentials it already has.
"""

from typing import List, Optional

from ..config import AppConfig, get_config
from ..context.operation_context import operation
from ..exceptions import not_found
from ..repositories.consumer_repository import AppRepository
from ..schemas.user_schemas import AppCreate, AppRead
from .base_service import BaseService, BoundedCall


class AppService(BaseService):
    """Registers apps and switches them on and off."""

    def __init__(
        self,
        apps: AppRepository,
        config: Optional[AppConfig] = None,
        bounded: Optional[BoundedCall] = None,
    ):
        self.config = config or get_config()
        super().__init__(bounded or BoundedCall(self.config.timeouts))
        self.apps = apps

    async def _set_active(self, app_id: str, is_active: bool) -> AppRead:
        updated = await self.bounded.write(
            "apps.update_active", self.apps.update_active, app_id, is_active
        )
        if updated is None:
            raise not_found("App", app_id=app_id)
        return updated

    @operation()
    async def create_app(self, data: AppCreate) -> AppRead:
        return await self.bounded.write(
            "apps.create",
            self.apps.create,
            name=data.name,
            description=data.description,
            redirect_uri=data.redirect_uri,
            user_id=data.user_id,
            is_active=data.is_active,
        )

    @operation()
    async def get_app(self, app_id: str) -> AppRead:
        app = await self.bounded.read("apps.find_by_id", self.apps.find_by_id, app_id)
        if app is None:
            raise not_found("App", app_id=app_id)
        return app

    @operation()
    async def find_by_user_id(self, user_id: str) -> List[AppRead]:
        return await self.bounded.read("apps.find_by_user_id", self.apps.find_by_user_id, user_id)

    @operation()
    async def find_active_apps(self) -> List[AppRead]:
        return await self.bounded.read("apps.find_by_active", self.apps.find_by_active, True)

    @operation()
    async def find_inactive_apps(self) -> List[AppRead]:
        return await self.bounded.read("apps.find_by_active", self.apps.find_by_active, False)

    @operation()
    async def activate(self, app_id: str) -> AppRead:
        """
        Raises:
            NotFoundError: No app has that id
        """
        return await self._set_active(app_id, True)

    @operation()
    async def deactivate(self, app_id: str) -> AppRead:
        """
        Stop the app from being issued new credentials.

        Raises:
            NotFoundError: No app has that id
        """
        return await self._set_active(app_id, False)

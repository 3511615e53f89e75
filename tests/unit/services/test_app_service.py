"""
Tests for the registered application lifecycle.
"""

import pytest
from pydantic import ValidationError as PydanticValidationError

from gateway_identity.enums import ConsumerType, CredentialType
from gateway_identity.exceptions import ConsumerNotFoundError, NotFoundError
from gateway_identity.schemas import AppCreate, CredentialCreate
from tests.fixtures.factories import AppFactory, UserFactory


def app_key_input(app_id: str) -> CredentialCreate:
    return CredentialCreate(
        consumer_type=ConsumerType.APP, app_id=app_id, type=CredentialType.KEY, secret="s3cr3t"
    )


class TestCreateApp:
    async def test_created_active(self, app_service, db_session):
        owner = UserFactory()

        created = await app_service.create_app(
            AppCreate(name="billing", redirect_uri="https://billing.example.com/cb", user_id=owner.id)
        )

        assert created.is_active is True
        assert created.user_id == owner.id
        assert (await app_service.get_app(created.id)).name == "billing"

    async def test_created_inactive(self, app_service):
        created = await app_service.create_app(AppCreate(name="staging", is_active=False))

        assert created.is_active is False

    def test_name_required(self):
        with pytest.raises(PydanticValidationError):
            AppCreate(name="")

    async def test_get_missing(self, app_service):
        with pytest.raises(NotFoundError):
            await app_service.get_app("missing")


class TestActivity:
    async def test_deactivate_blocks_credential_issuance(
        self, app_service, credential_service, db_session
    ):
        app = AppFactory()

        deactivated = await app_service.deactivate(app.id)

        assert deactivated.is_active is False
        with pytest.raises(ConsumerNotFoundError):
            await credential_service.create(app_key_input(app.id))

    async def test_activate_allows_credential_issuance(
        self, app_service, credential_service, db_session
    ):
        app = AppFactory(is_active=False)

        activated = await app_service.activate(app.id)
        created = await credential_service.create(app_key_input(app.id))

        assert activated.is_active is True
        assert created.app_id == app.id

    async def test_deactivate_keeps_existing_credentials(
        self, app_service, credential_service, db_session
    ):
        app = AppFactory()
        created = await credential_service.create(app_key_input(app.id))

        await app_service.deactivate(app.id)

        assert (await credential_service.find_one(created.id)).is_active is True

    @pytest.mark.parametrize("method", ["activate", "deactivate"])
    async def test_missing_app(self, app_service, method):
        with pytest.raises(NotFoundError):
            await getattr(app_service, method)("missing")


class TestQueries:
    async def test_find_by_user_id(self, app_service, db_session):
        owner = UserFactory()
        mine = [AppFactory(user_id=owner.id, name=name) for name in ("a-app", "b-app")]
        AppFactory(user_id=UserFactory().id)

        found = await app_service.find_by_user_id(owner.id)

        assert [app.id for app in found] == [app.id for app in mine]

    async def test_active_and_inactive(self, app_service, db_session):
        active = AppFactory()
        inactive = AppFactory(is_active=False)

        assert [app.id for app in await app_service.find_active_apps()] == [active.id]
        assert [app.id for app in await app_service.find_inactive_apps()] == [inactive.id]

"""
Tests for user registration and role changes.
"""

import pytest

from gateway_identity.enums import UserRole
from gateway_identity.exceptions import (
    AuthenticationRequiredError,
    ErrorCode,
    InsufficientRoleError,
    NotFoundError,
    RepositoryError,
    ValidationError,
)
from gateway_identity.schemas import UserCreate
from tests.fixtures.factories import AdminUserFactory, UserFactory


class TestCreateUser:
    async def test_with_password(self, user_service, auth_service):
        created = await user_service.create_user(
            UserCreate(email="Ann@Example.com", username="ann", password="pw")
        )

        assert created.username == "ann"
        assert created.email == "ann@example.com"
        assert created.role == UserRole.USER
        assert "password_hash" not in created.model_dump()

        response = await auth_service.login("ann", "pw")
        assert response.user.id == created.id

    async def test_username_defaults_to_email(self, user_service):
        created = await user_service.create_user(UserCreate(email="bob@example.com"))

        assert created.username == "bob@example.com"

    async def test_without_password_cannot_log_in(self, user_service):
        created = await user_service.create_user(UserCreate(email="bob@example.com"))

        stored = user_service.users.find_by_username(created.username)
        assert stored.password_hash is None

    async def test_duplicate(self, user_service):
        await user_service.create_user(UserCreate(email="bob@example.com"))

        with pytest.raises(RepositoryError) as exc_info:
            await user_service.create_user(UserCreate(email="bob@example.com"))

        assert exc_info.value.error_code == ErrorCode.DUPLICATE


class TestGetUser:
    async def test_found(self, user_service, db_session):
        user = UserFactory()

        assert (await user_service.get_user(user.id)).username == user.username

    async def test_missing(self, user_service):
        with pytest.raises(NotFoundError):
            await user_service.get_user("missing")


class TestChangeRole:
    async def test_admin_promotes_user(self, user_service, db_session):
        admin = AdminUserFactory()
        user = UserFactory()

        updated = await user_service.change_role(user.id, UserRole.ADMIN, admin.id)

        assert updated.role == UserRole.ADMIN
        assert (await user_service.get_user(user.id)).role == UserRole.ADMIN

    async def test_accepts_role_value(self, user_service, db_session):
        admin = AdminUserFactory()
        other = AdminUserFactory()

        updated = await user_service.change_role(other.id, "user", admin.id)

        assert updated.role == UserRole.USER

    async def test_non_admin_refused(self, user_service, db_session):
        actor = UserFactory()
        target = UserFactory()

        with pytest.raises(InsufficientRoleError):
            await user_service.change_role(target.id, UserRole.ADMIN, actor.id)

        assert (await user_service.get_user(target.id)).role == UserRole.USER

    @pytest.mark.parametrize("acting_user_id", [None, "", "ghost"])
    async def test_unknown_actor(self, user_service, db_session, acting_user_id):
        target = UserFactory()

        with pytest.raises(AuthenticationRequiredError):
            await user_service.change_role(target.id, UserRole.ADMIN, acting_user_id)

    async def test_unknown_role(self, user_service, db_session):
        admin = AdminUserFactory()

        with pytest.raises(ValidationError) as exc_info:
            await user_service.change_role(admin.id, "root", admin.id)

        assert exc_info.value.context["field"] == "role"

    async def test_unknown_target(self, user_service, db_session):
        admin = AdminUserFactory()

        with pytest.raises(NotFoundError):
            await user_service.change_role("missing", UserRole.ADMIN, admin.id)

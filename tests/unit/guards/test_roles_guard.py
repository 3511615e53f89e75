"""
Tests for the roles guard and the route metadata decorators.
"""

import pytest

from gateway_identity.context import RequestContext
from gateway_identity.enums import ConsumerType, UserRole
from gateway_identity.exceptions import AuthenticationRequiredError, InsufficientRoleError
from gateway_identity.guards import declared_roles, is_public, public, roles
from gateway_identity.schemas import Principal, TokenClaims
from tests.fixtures.factories import AdminUserFactory, UserFactory


@roles(UserRole.ADMIN)
def admin_only(req):
    return None


@roles(UserRole.ADMIN, UserRole.USER)
def anyone_signed_in(req):
    return None


@roles()
def nobody(req):
    return None


def open_route(req):
    return None


def ctx_for_token(user, role=None) -> RequestContext:
    ctx = RequestContext()
    ctx.claims = TokenClaims(sub=user.id, username=user.username, role=role or user.role)
    return ctx


def ctx_for_key(consumer_id, consumer_type=ConsumerType.USER) -> RequestContext:
    ctx = RequestContext()
    ctx.principal = Principal(
        key_id="kid", consumer_id=consumer_id, scope="admin", consumer_type=consumer_type
    )
    return ctx


@pytest.fixture
def guard(identity):
    return identity.roles_guard


class TestDecorators:
    def test_roles_recorded_on_function(self):
        assert declared_roles(admin_only) == [UserRole.ADMIN]
        assert declared_roles(nobody) == []
        assert declared_roles(open_route) is None

    def test_roles_accept_values(self):
        @roles("admin")
        def handler(req):
            return None

        assert declared_roles(handler) == [UserRole.ADMIN]

    def test_unknown_role_rejected_at_declaration(self):
        with pytest.raises(ValueError):
            roles("root")

    def test_public(self):
        @public
        def health(req):
            return None

        assert is_public(health) is True
        assert is_public(open_route) is False
        assert is_public(None) is False


class TestRolesGuard:
    async def test_no_declaration_allows_anyone(self, guard):
        assert await guard.can_activate(RequestContext(), open_route) is True

    async def test_empty_declaration_allows_nobody(self, guard, db_session):
        admin = AdminUserFactory()

        with pytest.raises(InsufficientRoleError):
            await guard.can_activate(ctx_for_token(admin), nobody)

    async def test_admin_allowed(self, guard, db_session):
        admin = AdminUserFactory()

        assert await guard.can_activate(ctx_for_token(admin), admin_only) is True

    async def test_user_refused(self, guard, db_session):
        user = UserFactory()

        with pytest.raises(InsufficientRoleError) as exc_info:
            await guard.can_activate(ctx_for_token(user), admin_only)

        assert exc_info.value.status_code == 403
        assert exc_info.value.context["required_roles"] == ["admin"]

    async def test_any_of_the_declared_roles(self, guard, db_session):
        user = UserFactory()

        assert await guard.can_activate(ctx_for_token(user), anyone_signed_in) is True

    async def test_current_role_wins_over_token_claim(self, guard, db_session):
        demoted = UserFactory()

        with pytest.raises(InsufficientRoleError):
            await guard.can_activate(ctx_for_token(demoted, role=UserRole.ADMIN), admin_only)

    async def test_unauthenticated(self, guard):
        with pytest.raises(AuthenticationRequiredError):
            await guard.can_activate(RequestContext(), admin_only)

    async def test_deleted_user(self, guard, db_session):
        ghost = AdminUserFactory.build()

        with pytest.raises(AuthenticationRequiredError):
            await guard.can_activate(ctx_for_token(ghost), admin_only)

    async def test_user_key_acts_as_its_consumer(self, guard, db_session):
        admin = AdminUserFactory(username="ops-admin")

        assert await guard.can_activate(ctx_for_key(admin.id), admin_only) is True
        assert await guard.can_activate(ctx_for_key("ops-admin"), admin_only) is True

    async def test_app_key_is_not_a_user(self, guard, db_session):
        with pytest.raises(AuthenticationRequiredError):
            await guard.can_activate(ctx_for_key("app-1", ConsumerType.APP), admin_only)

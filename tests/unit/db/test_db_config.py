"""
Tests for the database manager and its global accessors.
"""

import pytest
from sqlalchemy import inspect

from gateway_identity.config import DatabaseConfig
from gateway_identity.db import (
    User,
    close_db,
    get_db_manager,
    initialize_db,
    set_db_manager,
)
from gateway_identity.exceptions import ErrorCode, ServiceError


class TestGlobalManager:
    def teardown_method(self):
        close_db()

    def test_not_initialized(self):
        set_db_manager(None)

        with pytest.raises(ServiceError) as exc_info:
            get_db_manager()

        assert exc_info.value.error_code == ErrorCode.CONFIGURATION_ERROR

    def test_initialize_creates_identity_tables(self, app_config):
        manager = initialize_db(DatabaseConfig(connection_string="sqlite:///:memory:"))

        assert get_db_manager() is manager
        assert manager.is_sqlite is True
        assert {"users", "apps", "credentials"} <= set(inspect(manager.engine).get_table_names())

    def test_close_resets_global(self, app_config):
        initialize_db(DatabaseConfig(connection_string="sqlite:///:memory:"))

        close_db()

        with pytest.raises(ServiceError):
            get_db_manager()


class TestSessionScope:
    def test_commits_on_success(self, db_manager):
        with db_manager.session_scope() as session:
            session.add(User(id="u1", username="ann", role="user"))

        with db_manager.session_scope() as session:
            assert session.get(User, "u1").username == "ann"

    def test_rolls_back_on_error(self, db_manager):
        with pytest.raises(RuntimeError):
            with db_manager.session_scope() as session:
                session.add(User(id="u2", username="bob", role="user"))
                session.flush()
                raise RuntimeError("abort")

        with db_manager.session_scope() as session:
            assert session.get(User, "u2") is None

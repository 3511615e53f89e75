"""
Test fixtures for the gateway identity core.

Every test function gets a fresh SQLite in-memory database, a config with a
cheap bcrypt work factor, and factories bound to a session on that database.
"""

import pytest
from sqlalchemy.orm import Session

from gateway_identity.config import (
    AppConfig,
    ApiKeyConfig,
    CryptoConfig,
    DatabaseConfig,
    JWTConfig,
    TimeoutConfig,
    reset_config,
    set_config,
)
from gateway_identity.db import DatabaseManager, import_all_models, set_db_manager
from gateway_identity.guards.http import GatewayIdentity
from gateway_identity.utils.secret_codec import SecretCodec
from tests.fixtures.factories import ALL_FACTORIES, TEST_CIPHER_KEY, TEST_JWT_SECRET


@pytest.fixture(scope="function")
def app_config() -> AppConfig:
    """Deterministic configuration, installed as the global one for the test."""
    config = AppConfig(
        environment="test",
        debug=False,
        database=DatabaseConfig(connection_string="sqlite:///:memory:"),
        crypto=CryptoConfig(
            cipher_key=TEST_CIPHER_KEY, cipher_algorithm="aes-256-cbc", salt_rounds=4
        ),
        jwt=JWTConfig(secret=TEST_JWT_SECRET, algorithm="HS256", expires_in="1h"),
        api_key=ApiKeyConfig(static_api_key=None, legacy_mode=False),
        timeouts=TimeoutConfig(store_seconds=5, hash_seconds=10, read_retries=1),
    )
    set_config(config)
    yield config
    reset_config()


@pytest.fixture(scope="function")
def db_manager(app_config: AppConfig) -> DatabaseManager:
    """Fresh in-memory database with all tables created."""
    import_all_models()
    manager = DatabaseManager(app_config.database)
    manager.create_tables()
    set_db_manager(manager)

    yield manager

    set_db_manager(None)
    manager.drop_tables()
    manager.close()


@pytest.fixture(scope="function")
def db_session(db_manager: DatabaseManager) -> Session:
    """Session for seeding data; factories are bound to it."""
    session = db_manager.get_session()
    for factory_class in ALL_FACTORIES:
        factory_class._meta.sqlalchemy_session = session

    yield session

    session.rollback()
    session.close()
    for factory_class in ALL_FACTORIES:
        factory_class._meta.sqlalchemy_session = None


@pytest.fixture(scope="function")
def codec(app_config: AppConfig) -> SecretCodec:
    return SecretCodec.from_config(app_config.crypto)


@pytest.fixture(scope="function")
def identity(app_config: AppConfig, db_manager: DatabaseManager, db_session) -> GatewayIdentity:
    """All repositories, services and guards wired to the test database."""
    return GatewayIdentity(app_config, db_manager)


@pytest.fixture(scope="function")
def credential_service(identity):
    return identity.credentials


@pytest.fixture(scope="function")
def auth_service(identity):
    return identity.auth


@pytest.fixture(scope="function")
def user_service(identity):
    return identity.users


@pytest.fixture(scope="function")
def app_service(identity):
    return identity.apps

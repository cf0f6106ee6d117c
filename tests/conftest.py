"""
Test fixtures for the console core unit tests.

This module provides shared test fixtures including database setup,
a test AppConfig, identities and session tokens.
"""

import pytest
from sqlalchemy.orm import Session

from hetzner_console_core.config import (
    AppConfig,
    DatabaseConfig,
    HetznerConfig,
    IdentityConfig,
    SecurityConfig,
    reset_config,
    set_config,
)
from hetzner_console_core.context.identity import Identity
from hetzner_console_core.db import DatabaseManager
from hetzner_console_core.db.db_config import Base, initialize_db
from tests.fixtures.factories import bind_factories
from tests.fixtures.session_tokens import (
    TEST_EXTENSION_ID,
    TEST_EXTENSION_SECRET,
    build_session_token,
)

TEST_ENCRYPTION_KEY = "test-master-encryption-key"
TEST_BASE_URL = "https://api.hetzner.test/v1"


@pytest.fixture(autouse=True)
def app_config() -> AppConfig:
    """
    Install a known configuration for every test.

    Keeps HETZNER_API_TOKEN and friends from the developer's environment
    out of the tests.
    """
    config = AppConfig(
        environment="test",
        hetzner=HetznerConfig(
            base_url=TEST_BASE_URL,
            timeout=5,
            token_override="",
            token_override_scope=[],
        ),
        identity=IdentityConfig(
            extension_id=TEST_EXTENSION_ID,
            extension_secret=TEST_EXTENSION_SECRET,
            jwks_url=None,
        ),
        security=SecurityConfig(encryption_key=TEST_ENCRYPTION_KEY, kdf_iterations=1000),
    )
    set_config(config)
    yield config
    reset_config()


@pytest.fixture(scope="session")
def db_config() -> DatabaseConfig:
    """Create SQLite in-memory database configuration for testing."""
    return DatabaseConfig(url="sqlite:///:memory:", echo=False)


@pytest.fixture(scope="session")
def db_manager(db_config: DatabaseConfig) -> DatabaseManager:
    """Create and initialize database manager with all models."""
    return initialize_db(db_config)


@pytest.fixture(scope="function")
def db_session(db_manager: DatabaseManager) -> Session:
    """
    Create a database session for each test.

    Tables are created before and dropped after every test so tests never
    see each other's rows.
    """
    Base.metadata.create_all(db_manager.engine)
    session = db_manager.get_session()
    bind_factories(session)

    yield session

    session.rollback()
    session.close()
    db_manager.scoped_session.remove()
    Base.metadata.drop_all(db_manager.engine)


@pytest.fixture
def identity() -> Identity:
    """Standard identity for testing."""
    return Identity(
        extension_instance_id="instance-a",
        extension_id=TEST_EXTENSION_ID,
        user_id="user-1",
        context_id="context-1",
        project_id="project-1",
    )


@pytest.fixture
def other_identity() -> Identity:
    """Identity of a second extension instance."""
    return Identity(
        extension_instance_id="instance-b",
        extension_id=TEST_EXTENSION_ID,
        user_id="user-2",
        context_id="context-2",
    )


@pytest.fixture
def session_token() -> str:
    """Valid session token for instance-a."""
    return build_session_token()

"""
Engine and session management for the console database.

Connection settings come from the ``database`` section of ``AppConfig``.
"""

from typing import Any, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, scoped_session, sessionmaker
from sqlalchemy.pool import StaticPool

from ..config import DatabaseConfig, get_config
from ..exceptions import ConfigurationError
from ..utils import get_logger

Base: Any = declarative_base()


class DatabaseManager:
    """
    Owns the engine and the thread-scoped session registry.

    Every session of an in-memory SQLite manager shares one connection, so
    they all see the same tables.
    """

    def __init__(self, config: Optional[DatabaseConfig] = None):
        self.config = config or get_config().database
        self.engine = self._create_engine()
        self.session_factory = sessionmaker(bind=self.engine)
        self.scoped_session = scoped_session(self.session_factory)

    def _create_engine(self) -> Engine:
        if self.config.is_memory:
            return create_engine(
                self.config.url,
                echo=self.config.echo,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        if self.config.is_sqlite:
            return create_engine(
                self.config.url, echo=self.config.echo, connect_args={"check_same_thread": False}
            )
        return create_engine(
            self.config.url,
            echo=self.config.echo,
            pool_size=self.config.pool_size,
            max_overflow=self.config.max_overflow,
            pool_timeout=self.config.pool_timeout,
            pool_pre_ping=True,
        )

    def create_tables(self) -> None:
        Base.metadata.create_all(self.engine)

    def get_session(self) -> Session:
        return self.scoped_session()

    def close(self) -> None:
        self.scoped_session.remove()
        self.engine.dispose()


def import_all_models():
    """Import all models to ensure they're registered with SQLAlchemy metadata."""
    from sqlalchemy.orm import configure_mappers

    from .db_credential_models import HetznerApiToken  # noqa
    from .db_resource_models import ResourceAssignment, ResourceNote  # noqa

    configure_mappers()


_db_manager: Optional[DatabaseManager] = None


def get_db_manager() -> DatabaseManager:
    """
    Get the global database manager instance.

    Raises:
        ConfigurationError: If no database manager has been initialized
    """
    if _db_manager is None:
        raise ConfigurationError(
            "Database manager not initialized. Call initialize_db() first.",
            operation="get_db_manager",
        )
    return _db_manager


def set_db_manager(manager: Optional[DatabaseManager]) -> None:
    """Install (or clear, with None) the global database manager."""
    global _db_manager
    _db_manager = manager


def initialize_db(config: Optional[DatabaseConfig] = None) -> DatabaseManager:
    """
    Create the global database manager and make sure every table exists.

    Args:
        config: Connection settings; defaults to ``get_config().database``

    Returns:
        DatabaseManager: The installed manager
    """
    manager = DatabaseManager(config)
    get_logger().info(
        "Initializing database", extra={"database_url": repr(manager.config)}
    )

    import_all_models()
    manager.create_tables()

    set_db_manager(manager)
    return manager

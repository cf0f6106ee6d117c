"""
SQLAlchemy models and database setup for the console core.
"""

# Import base definitions
from .db_base import (
    JSON,
    EncryptedBinary,
    TimestampMixin,
    UUIDMixin,
    utc_now,
)

# Import configuration
from .db_config import (
    Base,
    DatabaseManager,
    get_db_manager,
    import_all_models,
    initialize_db,
    set_db_manager,
)
from .db_credential_models import HetznerApiToken
from .db_resource_models import ResourceAssignment, ResourceNote

__all__ = [
    # Base definitions
    "Base",
    "JSON",
    "EncryptedBinary",
    "TimestampMixin",
    "UUIDMixin",
    "utc_now",
    # Engine and sessions
    "DatabaseManager",
    "import_all_models",
    "initialize_db",
    "get_db_manager",
    "set_db_manager",
    # Models
    "HetznerApiToken",
    "ResourceAssignment",
    "ResourceNote",
]

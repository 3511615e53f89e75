"""
SQLAlchemy models and database configuration for the identity core.
"""

from .db_base import TimestampMixin, UUIDMixin, new_id, utc_now
from .db_config import (
    Base,
    DatabaseManager,
    close_db,
    get_db_manager,
    import_all_models,
    initialize_db,
    set_db_manager,
)
from .db_consumer_models import App, User
from .db_credential_models import Credential

__all__ = [
    # Base definitions
    "Base",
    "TimestampMixin",
    "UUIDMixin",
    "new_id",
    "utc_now",
    # Configuration
    "DatabaseManager",
    "import_all_models",
    "initialize_db",
    "get_db_manager",
    "set_db_manager",
    "close_db",
    # Models
    "App",
    "Credential",
    "User",
]

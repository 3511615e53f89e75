"""
Credential model.

Just the data structure - no business logic or class methods.
"""

from sqlalchemy import Boolean, CheckConstraint, Column, ForeignKey, Index, String, Text, text

from ..constants import DEFAULT_SCOPE, DEFAULT_UPDATED_BY
from .db_base import TimestampMixin, UUIDMixin
from .db_config import Base


class Credential(Base, UUIDMixin, TimestampMixin):
    """Stored credential row. Secret columns hold hashes only."""

    __tablename__ = "credentials"

    # Owner: exactly one of consumer_id / app_id, selected by consumer_type
    consumer_type = Column(String(10), nullable=False, default="user")
    consumer_id = Column(String(100), nullable=True, index=True)
    app_id = Column(String(36), ForeignKey("apps.id", ondelete="CASCADE"), nullable=True, index=True)

    type = Column(String(20), nullable=False, default="basic-auth")
    scope = Column(String(200), nullable=False, default=DEFAULT_SCOPE)
    is_active = Column(Boolean, nullable=False, default=False)

    # KEY
    key_id = Column(String(36), nullable=True, unique=True)
    key_secret_hash = Column(Text, nullable=True)
    # BASIC (password is the legacy plaintext echo, off unless enabled in config)
    password = Column(Text, nullable=True)
    password_hash = Column(Text, nullable=True)
    # JWT / OAUTH2
    secret_hash = Column(Text, nullable=True)

    updated_by = Column(String(100), nullable=True, default=DEFAULT_UPDATED_BY)

    __table_args__ = (
        CheckConstraint(
            "(consumer_type = 'user' AND consumer_id IS NOT NULL AND app_id IS NULL) OR "
            "(consumer_type = 'app' AND app_id IS NOT NULL AND consumer_id IS NULL)",
            name="ck_credentials_consumer",
        ),
        # One active credential per consumer; closes the create race at the store
        Index(
            "uq_credentials_active_consumer",
            "consumer_id",
            unique=True,
            sqlite_where=text("is_active = 1"),
            postgresql_where=text("is_active"),
        ),
        Index(
            "uq_credentials_active_app",
            "app_id",
            unique=True,
            sqlite_where=text("is_active = 1"),
            postgresql_where=text("is_active"),
        ),
        Index("ix_credentials_type_active", "type", "is_active"),
    )

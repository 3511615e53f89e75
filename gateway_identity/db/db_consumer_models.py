"""
User and app models (credential consumers).

Just the data structure - no business logic or class methods.
"""

from sqlalchemy import Boolean, Column, ForeignKey, String, Text

from .db_base import TimestampMixin, UUIDMixin
from .db_config import Base


class User(Base, UUIDMixin, TimestampMixin):
    """Human user; carries the role read by the roles guard."""

    __tablename__ = "users"

    username = Column(String(100), nullable=False, unique=True, index=True)
    email = Column(String(200), nullable=True, unique=True)
    firstname = Column(String(100), nullable=True)
    lastname = Column(String(100), nullable=True)
    redirect_uri = Column(String(500), nullable=True)
    role = Column(String(20), nullable=False, default="user")
    password_hash = Column(Text, nullable=True)


class App(Base, UUIDMixin, TimestampMixin):
    """Registered application that can hold credentials of its own."""

    __tablename__ = "apps"

    name = Column(String(200), nullable=False)
    description = Column(String(500), nullable=True)
    redirect_uri = Column(String(500), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=True)

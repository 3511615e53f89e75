"""
User and app registries, plus the consumer resolution used before a
credential is issued.
"""

from typing import List, Optional

from sqlalchemy import or_

from ..db.db_consumer_models import App, User
from ..enums import ConsumerType, UserRole
from ..schemas.user_schemas import AppRead, UserRead, UserWithPassword
from .base_repository import BaseRepository


class UserRepository(BaseRepository):
    """User registry."""

    entity_name = "User"

    def create(
        self,
        username: str,
        email: str,
        role: UserRole = UserRole.USER,
        password_hash: Optional[str] = None,
        user_id: Optional[str] = None,
        **profile,
    ) -> UserRead:
        """
        Insert a user.

        Raises:
            RepositoryError: DUPLICATE if the username or email is taken
        """
        try:
            with self.db_manager.session_scope() as session:
                row = User(
                    username=username,
                    email=email,
                    role=UserRole(role).value,
                    password_hash=password_hash,
                    **profile,
                )
                if user_id:
                    row.id = user_id
                session.add(row)
                session.flush()
                session.refresh(row)
                user = UserRead.model_validate(row)

            self.logger.info("User created", extra={"user_id": user.id, "role": user.role.value})
            return user
        except Exception as e:
            self._handle_db_error(e, "create", username=username)

    def find_by_id(self, user_id: str) -> Optional[UserRead]:
        try:
            with self.db_manager.session_scope() as session:
                row = session.get(User, user_id)
                return UserRead.model_validate(row) if row is not None else None
        except Exception as e:
            self._handle_db_error(e, "find_by_id", user_id)

    def find_by_username(self, username: str) -> Optional[UserWithPassword]:
        """Find a user by login name, including the stored password hash."""
        try:
            with self.db_manager.session_scope() as session:
                row = session.query(User).filter(User.username == username).first()
                return UserWithPassword.model_validate(row) if row is not None else None
        except Exception as e:
            self._handle_db_error(e, "find_by_username", username=username)

    def find_by_reference(self, reference: str) -> Optional[UserRead]:
        """Find a user by id or, failing that, by username."""
        try:
            with self.db_manager.session_scope() as session:
                row = (
                    session.query(User)
                    .filter(or_(User.id == reference, User.username == reference))
                    .order_by((User.id == reference).desc())
                    .first()
                )
                return UserRead.model_validate(row) if row is not None else None
        except Exception as e:
            self._handle_db_error(e, "find_by_reference", reference=reference)

    def update_role(self, user_id: str, role: UserRole) -> Optional[UserRead]:
        try:
            with self.db_manager.session_scope() as session:
                row = session.get(User, user_id)
                if row is None:
                    return None
                row.role = UserRole(role).value
                session.flush()
                session.refresh(row)
                user = UserRead.model_validate(row)

            self.logger.info("User role changed", extra={"user_id": user_id, "role": user.role.value})
            return user
        except Exception as e:
            self._handle_db_error(e, "update_role", user_id)


class AppRepository(BaseRepository):
    """Registered application registry."""

    entity_name = "App"

    def create(
        self,
        name: str,
        description: Optional[str] = None,
        redirect_uri: Optional[str] = None,
        user_id: Optional[str] = None,
        app_id: Optional[str] = None,
        is_active: bool = True,
    ) -> AppRead:
        try:
            with self.db_manager.session_scope() as session:
                row = App(
                    name=name,
                    description=description,
                    redirect_uri=redirect_uri,
                    user_id=user_id,
                    is_active=is_active,
                )
                if app_id:
                    row.id = app_id
                session.add(row)
                session.flush()
                session.refresh(row)
                app = AppRead.model_validate(row)

            self.logger.info("App registered", extra={"app_id": app.id})
            return app
        except Exception as e:
            self._handle_db_error(e, "create", name=name)

    def find_by_id(self, app_id: str) -> Optional[AppRead]:
        try:
            with self.db_manager.session_scope() as session:
                row = session.get(App, app_id)
                return AppRead.model_validate(row) if row is not None else None
        except Exception as e:
            self._handle_db_error(e, "find_by_id", app_id)

    def find_by_user_id(self, user_id: str) -> List[AppRead]:
        try:
            with self.db_manager.session_scope() as session:
                rows = session.query(App).filter(App.user_id == user_id).order_by(App.name).all()
                return [AppRead.model_validate(row) for row in rows]
        except Exception as e:
            self._handle_db_error(e, "find_by_user_id", user_id=user_id)

    def find_by_active(self, is_active: bool = True) -> List[AppRead]:
        try:
            with self.db_manager.session_scope() as session:
                rows = session.query(App).filter(App.is_active == is_active).order_by(App.name).all()
                return [AppRead.model_validate(row) for row in rows]
        except Exception as e:
            self._handle_db_error(e, "find_by_active", is_active=is_active)

    def update_active(self, app_id: str, is_active: bool) -> Optional[AppRead]:
        """Set whether an app may act as a consumer. Returns None if the app is missing."""
        try:
            with self.db_manager.session_scope() as session:
                row = session.get(App, app_id)
                if row is None:
                    return None
                row.is_active = is_active
                session.flush()
                session.refresh(row)
                app = AppRead.model_validate(row)

            self.logger.info("App activity changed", extra={"app_id": app_id, "is_active": is_active})
            return app
        except Exception as e:
            self._handle_db_error(e, "update_active", app_id)


class ConsumerRegistry:
    """Resolves the user or app named on a credential to its canonical id."""

    def __init__(self, users: UserRepository, apps: AppRepository):
        self.users = users
        self.apps = apps

    def resolve(self, consumer_type: ConsumerType, consumer_ref: str) -> Optional[str]:
        """
        Canonical id of an existing consumer.

        Users may be named by id or username; the id is returned either way.
        Inactive apps do not resolve.
        """
        if not consumer_ref:
            return None
        if ConsumerType(consumer_type) == ConsumerType.APP:
            app = self.apps.find_by_id(consumer_ref)
            return app.id if app is not None and app.is_active else None
        user = self.users.find_by_reference(consumer_ref)
        return user.id if user is not None else None

    def exists(self, consumer_type: ConsumerType, consumer_ref: str) -> bool:
        return self.resolve(consumer_type, consumer_ref) is not None

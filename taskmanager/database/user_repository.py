"""Repository for User database operations (credentials, sessions, avatar)."""

import logging
from datetime import datetime
from typing import Optional, Dict, Any
from sqlalchemy.orm import Session

from taskmanager.models.user import User
from taskmanager.database.models import UserDB, UserTokenDB

logger = logging.getLogger(__name__)


class UserRepository:
    """Repository for User database operations."""

    def __init__(self, db: Session):
        self.db = db

    def _get_db(self, user_id: str) -> Optional[UserDB]:
        return self.db.query(UserDB).filter(UserDB.id == user_id).first()

    def _commit(self, action: str, user_id: str) -> None:
        try:
            self.db.commit()
            logger.debug(f"{action} for user {user_id}")
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed: {action} for user {user_id}: {type(e).__name__}: {str(e)}")
            raise

    def get(self, user_id: str) -> Optional[User]:
        """Get user by ID."""
        user_db = self._get_db(user_id)
        return user_db.to_pydantic() if user_db else None

    def get_by_email(self, email: str) -> Optional[User]:
        """Get user by (already normalized) email."""
        user_db = self.db.query(UserDB).filter(UserDB.email == email).first()
        return user_db.to_pydantic() if user_db else None

    def create(self, user: User) -> User:
        """Insert a new user. Raises IntegrityError on a duplicate email."""
        try:
            user_db = UserDB.from_pydantic(user)
            self.db.add(user_db)
            self.db.commit()
            self.db.refresh(user_db)
            logger.debug(f"Created user {user.id}")
            return user_db.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to create user {user.id}: {type(e).__name__}: {str(e)}")
            raise

    def update(self, user_id: str, fields: Dict[str, Any]) -> Optional[User]:
        """Apply already-validated profile columns. Returns None if the user is gone."""
        user_db = self._get_db(user_id)
        if not user_db:
            return None
        for name, value in fields.items():
            setattr(user_db, name, value)
        user_db.updated_at = datetime.utcnow()
        self._commit(f"Updated {sorted(fields)}", user_id)
        self.db.refresh(user_db)
        return user_db.to_pydantic()

    def delete(self, user_id: str) -> Optional[User]:
        """Delete a user and its tokens. Returns the deleted user, or None."""
        user_db = self._get_db(user_id)
        if not user_db:
            return None
        deleted = user_db.to_pydantic()
        self.db.delete(user_db)
        self._commit("Deleted user", user_id)
        return deleted

    # Session tokens

    def add_token(self, user_id: str, token: str) -> None:
        self.db.add(UserTokenDB(user_id=user_id, token=token, created_at=datetime.utcnow()))
        self._commit("Added session token", user_id)

    def has_token(self, user_id: str, token: str) -> bool:
        row = self.db.query(UserTokenDB.id).filter(
            UserTokenDB.user_id == user_id,
            UserTokenDB.token == token,
        ).first()
        return row is not None

    def remove_token(self, user_id: str, token: str) -> bool:
        """Remove exactly one token. Returns False if it was not present."""
        affected = self.db.query(UserTokenDB).filter(
            UserTokenDB.user_id == user_id,
            UserTokenDB.token == token,
        ).delete(synchronize_session=False)
        self._commit("Removed session token", user_id)
        return affected > 0

    def clear_tokens(self, user_id: str) -> int:
        affected = self.db.query(UserTokenDB).filter(
            UserTokenDB.user_id == user_id,
        ).delete(synchronize_session=False)
        self._commit(f"Removed {affected} session tokens", user_id)
        return int(affected)

    # Avatar

    def get_avatar(self, user_id: str) -> Optional[bytes]:
        row = self.db.query(UserDB.avatar).filter(UserDB.id == user_id).first()
        return row[0] if row else None

    def set_avatar(self, user_id: str, avatar: Optional[bytes]) -> bool:
        """Store (or clear, with None) the avatar. Returns False if the user is gone."""
        user_db = self._get_db(user_id)
        if not user_db:
            return False
        user_db.avatar = avatar
        user_db.updated_at = datetime.utcnow()
        self._commit("Cleared avatar" if avatar is None else "Stored avatar", user_id)
        return True

"""SQLAlchemy database models for the Task Manager API."""

from datetime import datetime
import uuid
from sqlalchemy import Column, String, Integer, Boolean, DateTime, LargeBinary, ForeignKey
from sqlalchemy.orm import relationship

from taskmanager.database.database import Base


class UserDB(Base):
    """Database model for User."""

    __tablename__ = "users"

    # Primary key
    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))

    # Profile
    name = Column(String, nullable=False)
    email = Column(String, nullable=False, unique=True, index=True)
    password_hash = Column(String, nullable=False)
    age = Column(Integer, nullable=False, default=0)

    # Normalized PNG bytes (see integrations.image_processor)
    avatar = Column(LargeBinary, nullable=True)

    # Timestamps
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Sessions, oldest first. Deleted together with the user.
    tokens = relationship(
        "UserTokenDB",
        order_by="UserTokenDB.id",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def to_pydantic(self):
        """Convert database model to Pydantic model."""
        from taskmanager.models.user import User
        return User(
            id=self.id,
            name=self.name,
            email=self.email,
            password_hash=self.password_hash,
            age=self.age or 0,
            tokens=[row.token for row in self.tokens],
            has_avatar=self.avatar is not None,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    @classmethod
    def from_pydantic(cls, user):
        """Create database model from Pydantic model (tokens and avatar excluded)."""
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            password_hash=user.password_hash,
            age=user.age,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


class UserTokenDB(Base):
    """One issued, not-yet-revoked session token for a user."""

    __tablename__ = "user_tokens"

    # Autoincrement id doubles as issue order.
    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    token = Column(String, nullable=False, unique=True, index=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)


class TaskDB(Base):
    """Database model for Task."""

    __tablename__ = "tasks"

    # Primary key
    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))

    # Owner. No ON DELETE CASCADE: tasks are removed explicitly before their owner.
    owner_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)

    # Basic fields
    description = Column(String, nullable=False)
    completed = Column(Boolean, nullable=False, default=False, index=True)

    # Timestamps
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_pydantic(self):
        """Convert database model to Pydantic model."""
        from taskmanager.models.task import Task
        return Task(
            id=self.id,
            owner_id=self.owner_id,
            description=self.description,
            completed=self.completed,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    @classmethod
    def from_pydantic(cls, task):
        """Create database model from Pydantic model."""
        return cls(
            id=task.id,
            owner_id=task.owner_id,
            description=task.description,
            completed=task.completed,
            created_at=task.created_at,
            updated_at=task.updated_at,
        )

"""User data models for the Task Manager API."""

from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field


class User(BaseModel):
    """Internal user record (never serialized to clients as-is)."""

    id: str = Field(..., description="Unique user identifier (UUID v4)")
    name: str = Field(..., description="Display name (trimmed, non-empty)")
    email: str = Field(..., description="Email address (trimmed, lowercased, unique)")
    password_hash: str = Field(..., description="bcrypt hash of the password")
    age: int = Field(0, ge=0, description="Age in years")
    tokens: List[str] = Field(default_factory=list, description="Currently valid session tokens, oldest first")
    has_avatar: bool = Field(False, description="Whether an avatar image is stored")
    created_at: datetime = Field(..., description="User creation timestamp")
    updated_at: datetime = Field(..., description="User last update timestamp")

    def to_public(self) -> "PublicUser":
        return PublicUser(
            id=self.id,
            name=self.name,
            email=self.email,
            age=self.age,
            has_avatar=self.has_avatar,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )


class PublicUser(BaseModel):
    """Client-facing user projection: no password hash, tokens or avatar bytes."""

    id: str
    name: str
    email: str
    age: int = 0
    has_avatar: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

"""Task data model for the Task Manager API."""

from datetime import datetime
from pydantic import BaseModel, Field


class Task(BaseModel):
    """Canonical Task model."""

    id: str = Field(..., description="Unique task identifier (UUID v4)")
    owner_id: str = Field(..., description="User ID who owns this task")
    description: str = Field(..., min_length=1, description="Task description (trimmed, non-empty)")
    completed: bool = Field(False, description="Whether the task is done")
    created_at: datetime = Field(..., description="Task creation timestamp")
    updated_at: datetime = Field(..., description="Task last update timestamp")

"""Task creation factory.

Centralizes id and timestamp assignment so every creation path produces
tasks with the same defaults.
"""

import uuid
from datetime import datetime
from typing import Optional

from taskmanager.models.task import Task


def create_task_base(
    owner_id: str,
    description: str,
    completed: Optional[bool] = None,
) -> Task:
    """Create a new, not-yet-persisted task for an owner.

    Args:
        owner_id: User ID who owns this task (required)
        description: Already-validated task description
        completed: Completion flag (defaults to False)

    Returns:
        Task object with id and timestamps assigned
    """
    now = datetime.utcnow()
    return Task(
        id=str(uuid.uuid4()),
        owner_id=owner_id,
        description=description,
        completed=completed if completed is not None else False,
        created_at=now,
        updated_at=now,
    )

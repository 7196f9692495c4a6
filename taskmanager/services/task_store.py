"""Ownership-scoped task store.

Validates client input, then delegates to TaskRepository, which filters every
query by owner. A task owned by another user surfaces as NotFoundError, the
same as a task that does not exist; there is no "forbidden" outcome.
"""

import logging
from typing import Any, List, Mapping, Optional

from sqlalchemy.orm import Session

from taskmanager.database.repository import TaskRepository
from taskmanager.errors import NotFoundError
from taskmanager.models.task import Task
from taskmanager.models.task_factory import create_task_base
from taskmanager.models.validation import (
    TaskQuery,
    validate_task_create,
    validate_task_update,
)

logger = logging.getLogger(__name__)

TASK_NOT_FOUND = "Task not found"


class TaskStore:
    """CRUD for tasks, always on behalf of one owner."""

    def __init__(self, db: Session):
        self.repository = TaskRepository(db)

    def create(self, owner_id: str, payload: Mapping[str, Any]) -> Task:
        fields = validate_task_create(payload).unwrap("Task not valid")
        task = create_task_base(
            owner_id=owner_id,
            description=fields["description"],
            completed=fields["completed"],
        )
        return self.repository.create(task)

    def list(self, owner_id: str, query: Optional[TaskQuery] = None) -> List[Task]:
        return self.repository.list(owner_id, query)

    def get(self, owner_id: str, task_id: str) -> Task:
        task = self.repository.get(owner_id, task_id)
        if task is None:
            raise NotFoundError(TASK_NOT_FOUND)
        return task

    def update(self, owner_id: str, task_id: str, payload: Mapping[str, Any]) -> Task:
        """Validate the whole update first; nothing is written if any field is bad."""
        fields = validate_task_update(payload).unwrap("Invalid task update")
        if not fields:
            return self.get(owner_id, task_id)
        task = self.repository.update(owner_id, task_id, fields)
        if task is None:
            raise NotFoundError(TASK_NOT_FOUND)
        return task

    def delete(self, owner_id: str, task_id: str) -> Task:
        task = self.repository.delete(owner_id, task_id)
        if task is None:
            raise NotFoundError(TASK_NOT_FOUND)
        return task

    def delete_all_for_owner(self, owner_id: str) -> int:
        count = self.repository.delete_all_for_owner(owner_id)
        logger.info(f"Removed {count} tasks for owner {owner_id}")
        return count

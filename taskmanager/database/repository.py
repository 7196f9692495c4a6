"""Repository layer for task database operations.

Every query is filtered by owner_id. A task that belongs to someone else is
never returned, updated or deleted; callers see it exactly like a missing one.
"""

import logging
from datetime import datetime
from typing import List, Optional, Dict, Any
from sqlalchemy.orm import Session
from sqlalchemy import asc, desc

from taskmanager.models.task import Task
from taskmanager.models.constants import SORT_DESC
from taskmanager.models.validation import TaskQuery
from taskmanager.database.models import TaskDB

logger = logging.getLogger(__name__)

_SORT_COLUMNS = {
    "description": TaskDB.description,
    "completed": TaskDB.completed,
    "created_at": TaskDB.created_at,
    "updated_at": TaskDB.updated_at,
}


class TaskRepository:
    """Repository for Task database operations, scoped to an owner."""

    def __init__(self, db: Session):
        self.db = db

    def _owned(self, owner_id: str, task_id: str) -> Optional[TaskDB]:
        return self.db.query(TaskDB).filter(
            TaskDB.id == task_id,
            TaskDB.owner_id == owner_id,
        ).first()

    def create(self, task: Task) -> Task:
        """Create a new task."""
        try:
            task_db = TaskDB.from_pydantic(task)
            self.db.add(task_db)
            self.db.commit()
            self.db.refresh(task_db)
            logger.debug(f"Created task {task.id} for owner {task.owner_id}")
            return task_db.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to create task {task.id}: {type(e).__name__}: {str(e)}")
            raise

    def get(self, owner_id: str, task_id: str) -> Optional[Task]:
        """Get task by ID for a specific owner."""
        task_db = self._owned(owner_id, task_id)
        return task_db.to_pydantic() if task_db else None

    def list(self, owner_id: str, query: Optional[TaskQuery] = None) -> List[Task]:
        """List an owner's tasks with optional filter, sort and pagination.

        Ties (and the unsorted case) fall back to creation order, then id, so
        the same inputs always yield the same sequence.
        """
        query = query or TaskQuery()
        q = self.db.query(TaskDB).filter(TaskDB.owner_id == owner_id)

        if query.completed is not None:
            q = q.filter(TaskDB.completed == query.completed)

        order_by = []
        if query.sort_field:
            column = _SORT_COLUMNS[query.sort_field]
            order_by.append(desc(column) if query.sort_direction == SORT_DESC else asc(column))
        order_by.extend([asc(TaskDB.created_at), asc(TaskDB.id)])
        q = q.order_by(*order_by)

        if query.skip:
            q = q.offset(query.skip)
        if query.limit:
            q = q.limit(query.limit)

        return [task_db.to_pydantic() for task_db in q.all()]

    def update(self, owner_id: str, task_id: str, fields: Dict[str, Any]) -> Optional[Task]:
        """Apply already-validated fields to an owned task.

        Returns None if the task does not exist for this owner.
        """
        task_db = self._owned(owner_id, task_id)
        if not task_db:
            return None

        for name, value in fields.items():
            setattr(task_db, name, value)
        task_db.updated_at = datetime.utcnow()

        try:
            self.db.commit()
            self.db.refresh(task_db)
            logger.debug(f"Updated task {task_id}: {sorted(fields)}")
            return task_db.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to update task {task_id}: {type(e).__name__}: {str(e)}")
            raise

    def delete(self, owner_id: str, task_id: str) -> Optional[Task]:
        """Delete an owned task. Returns the deleted task, or None if not found."""
        task_db = self._owned(owner_id, task_id)
        if not task_db:
            return None

        deleted = task_db.to_pydantic()
        try:
            self.db.delete(task_db)
            self.db.commit()
            logger.debug(f"Deleted task {task_id}")
            return deleted
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to delete task {task_id}: {type(e).__name__}: {str(e)}")
            raise

    def delete_all_for_owner(self, owner_id: str) -> int:
        """Delete every task an owner has. Returns the number removed."""
        try:
            affected = (
                self.db.query(TaskDB)
                .filter(TaskDB.owner_id == owner_id)
                .delete(synchronize_session=False)
            )
            self.db.commit()
            logger.debug(f"Deleted {affected} tasks for owner {owner_id}")
            return int(affected)
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to delete tasks for owner {owner_id}: {type(e).__name__}: {str(e)}")
            raise

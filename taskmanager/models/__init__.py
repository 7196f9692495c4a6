"""Data models for the Task Manager API."""

from taskmanager.models.task import Task
from taskmanager.models.user import User, PublicUser
from taskmanager.models.validation import Violation, ValidationResult, TaskQuery

__all__ = [
    "Task",
    "User",
    "PublicUser",
    "Violation",
    "ValidationResult",
    "TaskQuery",
]

"""Domain services for the Task Manager API."""

from taskmanager.services.task_store import TaskStore
from taskmanager.services.credential_store import CredentialStore

__all__ = [
    "TaskStore",
    "CredentialStore",
]

"""Error taxonomy for the Task Manager API.

Every error carries a human-readable message plus optional details. The API
layer maps each class to an HTTP status and the uniform response envelope.
"""

from typing import Optional, Dict, Any, List


class TaskManagerError(Exception):
    """Base exception for all Task Manager errors."""

    status_code = 500

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ValidationError(TaskManagerError):
    """Malformed or constraint-violating input."""

    status_code = 400

    def __init__(
        self,
        message: str,
        violations: Optional[List[Any]] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.violations = list(violations or [])
        if self.violations:
            self.details["violations"] = [
                {"field": v.field, "message": v.message} for v in self.violations
            ]


class AuthError(TaskManagerError):
    """Missing, invalid or revoked token, or bad login credentials."""

    status_code = 401


class NotFoundError(TaskManagerError):
    """Resource is absent or not owned by the caller."""

    status_code = 404


class InternalError(TaskManagerError):
    """Store failure or anything unexpected."""

    status_code = 500

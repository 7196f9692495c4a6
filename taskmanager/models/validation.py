"""Pure validation functions for request payloads.

Each validator takes raw client input and returns a ValidationResult: either a
normalized value ready for persistence, or the list of violations found. No
validator touches the database; uniqueness checks live in the services.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple

from email_validator import EmailNotValidError, validate_email

from taskmanager.errors import ValidationError
from taskmanager.models.constants import (
    FORBIDDEN_PASSWORD_SUBSTRING,
    MAX_PASSWORD_BYTES,
    MIN_PASSWORD_LENGTH,
    PROFILE_UPDATE_FIELDS,
    SORT_ASC,
    SORT_DIRECTIONS,
    TASK_CREATE_FIELDS,
    TASK_SORT_FIELDS,
    TASK_UPDATE_FIELDS,
)


@dataclass(frozen=True)
class Violation:
    field: str
    message: str


@dataclass(frozen=True)
class ValidationResult:
    """Either a normalized value or a non-empty tuple of violations."""

    value: Any = None
    violations: Tuple[Violation, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.violations

    def unwrap(self, message: str) -> Any:
        """Return the value, or raise ValidationError carrying the violations."""
        if self.violations:
            raise ValidationError(message, violations=list(self.violations))
        return self.value


@dataclass(frozen=True)
class TaskQuery:
    """Parsed GET /tasks query: filter, sort and pagination."""

    completed: Optional[bool] = None
    sort_field: Optional[str] = None
    sort_direction: str = SORT_ASC
    limit: Optional[int] = None
    skip: int = 0


def _result(value: Any, violations: List[Violation]) -> ValidationResult:
    if violations:
        return ValidationResult(violations=tuple(violations))
    return ValidationResult(value=value)


def _unknown_fields(payload: Mapping[str, Any], allowed: Tuple[str, ...]) -> List[Violation]:
    return [
        Violation(key, "Field is not allowed")
        for key in payload
        if key not in allowed
    ]


# Field-level checks. Each returns (normalized value, violation or None).

def check_name(value: Any) -> Tuple[Optional[str], Optional[Violation]]:
    if not isinstance(value, str) or not value.strip():
        return None, Violation("name", "Name is required")
    return value.strip(), None


def check_email(value: Any) -> Tuple[Optional[str], Optional[Violation]]:
    if not isinstance(value, str) or not value.strip():
        return None, Violation("email", "Email is required")
    email = value.strip().lower()
    try:
        validate_email(email, check_deliverability=False)
    except EmailNotValidError:
        return None, Violation("email", "Invalid email")
    return email, None


def check_password(value: Any) -> Tuple[Optional[str], Optional[Violation]]:
    if not isinstance(value, str) or not value.strip():
        return None, Violation("password", "Password is required")
    password = value.strip()
    if len(password) < MIN_PASSWORD_LENGTH:
        return None, Violation(
            "password", f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
        )
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        return None, Violation("password", f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
    if FORBIDDEN_PASSWORD_SUBSTRING in password.lower():
        return None, Violation("password", 'Password contains the word "password"')
    return password, None


def check_age(value: Any) -> Tuple[Optional[int], Optional[Violation]]:
    # bool is a subclass of int; JSON true/false is not an age.
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        return None, Violation("age", "Invalid age")
    return value, None


def check_description(value: Any) -> Tuple[Optional[str], Optional[Violation]]:
    if not isinstance(value, str) or not value.strip():
        return None, Violation("description", "Description is required")
    return value.strip(), None


def check_completed(value: Any) -> Tuple[Optional[bool], Optional[Violation]]:
    if not isinstance(value, bool):
        return None, Violation("completed", "Completed must be a boolean")
    return value, None


_PROFILE_CHECKS = {
    "name": check_name,
    "email": check_email,
    "password": check_password,
    "age": check_age,
}

_TASK_CHECKS = {
    "description": check_description,
    "completed": check_completed,
}


def _apply_checks(payload: Mapping[str, Any], checks, fields) -> Tuple[Dict[str, Any], List[Violation]]:
    value: Dict[str, Any] = {}
    violations: List[Violation] = []
    for name in fields:
        if name not in payload:
            continue
        normalized, violation = checks[name](payload[name])
        if violation:
            violations.append(violation)
        else:
            value[name] = normalized
    return value, violations


def validate_registration(payload: Mapping[str, Any]) -> ValidationResult:
    """Validate a sign-up payload: name, email, password required; age optional.

    Keys other than the profile fields are ignored.
    """
    violations: List[Violation] = []
    for required in ("name", "email", "password"):
        if required not in payload:
            violations.append(Violation(required, f"{required.capitalize()} is required"))
    value, field_violations = _apply_checks(payload, _PROFILE_CHECKS, PROFILE_UPDATE_FIELDS)
    violations.extend(field_violations)
    value.setdefault("age", 0)
    return _result(value, violations)


def validate_login(payload: Mapping[str, Any]) -> ValidationResult:
    """Validate a login payload. Only presence and type are checked here."""
    violations: List[Violation] = []
    value: Dict[str, str] = {}
    for name in ("email", "password"):
        raw = payload.get(name)
        if not isinstance(raw, str) or not raw.strip():
            violations.append(Violation(name, f"{name.capitalize()} is required"))
        else:
            value[name] = raw.strip()
    if "email" in value:
        value["email"] = value["email"].lower()
    return _result(value, violations)


def validate_profile_update(payload: Mapping[str, Any]) -> ValidationResult:
    """Validate a profile update: any subset of name/email/password/age."""
    violations = _unknown_fields(payload, PROFILE_UPDATE_FIELDS)
    value, field_violations = _apply_checks(payload, _PROFILE_CHECKS, PROFILE_UPDATE_FIELDS)
    violations.extend(field_violations)
    return _result(value, violations)


def validate_task_create(payload: Mapping[str, Any]) -> ValidationResult:
    """Validate a new task: description required, completed optional.

    Unknown keys (including any client-supplied owner) are ignored.
    """
    violations: List[Violation] = []
    if "description" not in payload:
        violations.append(Violation("description", "Description is required"))
    value, field_violations = _apply_checks(payload, _TASK_CHECKS, TASK_CREATE_FIELDS)
    violations.extend(field_violations)
    value.setdefault("completed", False)
    return _result(value, violations)


def validate_task_update(payload: Mapping[str, Any]) -> ValidationResult:
    """Validate a task update. Any unknown key invalidates the whole update.

    An empty payload is valid and changes nothing.
    """
    violations = _unknown_fields(payload, TASK_UPDATE_FIELDS)
    value, field_violations = _apply_checks(payload, _TASK_CHECKS, TASK_UPDATE_FIELDS)
    violations.extend(field_violations)
    return _result(value, violations)


def _parse_non_negative_int(name: str, raw: Optional[str]) -> Tuple[Optional[int], Optional[Violation]]:
    if raw is None or raw == "":
        return None, None
    try:
        number = int(raw)
    except (TypeError, ValueError):
        return None, Violation(name, f"{name} must be a non-negative integer")
    if number < 0:
        return None, Violation(name, f"{name} must be a non-negative integer")
    return number, None


def parse_sort_by(raw: str) -> Tuple[Optional[Tuple[str, str]], Optional[Violation]]:
    """Parse `field`, `field_dir` or `field:dir` into (field, direction)."""
    text = raw.strip()
    if ":" in text:
        field_name, _, direction = text.partition(":")
    else:
        head, sep, tail = text.rpartition("_")
        if sep and tail.lower() in SORT_DIRECTIONS:
            field_name, direction = head, tail
        else:
            field_name, direction = text, SORT_ASC
    field_name = field_name.strip()
    direction = (direction.strip() or SORT_ASC).lower()
    if field_name not in TASK_SORT_FIELDS:
        return None, Violation("sortBy", f"Cannot sort by '{field_name}'")
    if direction not in SORT_DIRECTIONS:
        return None, Violation("sortBy", f"Unknown sort direction '{direction}'")
    return (field_name, direction), None


def parse_task_query(
    completed: Optional[str] = None,
    sort_by: Optional[str] = None,
    limit: Optional[str] = None,
    skip: Optional[str] = None,
) -> ValidationResult:
    """Parse raw GET /tasks query strings into a TaskQuery."""
    violations: List[Violation] = []

    completed_value: Optional[bool] = None
    if completed is not None and completed != "":
        lowered = completed.strip().lower()
        if lowered == "true":
            completed_value = True
        elif lowered == "false":
            completed_value = False
        else:
            violations.append(Violation("completed", "completed must be 'true' or 'false'"))

    sort_field: Optional[str] = None
    sort_direction = SORT_ASC
    if sort_by:
        parsed, violation = parse_sort_by(sort_by)
        if violation:
            violations.append(violation)
        else:
            sort_field, sort_direction = parsed

    limit_value, violation = _parse_non_negative_int("limit", limit)
    if violation:
        violations.append(violation)
    skip_value, violation = _parse_non_negative_int("skip", skip)
    if violation:
        violations.append(violation)

    query = TaskQuery(
        completed=completed_value,
        sort_field=sort_field,
        sort_direction=sort_direction,
        # limit=0 means "no bound"
        limit=limit_value or None,
        skip=skip_value or 0,
    )
    return _result(query, violations)

"""Credential store: registration, login lookup, profile, avatar, deletion.

Password hashing is explicit. Every path that accepts a new password calls
set_password, which always hashes; nothing hashes implicitly on save.
"""

import logging
import uuid
from datetime import datetime
from typing import Any, Mapping, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from taskmanager.auth.passwords import hash_password, verify_password
from taskmanager.database.user_repository import UserRepository
from taskmanager.errors import AuthError, NotFoundError, ValidationError
from taskmanager.integrations.image_processor import ImageProcessingError, ImageProcessor, PillowImageProcessor
from taskmanager.integrations.notifier import Notifier
from taskmanager.models.constants import AVATAR_ALLOWED_EXTENSIONS, AVATAR_MAX_BYTES
from taskmanager.models.user import User
from taskmanager.models.validation import (
    Violation,
    validate_login,
    validate_profile_update,
    validate_registration,
)
from taskmanager.services.task_store import TaskStore

logger = logging.getLogger(__name__)

LOGIN_FAILED = "Unable to log in"
EMAIL_TAKEN = Violation("email", "Email is already registered")


class CredentialStore:
    """User accounts and their credentials."""

    def __init__(
        self,
        db: Session,
        notifier: Optional[Notifier] = None,
        image_processor: Optional[ImageProcessor] = None,
    ):
        self.db = db
        self.users = UserRepository(db)
        self.tasks = TaskStore(db)
        self.notifier = notifier
        self.image_processor = image_processor or PillowImageProcessor()

    @staticmethod
    def set_password(raw_password: str) -> str:
        """Hash an already-validated plaintext password for storage."""
        return hash_password(raw_password)

    def register(self, payload: Mapping[str, Any]) -> User:
        """Create a user from a sign-up payload.

        Raises:
            ValidationError: invalid fields or email already registered
        """
        fields = validate_registration(payload).unwrap("Profile not valid")
        if self.users.get_by_email(fields["email"]) is not None:
            raise ValidationError("Profile not valid", violations=[EMAIL_TAKEN])

        now = datetime.utcnow()
        user = User(
            id=str(uuid.uuid4()),
            name=fields["name"],
            email=fields["email"],
            password_hash=self.set_password(fields["password"]),
            age=fields["age"],
            created_at=now,
            updated_at=now,
        )
        try:
            created = self.users.create(user)
        except IntegrityError as e:
            # Lost a race with a concurrent sign-up for the same email.
            raise ValidationError("Profile not valid", violations=[EMAIL_TAKEN]) from e

        logger.info(f"Registered user {created.id}")
        self._notify("send_welcome_email", created)
        return created

    def find_by_credentials(self, email: str, password: str) -> User:
        """Look up a user by email and check the password.

        Unknown email and wrong password fail identically.
        """
        user = self.users.get_by_email(email.strip().lower())
        if user is None or not verify_password(password, user.password_hash):
            raise AuthError(LOGIN_FAILED)
        return user

    def authenticate(self, payload: Mapping[str, Any]) -> User:
        """Validate a login payload and resolve it to a user."""
        result = validate_login(payload)
        if not result.ok:
            raise AuthError(LOGIN_FAILED)
        return self.find_by_credentials(result.value["email"], result.value["password"])

    def update_profile(self, user_id: str, payload: Mapping[str, Any]) -> User:
        """Apply a subset of name/email/password/age after validating all of it."""
        fields = validate_profile_update(payload).unwrap("Profile not valid")

        if "email" in fields:
            existing = self.users.get_by_email(fields["email"])
            if existing is not None and existing.id != user_id:
                raise ValidationError("Profile not valid", violations=[EMAIL_TAKEN])

        columns = dict(fields)
        if "password" in columns:
            columns["password_hash"] = self.set_password(columns.pop("password"))

        try:
            updated = self.users.update(user_id, columns)
        except IntegrityError as e:
            raise ValidationError("Profile not valid", violations=[EMAIL_TAKEN]) from e
        if updated is None:
            raise NotFoundError("User not found")
        return updated

    def delete_account(self, user_id: str) -> User:
        """Delete the user's tasks, then the user (and its sessions).

        These are two separate commits. If the process dies in between, the
        user survives with no tasks; the next delete attempt finishes the job.
        """
        user = self.users.get(user_id)
        if user is None:
            raise NotFoundError("User not found")

        self.tasks.delete_all_for_owner(user_id)
        deleted = self.users.delete(user_id)
        if deleted is None:
            raise NotFoundError("User not found")

        logger.info(f"Deleted user {user_id}")
        self._notify("send_cancellation_email", deleted)
        return deleted

    # Avatar

    def set_avatar(self, user_id: str, data: bytes, filename: Optional[str]) -> None:
        """Validate, normalize and store an avatar upload."""
        name = (filename or "").lower()
        if not name.endswith(AVATAR_ALLOWED_EXTENSIONS):
            raise ValidationError(
                "Please upload an image",
                violations=[Violation("avatar", "File must be a .jpg, .jpeg or .png image")],
            )
        if not data:
            raise ValidationError("Please upload an image", violations=[Violation("avatar", "File is empty")])
        if len(data) > AVATAR_MAX_BYTES:
            raise ValidationError(
                "File too large",
                violations=[Violation("avatar", f"File must be at most {AVATAR_MAX_BYTES} bytes")],
            )
        try:
            normalized = self.image_processor.normalize_avatar(data)
        except ImageProcessingError as e:
            raise ValidationError("Please upload an image", violations=[Violation("avatar", str(e))]) from e

        if not self.users.set_avatar(user_id, normalized):
            raise NotFoundError("User not found")

    def remove_avatar(self, user_id: str) -> None:
        if not self.users.set_avatar(user_id, None):
            raise NotFoundError("User not found")

    def get_avatar(self, user_id: str) -> bytes:
        """Return stored PNG bytes. Missing user and missing avatar look the same."""
        avatar = self.users.get_avatar(user_id)
        if not avatar:
            raise NotFoundError("Avatar not found")
        return avatar

    def _notify(self, method: str, user: User) -> None:
        if self.notifier is None:
            return
        try:
            getattr(self.notifier, method)(user.email, user.name)
        except Exception as e:
            logger.warning(f"Notifier {method} failed for user {user.id}: {type(e).__name__}: {str(e)}")

"""Session lifecycle: issue, verify and revoke bearer tokens.

Tokens live on the user record itself (the user_tokens table); there is no
separate session store. A token is valid only while it is both correctly
signed and still present in its user's token list, which is what makes
logout effective per device.
"""

import logging
from typing import NamedTuple

from sqlalchemy.orm import Session

from taskmanager.auth.jwt import create_access_token, get_user_id_from_token
from taskmanager.database.user_repository import UserRepository
from taskmanager.errors import AuthError
from taskmanager.models.user import User

logger = logging.getLogger(__name__)


class AuthenticatedSession(NamedTuple):
    """The user a request is authenticated as, plus the exact token it used."""

    user: User
    token: str


class SessionManager:
    """Issues, verifies and revokes session tokens for users."""

    def __init__(self, db: Session):
        self.users = UserRepository(db)

    def issue_token(self, user_id: str) -> str:
        """Sign a new token for the user and append it to their token list."""
        token = create_access_token(user_id)
        self.users.add_token(user_id, token)
        logger.info(f"Issued session token for user {user_id}")
        return token

    def verify_token(self, token: str) -> AuthenticatedSession:
        """Resolve a token to its user.

        Raises:
            AuthError: bad signature, unknown user, or token already revoked
        """
        user_id = get_user_id_from_token(token) if token else None
        if not user_id:
            raise AuthError("Invalid token")

        user = self.users.get(user_id)
        if user is None:
            raise AuthError("User not found")

        if not self.users.has_token(user_id, token):
            raise AuthError("Token has been revoked")

        return AuthenticatedSession(user=user, token=token)

    def revoke_token(self, user_id: str, token: str) -> bool:
        """Remove exactly this token; other sessions stay valid."""
        removed = self.users.remove_token(user_id, token)
        logger.info(f"Revoked session token for user {user_id} (present={removed})")
        return removed

    def revoke_all_tokens(self, user_id: str) -> int:
        """Remove every token the user has (logout on all devices)."""
        count = self.users.clear_tokens(user_id)
        logger.info(f"Revoked {count} session tokens for user {user_id}")
        return count

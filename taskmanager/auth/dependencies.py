"""FastAPI dependencies for authentication."""

import logging

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from taskmanager.database.database import get_db
from taskmanager.auth.session_manager import SessionManager, AuthenticatedSession
from taskmanager.errors import AuthError
from taskmanager.models.user import User

logger = logging.getLogger(__name__)

# HTTP Bearer token security scheme. auto_error=False so a missing header
# reaches our own AuthError handler and gets the uniform envelope.
security = HTTPBearer(auto_error=False)

NOT_AUTHENTICATED = "Please authenticate"


def get_current_session(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> AuthenticatedSession:
    """Resolve the request's bearer token to a user and the token itself.

    The token is kept alongside the user because logout must revoke only the
    session that made the request.

    Raises:
        AuthError: If the header is missing or the token does not verify
    """
    if not credentials or not credentials.credentials:
        raise AuthError(NOT_AUTHENTICATED)
    try:
        return SessionManager(db).verify_token(credentials.credentials)
    except AuthError as e:
        # Same answer for every failure; the reason stays in the logs.
        logger.info(f"Rejected bearer token: {e.message}")
        raise AuthError(NOT_AUTHENTICATED) from e


def get_current_user(
    session: AuthenticatedSession = Depends(get_current_session),
) -> User:
    """Get current authenticated user."""
    return session.user

"""Signed session token generation and decoding.

Tokens carry no expiry: a session stays valid until it is revoked by logout,
logout-all or account deletion (see auth.session_manager).
"""

import os
import secrets
import jwt
from datetime import datetime, timezone
from typing import Optional, Dict
from dotenv import load_dotenv

load_dotenv()

# JWT configuration
JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "change-me-in-production")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")


def create_access_token(user_id: str) -> str:
    """Create a signed token for a user.

    Args:
        user_id: User ID to encode in token

    Returns:
        Encoded JWT token string
    """
    payload = {
        "sub": user_id,  # Subject (user ID)
        "iat": datetime.now(timezone.utc),  # Issued at
        # Two logins in the same second must still get distinct tokens.
        "jti": secrets.token_hex(8),
    }
    return jwt.encode(payload, JWT_SECRET_KEY, algorithm=JWT_ALGORITHM)


def decode_access_token(token: str) -> Optional[Dict]:
    """Decode and verify a token's signature.

    Args:
        token: JWT token string to decode

    Returns:
        Decoded payload (dict with 'sub' key for user_id), or None if invalid
    """
    try:
        return jwt.decode(
            token,
            JWT_SECRET_KEY,
            algorithms=[JWT_ALGORITHM],
            options={"require": ["sub"]},
        )
    except jwt.InvalidTokenError:
        return None


def get_user_id_from_token(token: str) -> Optional[str]:
    """Extract user ID from a token.

    Args:
        token: JWT token string

    Returns:
        User ID string, or None if token is invalid
    """
    payload = decode_access_token(token)
    if payload:
        return payload.get("sub")
    return None

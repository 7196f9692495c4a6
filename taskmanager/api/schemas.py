"""Request/response models for the HTTP API."""

from typing import Any
from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel

from taskmanager.models.user import PublicUser


class AuthPayload(BaseModel):
    """Data returned by sign-up and login."""

    user: PublicUser
    token: str


def envelope(success: bool, message: str, data: Any = None) -> dict:
    """Build a JSON-ready envelope, leaving out `data` when it is None."""
    body = {"success": success, "message": message}
    if data is not None:
        body["data"] = jsonable_encoder(data)
    return body

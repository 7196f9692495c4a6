"""FastAPI web application for the Task Manager API.

Every JSON response uses the envelope {success, message, data?}. Handlers
raise domain errors from taskmanager.errors; the exception handlers below
turn them into envelopes with the matching status code.
"""

import logging
from contextlib import asynccontextmanager, contextmanager
from typing import Any, Dict, Optional

from fastapi import Body, Depends, FastAPI, File, Query, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException

from taskmanager.api.schemas import AuthPayload, envelope
from taskmanager.auth.dependencies import get_current_session, get_current_user
from taskmanager.auth.session_manager import AuthenticatedSession, SessionManager
from taskmanager.database.database import get_db, init_db
from taskmanager.errors import AuthError, InternalError, NotFoundError, TaskManagerError, ValidationError
from taskmanager.integrations.image_processor import ImageProcessor, get_image_processor
from taskmanager.integrations.notifier import Notifier, get_notifier
from taskmanager.logging_config import setup_logging
from taskmanager.models.constants import AVATAR_CONTENT_TYPE, AVATAR_MAX_BYTES
from taskmanager.models.user import User
from taskmanager.models.validation import parse_task_query
from taskmanager.services.credential_store import CredentialStore
from taskmanager.services.task_store import TaskStore

logger = logging.getLogger(__name__)

VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    init_db()
    logger.info(f"Task Manager API {VERSION} started")
    yield


# Initialize FastAPI app
app = FastAPI(
    title="Task Manager API",
    description="Register, log in, and manage your own tasks",
    version=VERSION,
    lifespan=lifespan,
)


# Exception handlers

@app.exception_handler(TaskManagerError)
async def handle_task_manager_error(request: Request, exc: TaskManagerError):
    headers = None
    if isinstance(exc, AuthError) and exc.status_code == 401:
        headers = {"WWW-Authenticate": "Bearer"}
    data = {"violations": exc.details["violations"]} if exc.details.get("violations") else None
    return JSONResponse(
        status_code=exc.status_code,
        content=envelope(False, exc.message, data),
        headers=headers,
    )


@app.exception_handler(RequestValidationError)
async def handle_request_validation_error(request: Request, exc: RequestValidationError):
    violations = [
        {"field": ".".join(str(part) for part in err.get("loc", ())), "message": err.get("msg", "")}
        for err in exc.errors()
    ]
    return JSONResponse(status_code=400, content=envelope(False, "Invalid request", {"violations": violations}))


@app.exception_handler(StarletteHTTPException)
async def handle_http_exception(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content=envelope(False, str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def handle_unexpected_error(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content=envelope(False, "Internal server error"))


@contextmanager
def internal_errors(message: str):
    """Re-raise anything that is not already a domain error as InternalError."""
    try:
        yield
    except TaskManagerError:
        raise
    except Exception as e:
        logger.error(f"{message}: {type(e).__name__}: {str(e)}")
        raise InternalError(message) from e


def _respond(status_code: int, message: str, data: Any = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=envelope(True, message, data))


# Service dependencies

def get_credential_store(
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
    image_processor: ImageProcessor = Depends(get_image_processor),
) -> CredentialStore:
    return CredentialStore(db, notifier=notifier, image_processor=image_processor)


def get_task_store(db: Session = Depends(get_db)) -> TaskStore:
    return TaskStore(db)


def get_session_manager(db: Session = Depends(get_db)) -> SessionManager:
    return SessionManager(db)


def _body(payload: Any) -> Dict[str, Any]:
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")
    return payload


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy", "version": VERSION}


# Users

@app.post("/users", status_code=201)
def create_user(
    payload: Optional[Any] = Body(None),
    credentials: CredentialStore = Depends(get_credential_store),
    sessions: SessionManager = Depends(get_session_manager),
):
    """Register a new user and log them in."""
    with internal_errors("Failed to create profile"):
        user = credentials.register(_body(payload))
        token = sessions.issue_token(user.id)
    return _respond(201, "Profile created", AuthPayload(user=user.to_public(), token=token))


@app.post("/users/login")
def login(
    payload: Optional[Any] = Body(None),
    credentials: CredentialStore = Depends(get_credential_store),
    sessions: SessionManager = Depends(get_session_manager),
):
    """Log in with email and password; returns a new session token."""
    try:
        with internal_errors("Failed to log in"):
            user = credentials.authenticate(_body(payload))
            token = sessions.issue_token(user.id)
    except (AuthError, ValidationError):
        # Never reveal whether the email or the password was wrong.
        return JSONResponse(status_code=400, content=envelope(False, "Failed to log in"))
    return _respond(200, "Logged in", AuthPayload(user=user.to_public(), token=token))


@app.post("/users/logout")
def logout(
    session: AuthenticatedSession = Depends(get_current_session),
    sessions: SessionManager = Depends(get_session_manager),
):
    """Revoke the token this request was made with."""
    with internal_errors("Failed to log out on this device"):
        sessions.revoke_token(session.user.id, session.token)
    return _respond(200, "Logged out on this device")


@app.post("/users/logoutall")
def logout_all(
    user: User = Depends(get_current_user),
    sessions: SessionManager = Depends(get_session_manager),
):
    """Revoke every token the user has."""
    with internal_errors("Failed to log out on all devices"):
        sessions.revoke_all_tokens(user.id)
    return _respond(200, "Logged out on all devices")


@app.get("/users/me")
def read_profile(user: User = Depends(get_current_user)):
    return _respond(200, "Fetched profile", user.to_public())


@app.patch("/users/me")
def update_profile(
    payload: Optional[Any] = Body(None),
    user: User = Depends(get_current_user),
    credentials: CredentialStore = Depends(get_credential_store),
):
    """Update any subset of name, email, password and age."""
    with internal_errors("Failed to update profile"):
        updated = credentials.update_profile(user.id, _body(payload))
    return _respond(200, "Updated profile", updated.to_public())


@app.delete("/users/me")
def delete_profile(
    user: User = Depends(get_current_user),
    credentials: CredentialStore = Depends(get_credential_store),
):
    """Delete the account, its sessions and all of its tasks."""
    with internal_errors("Failed to delete profile"):
        deleted = credentials.delete_account(user.id)
    return _respond(200, "Deleted profile", deleted.to_public())


@app.post("/users/me/avatar")
def upload_avatar(
    avatar: UploadFile = File(...),
    user: User = Depends(get_current_user),
    credentials: CredentialStore = Depends(get_credential_store),
):
    """Store an avatar (jpg/jpeg/png, at most 1 MB), normalized to PNG."""
    # Read one byte past the limit so oversized uploads are detectable.
    data = avatar.file.read(AVATAR_MAX_BYTES + 1)
    with internal_errors("Failed to upload avatar"):
        credentials.set_avatar(user.id, data, avatar.filename)
    return _respond(200, "Uploaded avatar")


@app.delete("/users/me/avatar")
def delete_avatar(
    user: User = Depends(get_current_user),
    credentials: CredentialStore = Depends(get_credential_store),
):
    with internal_errors("Failed to delete avatar"):
        credentials.remove_avatar(user.id)
    return _respond(200, "Deleted avatar")


@app.get("/users/{user_id}/avatar")
def read_avatar(
    user_id: str,
    credentials: CredentialStore = Depends(get_credential_store),
):
    """Serve a user's avatar as PNG. Public: no authentication required."""
    with internal_errors("Failed to fetch avatar"):
        try:
            avatar = credentials.get_avatar(user_id)
        except NotFoundError as e:
            return JSONResponse(status_code=400, content=envelope(False, e.message))
    return Response(content=avatar, media_type=AVATAR_CONTENT_TYPE)


# Tasks

@app.post("/tasks", status_code=201)
def create_task(
    payload: Optional[Any] = Body(None),
    user: User = Depends(get_current_user),
    tasks: TaskStore = Depends(get_task_store),
):
    with internal_errors("Failed to create task"):
        task = tasks.create(user.id, _body(payload))
    return _respond(201, "Task created", task)


@app.get("/tasks")
def list_tasks(
    completed: Optional[str] = Query(None),
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    limit: Optional[str] = Query(None),
    skip: Optional[str] = Query(None),
    user: User = Depends(get_current_user),
    tasks: TaskStore = Depends(get_task_store),
):
    """List the caller's tasks.

    Query: completed=true|false, sortBy=<field>_<asc|desc> (or field:dir),
    limit and skip as non-negative integers.
    """
    query = parse_task_query(completed=completed, sort_by=sort_by, limit=limit, skip=skip).unwrap(
        "Invalid query"
    )
    with internal_errors("Failed to fetch tasks"):
        result = tasks.list(user.id, query)
    return _respond(200, "Fetched tasks", result)


@app.get("/tasks/{task_id}")
def read_task(
    task_id: str,
    user: User = Depends(get_current_user),
    tasks: TaskStore = Depends(get_task_store),
):
    with internal_errors("Failed to fetch task"):
        task = tasks.get(user.id, task_id)
    return _respond(200, "Fetched task", task)


@app.patch("/tasks/{task_id}")
def update_task(
    task_id: str,
    payload: Optional[Any] = Body(None),
    user: User = Depends(get_current_user),
    tasks: TaskStore = Depends(get_task_store),
):
    """Update description and/or completed. Any other key rejects the whole update."""
    with internal_errors("Failed to update task"):
        task = tasks.update(user.id, task_id, _body(payload))
    return _respond(200, "Updated task", task)


@app.delete("/tasks/{task_id}")
def delete_task(
    task_id: str,
    user: User = Depends(get_current_user),
    tasks: TaskStore = Depends(get_task_store),
):
    with internal_errors("Failed to delete task"):
        task = tasks.delete(user.id, task_id)
    return _respond(200, "Deleted task", task)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)

"""Pytest fixtures and configuration for Task Manager tests."""

import os

# Must be set before taskmanager modules read them at import time.
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret")
os.environ["SENDGRID_API_KEY"] = ""

import io
import struct
import uuid
import zlib
from datetime import datetime
from typing import Dict, List, Tuple

import pytest
from fastapi.testclient import TestClient
from PIL import Image
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from taskmanager.auth.passwords import hash_password
from taskmanager.auth.session_manager import SessionManager
from taskmanager.database.database import Base, get_db
from taskmanager.database.repository import TaskRepository
from taskmanager.database.user_repository import UserRepository
from taskmanager.integrations.image_processor import PillowImageProcessor, get_image_processor
from taskmanager.integrations.notifier import get_notifier
from taskmanager.models.user import User
from taskmanager.services.credential_store import CredentialStore


# Use in-memory SQLite database for tests
TEST_DATABASE_URL = "sqlite:///:memory:"

TEST_PASSWORD = "Red12345!"


class RecordingNotifier:
    """Notifier that remembers what it was asked to send."""

    def __init__(self):
        self.sent: List[Tuple[str, str, str]] = []

    def send_welcome_email(self, email: str, name: str) -> None:
        self.sent.append(("welcome", email, name))

    def send_cancellation_email(self, email: str, name: str) -> None:
        self.sent.append(("cancellation", email, name))


@pytest.fixture(scope="function")
def db_session():
    """Create a database session for testing.

    Uses an in-memory SQLite database that is created fresh for each test,
    with foreign keys enforced.
    """
    # Create engine with StaticPool for in-memory database
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )

    @event.listens_for(engine, "connect")
    def set_sqlite_pragmas(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    from taskmanager.database import models  # noqa: F401
    Base.metadata.create_all(bind=engine)

    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def task_repository(db_session: Session):
    """Create a TaskRepository instance for testing."""
    return TaskRepository(db_session)


@pytest.fixture
def user_repository(db_session: Session):
    """Create a UserRepository instance for testing."""
    return UserRepository(db_session)


@pytest.fixture
def session_manager(db_session: Session):
    return SessionManager(db_session)


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def credential_store(db_session: Session, notifier):
    return CredentialStore(db_session, notifier=notifier, image_processor=PillowImageProcessor())


def _make_user(user_repository: UserRepository, name: str, email: str) -> User:
    now = datetime.utcnow()
    return user_repository.create(
        User(
            id=str(uuid.uuid4()),
            name=name,
            email=email,
            password_hash=hash_password(TEST_PASSWORD),
            age=0,
            created_at=now,
            updated_at=now,
        )
    )


@pytest.fixture
def test_user(user_repository):
    """A persisted user with no sessions."""
    return _make_user(user_repository, "Test User", "test@example.com")


@pytest.fixture
def other_user(user_repository):
    """A second persisted user, for ownership isolation checks."""
    return _make_user(user_repository, "Other User", "other@example.com")


@pytest.fixture
def test_user_id(test_user):
    return test_user.id


@pytest.fixture
def png_bytes():
    """A small, valid PNG image."""
    buf = io.BytesIO()
    Image.new("RGB", (40, 20), color=(200, 30, 30)).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def png_declaring_size(png_bytes):
    """Build a small PNG whose IHDR claims the given width and height.

    The pixel data is not enlarged, so the file stays a few hundred bytes.
    """

    def _build(width: int, height: int) -> bytes:
        # Signature (8) + chunk length (4), then "IHDR" + 13 bytes of header data.
        ihdr = b"IHDR" + struct.pack(">II", width, height) + png_bytes[24:29]
        crc = struct.pack(">I", zlib.crc32(ihdr) & 0xFFFFFFFF)
        return png_bytes[:12] + ihdr + crc + png_bytes[33:]

    return _build


@pytest.fixture
def test_client(db_session: Session, notifier):
    """Create a FastAPI test client with overridden database and notifier.

    Authentication is not overridden: tests obtain real tokens by
    registering or logging in.
    """
    from taskmanager.api.app import app

    # Override the get_db dependency to use our test database session
    def override_get_db():
        try:
            yield db_session
        finally:
            pass  # Don't close the session here, let the fixture handle it

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notifier] = lambda: notifier
    app.dependency_overrides[get_image_processor] = lambda: PillowImageProcessor()

    with TestClient(app) as client:
        yield client

    # Clean up dependency overrides
    app.dependency_overrides.clear()


def _auth_headers(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers():
    """Build the Authorization header for a bearer token."""
    return _auth_headers


@pytest.fixture
def register_user(test_client: TestClient):
    """Sign up through the API; returns (public user dict, token)."""

    def _register(name: str = "Greg", email: str = "greg@example.com",
                  password: str = TEST_PASSWORD, **extra) -> Tuple[dict, str]:
        response = test_client.post(
            "/users", json={"name": name, "email": email, "password": password, **extra}
        )
        assert response.status_code == 201, response.text
        data = response.json()["data"]
        return data["user"], data["token"]

    return _register

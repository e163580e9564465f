"""Pytest fixtures: SQLite database for fast, isolated tests."""
import os

os.environ["DATABASE_URL"] = "sqlite:///./test.db"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["SMTP_HOST"] = ""

from datetime import timedelta

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from fastapi.testclient import TestClient

from app.database import Base, get_db
from app.dependencies import get_notifier
from app.main import app
from app.rate_limiter import limiter
from app.security import get_password_hash
from app.services.travel_request_service import local_today

# Import all models so they register with Base.metadata
from app.models.user import User, UserRole                # noqa: F401
from app.models.travel_request import TravelRequest       # noqa: F401
from app.models.revoked_token import RevokedToken         # noqa: F401

SQLITE_URL = "sqlite:///./test.db"
DEFAULT_PASSWORD = "Secret@123"


class RecordingNotifier(list):
    """Stands in for the queue dispatcher: keeps every StatusChanged event."""

    def __call__(self, event):
        self.append(event)


@pytest.fixture(scope="function")
def db_engine():
    """Create a fresh SQLite engine for each test."""
    engine = create_engine(SQLITE_URL, connect_args={"check_same_thread": False})

    # Enable WAL mode for better concurrency
    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db(db_engine):
    """Yield a database session, closed after the test."""
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def notifications():
    return RecordingNotifier()


@pytest.fixture(scope="function")
def client(db_engine, notifications):
    """TestClient with the database and the notifier dependencies overridden."""
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)

    def _override_get_db():
        session = TestingSession()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_notifier] = lambda: notifications
    limiter.reset()
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def make_user(db, name: str = "Test User", email: str = "user@example.com",
              role: UserRole = UserRole.user, password: str = DEFAULT_PASSWORD) -> User:
    """Insert a user straight into the database."""
    user = User(name=name, email=email, password_hash=get_password_hash(password), role=role)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def register_user(client: TestClient, name: str = "Test User", email: str = "user@example.com",
                  password: str = DEFAULT_PASSWORD) -> dict:
    """Helper: POST /api/v1/auth/register and return the response ``data``."""
    resp = client.post("/api/v1/auth/register", json={
        "name": name,
        "email": email,
        "password": password,
        "password_confirmation": password,
    })
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


def login(client: TestClient, email: str, password: str = DEFAULT_PASSWORD) -> str:
    resp = client.post("/api/v1/auth/login", json={"email": email, "password": password})
    assert resp.status_code == 200, resp.text
    return resp.json()["data"]["token"]


def admin_headers(client: TestClient, db, email: str = "admin@example.com") -> dict:
    """Create an administrator and return its auth headers."""
    make_user(db, name="Admin", email=email, role=UserRole.admin)
    return auth_headers(login(client, email))


def user_headers(client: TestClient, name: str = "Test User", email: str = "user@example.com") -> dict:
    return auth_headers(register_user(client, name=name, email=email)["token"])


def trip_payload(days_ahead: int = 1, length: int = 5, **overrides) -> dict:
    departure = local_today() + timedelta(days=days_ahead)
    payload = {
        "requester_name": "Test User",
        "destination": "São Paulo, SP",
        "departure_date": departure.isoformat(),
        "return_date": (departure + timedelta(days=length)).isoformat(),
        "notes": "Client meeting",
    }
    payload.update(overrides)
    return payload


def create_travel_request(client: TestClient, headers: dict, **overrides) -> dict:
    """Helper: POST /api/v1/travel-requests and return the response ``data``."""
    resp = client.post("/api/v1/travel-requests/", json=trip_payload(**overrides), headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]

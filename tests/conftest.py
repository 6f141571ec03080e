"""
Pytest configuration and fixtures

Every test gets its own in-memory SQLite database; nothing persists between
tests.
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-daybook-sessions")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from daybook.ai_extraction import get_extractor
from daybook.auth import hash_password
from daybook.database import Base, get_db
from daybook.errors import ExtractionError
from daybook.main import app
from daybook.models import User


@pytest.fixture
def engine():
    """A fresh in-memory database shared by every connection of one test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def test_user(db_session):
    user = User(email="planner@example.com", password_hash=hash_password("secret123"))
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


class StubExtractor:
    """Stands in for PlannerImageExtractor; returns canned text."""

    def __init__(self, text: str = "", error: Exception = None):
        self.text = text
        self.error = error
        self.calls = []

    def extract(self, image_bytes: bytes, mime_type: str) -> str:
        self.calls.append((image_bytes, mime_type))
        if self.error:
            raise self.error
        return self.text


@pytest.fixture
def stub_extractor():
    extractor = StubExtractor()
    app.dependency_overrides[get_extractor] = lambda: extractor
    yield extractor
    app.dependency_overrides.pop(get_extractor, None)


@pytest.fixture
def extraction_unavailable():
    def unavailable():
        raise ExtractionError("GEMINI_API_KEY environment variable not set")

    app.dependency_overrides[get_extractor] = unavailable
    yield
    app.dependency_overrides.pop(get_extractor, None)


@pytest.fixture
def client(session_factory):
    """API client wired to the test database."""
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.pop(get_db, None)


@pytest.fixture
def auth_client(client):
    """API client with a signed-in user."""
    response = client.post(
        "/auth/signup", json={"email": "me@example.com", "password": "hunter22"}
    )
    assert response.status_code == 201
    response = client.post(
        "/auth/login", json={"email": "me@example.com", "password": "hunter22"}
    )
    assert response.status_code == 200
    return client

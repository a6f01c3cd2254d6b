import os
import sys

# Add the current directory to Python path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

# Tests never touch a real server; keep the lazy bootstrap out of the way
os.environ.setdefault("DB_BOOTSTRAP", "false")
os.environ.setdefault("LOG_JSON", "false")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.db.base_class import Base
from app.db.bootstrap import ensure_schema, seed_if_empty
from app.models.student import Student  # noqa: F401


# Create an in-memory SQLite database for each test
@pytest.fixture
def engine():
    """Fresh in-memory SQLite database with the students schema."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    ensure_schema(engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def TestingSessionLocal(engine):
    """Create a session factory for the test database."""
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)


@pytest.fixture
def override_get_db(TestingSessionLocal):
    """Override the database dependency to use our test database."""
    def _override_get_db():
        session = TestingSessionLocal()
        try:
            yield session
        finally:
            session.close()
    return _override_get_db


@pytest.fixture
def db_session(TestingSessionLocal):
    """Create a database session for each test."""
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def seeded(engine):
    """The ten sample students."""
    inserted = seed_if_empty(engine)
    assert inserted == 10
    return inserted


@pytest.fixture
def client(override_get_db):
    """Create a test client for API and page tests."""
    from fastapi.testclient import TestClient
    from app.main import app
    from app.db import get_db

    # Override the database dependency
    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as client:
        yield client

    # Clear overrides after test
    app.dependency_overrides.clear()


@pytest.fixture
def student_payload():
    return {
        "first_name": "Maria",
        "last_name": "Souza",
        "email": "maria.souza@example.com",
        "phone": "555-0199",
        "date_of_birth": "2002-06-01",
        "course": "Computer Science",
        "year": 2,
        "address": "10 Rua Azul",
        "notes": "Transfer student.",
    }

# tests/conftest.py
import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from finance_api import models  # noqa: F401
from finance_api.auth import create_access_token
from finance_api.database import Base, get_db, make_engine
from finance_api.main import app

# One shared connection so every session sees the same in-memory database
test_engine = make_engine("sqlite://", poolclass=StaticPool)

TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


@pytest.fixture(scope="function")
def db_session():
    """
    Creates a fresh database session for a single test.
    """
    Base.metadata.create_all(bind=test_engine)

    db = TestSessionLocal()
    try:
        yield db
    finally:
        db.close()
        # Drop tables to clean up
        Base.metadata.drop_all(bind=test_engine)


@pytest.fixture(scope="function")
def client(db_session):
    """
    Overrides the dependency injection to use our test database.
    """
    def get_test_db_override():
        yield db_session

    app.dependency_overrides[get_db] = get_test_db_override

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    """Builds an Authorization header for any user id."""
    def _headers(user_id="alice"):
        return {"Authorization": f"Bearer {create_access_token(user_id)}"}
    return _headers

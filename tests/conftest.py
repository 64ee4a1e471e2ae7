"""
Pytest configuration and fixtures.

Settings are read once at import time, so the environment is prepared
before anything from `sportlink` is imported. Every test runs against a
fresh in-memory SQLite database.
"""
import os
from datetime import datetime, timedelta, timezone

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SUPABASE_URL"] = "http://localhost:54321"
os.environ["SUPABASE_KEY"] = "test-anon-key"
os.environ["SUPABASE_JWT_SECRET"] = "test-jwt-secret"
os.environ.pop("SUPABASE_SERVICE_ROLE_KEY", None)

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlmodel import SQLModel, Session

from sportlink.database import engine
from sportlink.main import app
from sportlink.models.document import ROLE_COLLECTIONS, USERS
from sportlink.repositories.document_repo import DocumentRepository

JWT_SECRET = "test-jwt-secret"


@pytest.fixture(autouse=True)
def _fresh_database():
    SQLModel.metadata.create_all(engine)
    yield
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def session():
    with Session(engine) as db_session:
        yield db_session


@pytest.fixture
def client():
    yield TestClient(app)
    app.dependency_overrides.clear()


def make_token(
    sub: str,
    role: str | None = None,
    name: str | None = None,
    expires_in: int = 3600,
    secret: str = JWT_SECRET,
) -> str:
    """Mint a Supabase-shaped access token."""
    claims = {
        "sub": sub,
        "email": f"{sub}@example.com",
        "aud": "authenticated",
        "role": "authenticated",
        "exp": datetime.now(timezone.utc) + timedelta(seconds=expires_in),
    }
    if role:
        claims["app_metadata"] = {"provider": "email", "role": role}
    if name:
        claims["user_metadata"] = {"name": name}
    return jwt.encode(claims, secret, algorithm="HS256")


@pytest.fixture
def token_for():
    return make_token


@pytest.fixture
def auth_headers():
    def _headers(sub: str, role: str | None = None, **kwargs) -> dict[str, str]:
        return {"Authorization": f"Bearer {make_token(sub, role, **kwargs)}"}

    return _headers


@pytest.fixture
def seed_user(session):
    """Write a user document to `users` and its role collection."""
    repo = DocumentRepository()

    def _seed(user_id: str, role: str, **fields) -> dict:
        record = {"role": role, **fields}
        repo.set(session, USERS, user_id, record)
        repo.set(session, ROLE_COLLECTIONS[role], user_id, record)
        return record

    return _seed

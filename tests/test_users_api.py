from types import SimpleNamespace

import pytest
from sqlalchemy.exc import OperationalError

from sportlink.core.supabase_client import get_identity_admin
from sportlink.main import app
from sportlink.repositories.document_repo import DocumentRepository


class FakeIdentityAdmin:
    """Stands in for supabase Client: only auth.admin.create_user is used."""

    def __init__(self, user_id: str = "new-coach", error: Exception | None = None):
        self.user_id = user_id
        self.error = error
        self.calls: list[dict] = []
        self.auth = SimpleNamespace(admin=SimpleNamespace(create_user=self._create_user))

    def _create_user(self, attributes: dict):
        self.calls.append(attributes)
        if self.error is not None:
            raise self.error
        return SimpleNamespace(user=SimpleNamespace(id=self.user_id))


@pytest.fixture
def identity(client):
    fake = FakeIdentityAdmin()
    app.dependency_overrides[get_identity_admin] = lambda: fake
    return fake


def _register_payload(**overrides) -> dict:
    payload = {
        "email": "kim@example.com",
        "password": "secret123",
        "firstName": "Kim",
        "lastName": "Park",
        "role": "coach",
        "profile": {"sports": ["soccer"], "skills": {"soccer": "shooting, speed"}},
    }
    payload.update(overrides)
    return payload


# -------- Registration --------


def test_register_creates_identity_and_writes_both_collections(client, identity, session):
    response = client.post("/api/auth/register", json=_register_payload())

    assert response.status_code == 201
    body = response.json()
    assert body["id"] == "new-coach"
    assert body["displayName"] == "Kim Park"
    assert body["skills"] == ["shooting", "speed"]
    assert body["certifications"] == []

    assert identity.calls[0]["app_metadata"] == {"role": "coach"}
    assert identity.calls[0]["user_metadata"] == {"name": "Kim Park"}

    repo = DocumentRepository()
    users_doc = repo.get_data(session, "users", "new-coach")
    coaches_doc = repo.get_data(session, "coaches", "new-coach")
    assert users_doc == coaches_doc
    assert users_doc["name"] == "Kim Park"
    assert users_doc["coachProfile"]["ageGroups"] == []


def test_register_rejects_unknown_role(client, identity):
    response = client.post("/api/auth/register", json=_register_payload(role="referee"))

    assert response.status_code == 422
    assert identity.calls == []


def test_register_surfaces_identity_provider_failure(client, session):
    fake = FakeIdentityAdmin(error=RuntimeError("User already registered"))
    app.dependency_overrides[get_identity_admin] = lambda: fake

    response = client.post("/api/auth/register", json=_register_payload())

    assert response.status_code == 502
    assert DocumentRepository().get_data(session, "users", "new-coach") is None


# -------- Profiles --------


def test_read_me_returns_normalized_profile(client, auth_headers, seed_user):
    seed_user(
        "c1",
        "coach",
        firstName="John",
        lastName="Smith",
        coachProfile={"certifications": "USSF B, CPR", "ageGroups": ["10-13"]},
    )

    response = client.get("/api/users/me", headers=auth_headers("c1", "coach"))

    assert response.status_code == 200
    body = response.json()
    assert body["displayName"] == "John Smith"
    assert body["certifications"] == ["USSF B", "CPR"]
    assert body["ageGroups"] == ["10-13"]


def test_read_me_without_document_is_404(client, auth_headers):
    response = client.get("/api/users/me", headers=auth_headers("ghost"))

    assert response.status_code == 404


def test_get_other_user_profile(client, auth_headers, seed_user):
    seed_user("p1", "parent", parentProfile={"athletes": [{"name": "Mia"}]})

    response = client.get("/api/users/p1", headers=auth_headers("u1"))

    assert response.status_code == 200
    assert response.json()["displayName"] == "Parent"
    assert response.json()["details"] == {"athletes": [{"name": "Mia"}]}


def test_update_me_writes_users_and_role_collection(client, auth_headers, seed_user, session):
    seed_user("c1", "coach", firstName="John", lastName="Smith", name="John Smith", coachProfile={"bio": "old"})

    response = client.patch(
        "/api/users/me",
        headers=auth_headers("c1", "coach"),
        json={"lastName": "Smythe", "profile": {"bio": "new", "location": "Austin"}},
    )

    assert response.status_code == 200
    assert response.json()["displayName"] == "John Smythe"

    session.expire_all()
    repo = DocumentRepository()
    for collection in ("users", "coaches"):
        doc = repo.get_data(session, collection, "c1")
        assert doc["name"] == "John Smythe"
        assert doc["coachProfile"] == {"bio": "new", "location": "Austin"}


def test_update_me_cannot_change_role(client, auth_headers, seed_user):
    seed_user("c1", "coach")

    response = client.patch("/api/users/me", headers=auth_headers("c1"), json={"role": "team"})

    assert response.status_code == 422


def test_partial_dual_write_is_reported_not_reconciled(
    client, auth_headers, seed_user, session, monkeypatch
):
    seed_user("c1", "coach", name="John", coachProfile={})
    original_set = DocumentRepository.set

    def flaky_set(self, db_session, collection, doc_id, data):
        if collection == "coaches":
            raise OperationalError("UPDATE documents", {}, Exception("connection lost"))
        return original_set(self, db_session, collection, doc_id, data)

    monkeypatch.setattr(DocumentRepository, "set", flaky_set)

    response = client.patch("/api/users/me", headers=auth_headers("c1"), json={"name": "Johnny"})

    assert response.status_code == 500
    assert response.json()["detail"] == "Failed to update profile"

    session.expire_all()
    repo = DocumentRepository()
    assert repo.get_data(session, "users", "c1")["name"] == "Johnny"
    assert repo.get_data(session, "coaches", "c1")["name"] == "John"

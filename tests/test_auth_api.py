def test_health_check(client):
    response = client.get("/")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_me_requires_bearer_token(client):
    response = client.get("/api/auth/me")

    assert response.status_code == 401
    assert response.json()["detail"] == "No token provided"


def test_me_rejects_token_signed_with_other_secret(client, token_for):
    token = token_for("u1", secret="not-the-secret")

    response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid or expired token"


def test_me_rejects_expired_token(client, token_for):
    token = token_for("u1", expires_in=-60)

    response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401


def test_me_reads_role_from_app_metadata(client, auth_headers):
    response = client.get("/api/auth/me", headers=auth_headers("u1", "coach", name="Kim"))

    assert response.status_code == 200
    assert response.json() == {
        "uid": "u1",
        "email": "u1@example.com",
        "name": "Kim",
        "role": "coach",
    }


def test_supabase_postgres_role_is_not_an_application_role(client, auth_headers):
    # Top-level "role" is "authenticated" in Supabase tokens.
    response = client.get("/api/auth/me", headers=auth_headers("u1"))

    assert response.status_code == 200
    assert response.json()["role"] is None


def test_login_verifies_id_token(client, token_for):
    response = client.post("/api/auth/login", json={"idToken": token_for("u7", "parent")})

    assert response.status_code == 200
    assert response.json()["uid"] == "u7"
    assert response.json()["role"] == "parent"


def test_login_rejects_invalid_token(client):
    response = client.post("/api/auth/login", json={"idToken": "garbage"})

    assert response.status_code == 401


def test_protected_routes_reject_missing_token(client):
    assert client.get("/api/users/me").status_code == 401
    assert client.get("/api/messages/conversations").status_code == 401
    assert client.post("/api/messages", json={"receiverId": "u2", "content": "hi"}).status_code == 401


def test_unhandled_errors_return_generic_json(auth_headers, monkeypatch):
    from fastapi.testclient import TestClient

    from sportlink.main import app
    from sportlink.routers import users

    def boom(*args, **kwargs):
        raise RuntimeError("database exploded")

    monkeypatch.setattr(users.service, "get_me", boom)
    client = TestClient(app, raise_server_exceptions=False)

    response = client.get("/api/users/me", headers=auth_headers("u1"))

    assert response.status_code == 500
    assert response.json() == {"error": "Something went wrong!", "message": None}

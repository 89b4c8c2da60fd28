from heritage_crafts.db.models.enums import UserRole

REGISTER = "/api/v1/auth/register"
LOGIN = "/api/v1/auth/login"


def _register(client, email="new@example.com", password="Str0ng-Passw0rd", **extra):
    return client.post(REGISTER, json={"email": email, "password": password, **extra})


def _login(client, email="new@example.com", password="Str0ng-Passw0rd"):
    return client.post(LOGIN, json={"email": email, "password": password})


def test_register_then_login_returns_token_pair(client):
    resp = _register(client, name="Amy")
    assert resp.status_code == 201
    body = resp.json()
    assert body["email"] == "new@example.com"
    assert body["role"] == UserRole.LEARNER.value
    assert "hashed_password" not in body

    resp = _login(client)
    assert resp.status_code == 200
    pair = resp.json()
    assert pair["token_type"] == "bearer"
    assert pair["access_token"] and pair["refresh_token"]
    assert resp.cookies.get("refresh_token") == pair["refresh_token"]


def test_register_duplicate_email_conflicts(client):
    assert _register(client).status_code == 201
    resp = _register(client)
    assert resp.status_code == 409


def test_register_weak_password_lists_problems(client):
    resp = _register(client, password="password123")
    assert resp.status_code == 400
    assert any("uppercase" in e for e in resp.json()["errors"])


def test_register_admin_role_is_rejected(client):
    resp = _register(client, role="ADMIN")
    assert resp.status_code == 400


def test_login_wrong_password_is_401(client):
    _register(client)
    resp = _login(client, password="Wrong-Passw0rd")
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Invalid credentials"

    resp = _login(client, email="nobody@example.com")
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Invalid credentials"


def test_me_requires_a_valid_token(client):
    assert client.get("/api/v1/auth/me").status_code == 401
    resp = client.get("/api/v1/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert resp.status_code == 401


def test_me_returns_current_user(client):
    _register(client)
    access = _login(client).json()["access_token"]
    resp = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {access}"})
    assert resp.status_code == 200
    assert resp.json()["email"] == "new@example.com"


def test_refresh_rotates_and_revokes_previous_token(client):
    _register(client)
    pair = _login(client).json()

    resp = client.post("/api/v1/auth/refresh", json={"refresh_token": pair["refresh_token"]})
    assert resp.status_code == 200
    new_pair = resp.json()
    assert new_pair["refresh_token"] != pair["refresh_token"]

    # L'ancien refresh ne fonctionne plus
    resp = client.post("/api/v1/auth/refresh", json={"refresh_token": pair["refresh_token"]})
    assert resp.status_code == 401


def test_refresh_with_access_token_is_rejected(client):
    _register(client)
    pair = _login(client).json()
    resp = client.post("/api/v1/auth/refresh", json={"refresh_token": pair["access_token"]})
    assert resp.status_code == 401


def test_logout_is_idempotent(client):
    _register(client)
    pair = _login(client).json()
    for _ in range(2):
        resp = client.post("/api/v1/auth/logout", json={"refresh_token": pair["refresh_token"]})
        assert resp.status_code == 204
    resp = client.post("/api/v1/auth/refresh", json={"refresh_token": pair["refresh_token"]})
    assert resp.status_code == 401


def test_change_password_revokes_sessions(client):
    _register(client)
    pair = _login(client).json()
    headers = {"Authorization": f"Bearer {pair['access_token']}"}

    resp = client.post(
        "/api/v1/auth/change-password",
        json={"old_password": "Wrong-Passw0rd", "new_password": "An0ther-Passw0rd"},
        headers=headers,
    )
    assert resp.status_code == 401

    resp = client.post(
        "/api/v1/auth/change-password",
        json={"old_password": "Str0ng-Passw0rd", "new_password": "An0ther-Passw0rd"},
        headers=headers,
    )
    assert resp.status_code == 204
    assert client.post("/api/v1/auth/refresh", json={"refresh_token": pair["refresh_token"]}).status_code == 401
    assert _login(client, password="An0ther-Passw0rd").status_code == 200

from heritage_crafts.db.models.enums import UserRole


def test_update_profile_and_language(client, learner, auth_headers):
    headers = auth_headers(learner)
    resp = client.patch("/api/v1/users/me", json={"bio": "Bamboo lover", "location": "Mong Kok"}, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["bio"] == "Bamboo lover"

    resp = client.put("/api/v1/users/me/language", json={"language": "en"}, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["preferred_language"] == "en"

    resp = client.put("/api/v1/users/me/language", json={"language": "fr"}, headers=headers)
    assert resp.status_code == 400


def test_public_profile_hides_email(client, learner):
    resp = client.get(f"/api/v1/users/{learner.id}")
    assert resp.status_code == 200
    assert "email" not in resp.json()
    assert client.get("/api/v1/users/9999").status_code == 404


def test_list_users_is_admin_only(client, learner, admin, make_user, auth_headers):
    make_user(UserRole.CRAFTSMAN)
    assert client.get("/api/v1/users", headers=auth_headers(learner)).status_code == 403

    resp = client.get("/api/v1/users", params={"role": "CRAFTSMAN"}, headers=auth_headers(admin))
    assert resp.status_code == 200
    body = resp.json()
    assert body["total"] == 1
    assert all(u["role"] == "CRAFTSMAN" for u in body["items"])


def test_admin_updates_role_and_cannot_delete_self(client, learner, admin, auth_headers):
    headers = auth_headers(admin)
    resp = client.patch(f"/api/v1/users/{learner.id}", json={"role": "CRAFTSMAN"}, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["role"] == "CRAFTSMAN"

    assert client.delete(f"/api/v1/users/{admin.id}", headers=headers).status_code == 400


def test_deleted_user_can_no_longer_authenticate(client, learner, admin, auth_headers):
    learner_headers = auth_headers(learner)
    assert client.delete(f"/api/v1/users/{learner.id}", headers=auth_headers(admin)).status_code == 204
    assert client.get("/api/v1/auth/me", headers=learner_headers).status_code == 401

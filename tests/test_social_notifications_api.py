from heritage_crafts.db.models.enums import NotificationType, ProductStatus


# -----------------------------
# Follow
# -----------------------------
def test_follow_unfollow(client, learner, craftsman_user, auth_headers):
    headers = auth_headers(learner)

    resp = client.post(f"/api/v1/social/follow/{craftsman_user.id}", headers=headers)
    assert resp.json() == {"follower_id": learner.id, "following_id": craftsman_user.id, "following": True}
    assert client.post(f"/api/v1/social/follow/{craftsman_user.id}", headers=headers).status_code == 409
    assert client.get(f"/api/v1/social/follow/{craftsman_user.id}", headers=headers).json() == {"following": True}

    counts = client.get(f"/api/v1/social/users/{craftsman_user.id}/counts").json()
    assert counts["followers"] == 1
    followers = client.get(f"/api/v1/social/users/{craftsman_user.id}/followers").json()
    assert [u["id"] for u in followers["items"]] == [learner.id]

    assert client.delete(f"/api/v1/social/follow/{craftsman_user.id}", headers=headers).json()["following"] is False
    assert client.delete(f"/api/v1/social/follow/{craftsman_user.id}", headers=headers).status_code == 404


def test_cannot_follow_self_or_unknown(client, learner, auth_headers):
    headers = auth_headers(learner)
    assert client.post(f"/api/v1/social/follow/{learner.id}", headers=headers).status_code == 400
    assert client.post("/api/v1/social/follow/9999", headers=headers).status_code == 404


def test_follow_notifies_and_respects_preferences(client, learner, make_user, craftsman_user, auth_headers):
    target = auth_headers(craftsman_user)
    client.post(f"/api/v1/social/follow/{craftsman_user.id}", headers=auth_headers(learner))

    notes = client.get("/api/v1/notifications", headers=target).json()
    assert [n["type"] for n in notes["items"]] == [NotificationType.NEW_FOLLOWER.value]

    client.put("/api/v1/notifications/preferences", json={"new_follower_notify": False}, headers=target)
    client.post(f"/api/v1/social/follow/{craftsman_user.id}", headers=auth_headers(make_user()))
    assert client.get("/api/v1/notifications/unread-count", headers=target).json() == {"unread_count": 1}


def test_activity_feed_lists_followed_craftsmen_content(
    client, craftsman, craftsman_user, make_course, make_product, make_craftsman, learner, auth_headers
):
    make_course(craftsman.id)
    make_product(craftsman.id)
    make_product(craftsman.id, status=ProductStatus.INACTIVE)
    make_product(make_craftsman().id)
    headers = auth_headers(learner)

    assert client.get("/api/v1/social/feed", headers=headers).json()["items"] == []

    client.post(f"/api/v1/social/follow/{craftsman_user.id}", headers=headers)
    feed = client.get("/api/v1/social/feed", headers=headers).json()["items"]
    assert sorted(i["type"] for i in feed) == ["course", "product"]
    assert {i["craftsman_id"] for i in feed} == {craftsman.id}


# -----------------------------
# Notifications
# -----------------------------
def test_notifications_read_and_delete(client, learner, make_user, auth_headers):
    for _ in range(2):
        client.post(f"/api/v1/social/follow/{learner.id}", headers=auth_headers(make_user()))
    headers = auth_headers(learner)

    items = client.get("/api/v1/notifications", headers=headers).json()["items"]
    assert len(items) == 2

    resp = client.post(f"/api/v1/notifications/{items[0]['id']}/read", headers=headers)
    assert resp.json()["is_read"] is True
    unread = client.get("/api/v1/notifications", params={"unread_only": True}, headers=headers).json()
    assert len(unread["items"]) == 1
    assert unread["unread_count"] == 1

    assert client.post("/api/v1/notifications/read-all", headers=headers).json() == {"updated": 1}
    assert client.delete(f"/api/v1/notifications/{items[1]['id']}", headers=headers).status_code == 204


def test_cannot_touch_someone_elses_notification(client, learner, make_user, auth_headers):
    client.post(f"/api/v1/social/follow/{learner.id}", headers=auth_headers(make_user()))
    note_id = client.get("/api/v1/notifications", headers=auth_headers(learner)).json()["items"][0]["id"]
    intruder = auth_headers(make_user())
    assert client.post(f"/api/v1/notifications/{note_id}/read", headers=intruder).status_code == 403
    assert client.delete(f"/api/v1/notifications/{note_id}", headers=intruder).status_code == 403


def test_default_preferences(client, learner, auth_headers):
    prefs = client.get("/api/v1/notifications/preferences", headers=auth_headers(learner)).json()
    assert all(prefs.values())

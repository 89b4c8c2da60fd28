import pytest

from heritage_crafts.db.models.enums import EntityType, ReportStatus


@pytest.fixture()
def course(craftsman, make_course):
    return make_course(craftsman.id)


def _comment(client, headers, entity_id, content="好精緻！", **extra):
    payload = {"entity_type": EntityType.COURSE.value, "entity_id": entity_id, "content": content, **extra}
    return client.post("/api/v1/comments", json=payload, headers=headers)


def test_comment_thread_with_replies(client, course, learner, make_user, auth_headers):
    root = _comment(client, auth_headers(learner), course.id)
    assert root.status_code == 201
    assert root.json()["user_name"] == learner.name

    reply = _comment(client, auth_headers(make_user()), course.id, "同意", parent_id=root.json()["id"])
    assert reply.status_code == 201

    listing = client.get(
        "/api/v1/comments", params={"entity_type": "COURSE", "entity_id": course.id}
    ).json()
    assert listing["total"] == 1
    assert [r["content"] for r in listing["items"][0]["replies"]] == ["同意"]

    flat = client.get(
        "/api/v1/comments", params={"entity_type": "COURSE", "entity_id": course.id, "include_replies": False}
    ).json()
    assert flat["items"][0]["replies"] == []


def test_comment_on_missing_or_unsupported_target(client, learner, auth_headers):
    assert _comment(client, auth_headers(learner), 9999).status_code == 404
    payload = {"entity_type": "COMMENT", "entity_id": 1, "content": "x"}
    assert client.post("/api/v1/comments", json=payload, headers=auth_headers(learner)).status_code == 400


def test_reply_must_share_parent_entity(client, craftsman, make_course, learner, auth_headers):
    first = make_course(craftsman.id)
    second = make_course(craftsman.id)
    root_id = _comment(client, auth_headers(learner), first.id).json()["id"]
    assert _comment(client, auth_headers(learner), second.id, parent_id=root_id).status_code == 400


def test_edit_and_soft_delete(client, course, learner, make_user, admin, auth_headers):
    comment_id = _comment(client, auth_headers(learner), course.id).json()["id"]
    stranger = auth_headers(make_user())

    assert client.patch(f"/api/v1/comments/{comment_id}", json={"content": "x"}, headers=stranger).status_code == 403
    resp = client.patch(f"/api/v1/comments/{comment_id}", json={"content": "改咗"}, headers=auth_headers(learner))
    assert resp.json()["content"] == "改咗"

    assert client.delete(f"/api/v1/comments/{comment_id}", headers=auth_headers(admin)).status_code == 204
    listing = client.get("/api/v1/comments", params={"entity_type": "COURSE", "entity_id": course.id}).json()
    assert listing["total"] == 0
    assert client.post(f"/api/v1/comments/{comment_id}/like", headers=stranger).status_code == 404


def test_like_toggles(client, course, learner, make_user, auth_headers):
    comment_id = _comment(client, auth_headers(learner), course.id).json()["id"]
    fan = auth_headers(make_user())

    assert client.post(f"/api/v1/comments/{comment_id}/like", headers=fan).json() == {"liked": True, "like_count": 1}
    assert client.post(f"/api/v1/comments/{comment_id}/like", headers=fan).json() == {"liked": False, "like_count": 0}


# -----------------------------
# Signalements
# -----------------------------
def test_report_flow(client, course, learner, make_user, admin, auth_headers):
    comment_id = _comment(client, auth_headers(learner), course.id).json()["id"]
    reporter = auth_headers(make_user())
    payload = {"entity_type": "COMMENT", "entity_id": comment_id, "reason": "spam"}

    resp = client.post("/api/v1/reports", json=payload, headers=reporter)
    assert resp.status_code == 201
    assert resp.json()["status"] == ReportStatus.PENDING.value
    assert client.post("/api/v1/reports", json=payload, headers=reporter).status_code == 409

    assert client.get("/api/v1/reports", headers=reporter).status_code == 403
    pending = client.get("/api/v1/reports", params={"status": "PENDING"}, headers=auth_headers(admin)).json()["items"]
    assert len(pending) == 1

    resp = client.put(
        f"/api/v1/reports/{pending[0]['id']}",
        json={"status": "RESOLVED", "note": "removed"},
        headers=auth_headers(admin),
    )
    assert resp.json()["status"] == ReportStatus.RESOLVED.value
    assert resp.json()["reviewed_by"] == admin.id

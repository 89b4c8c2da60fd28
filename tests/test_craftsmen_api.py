from heritage_crafts.db.models.enums import UserRole, VerificationStatus


def _profile_payload(**extra):
    payload = {
        "craft_specialties": ["手雕麻將"],
        "bio": {"zh-HK": "麻將師傅", "en": "Mahjong tile carver"},
        "experience_years": 30,
        "workshop_location": "佐敦",
    }
    payload.update(extra)
    return payload


def test_learner_cannot_create_craftsman_profile(client, learner, auth_headers):
    resp = client.post("/api/v1/craftsmen", json=_profile_payload(), headers=auth_headers(learner))
    assert resp.status_code == 403


def test_create_profile_starts_pending_and_is_unique(client, make_user, auth_headers):
    user = make_user(UserRole.CRAFTSMAN)
    headers = auth_headers(user)
    resp = client.post("/api/v1/craftsmen", json=_profile_payload(), headers=headers)
    assert resp.status_code == 201
    body = resp.json()
    assert body["verification_status"] == VerificationStatus.PENDING.value
    assert body["user_id"] == user.id

    assert client.post("/api/v1/craftsmen", json=_profile_payload(), headers=headers).status_code == 409


def test_negative_experience_is_a_validation_error(client, make_user, auth_headers):
    user = make_user(UserRole.CRAFTSMAN)
    resp = client.post("/api/v1/craftsmen", json=_profile_payload(experience_years=-1), headers=auth_headers(user))
    assert resp.status_code == 422


def test_only_owner_or_admin_updates_profile(client, craftsman, craftsman_user, learner, admin, auth_headers):
    url = f"/api/v1/craftsmen/{craftsman.id}"
    assert client.patch(url, json={"workshop_location": "旺角"}, headers=auth_headers(learner)).status_code == 403

    resp = client.patch(url, json={"workshop_location": "旺角"}, headers=auth_headers(craftsman_user))
    assert resp.status_code == 200
    assert resp.json()["workshop_location"] == "旺角"

    assert client.patch(url, json={"experience_years": 12}, headers=auth_headers(admin)).status_code == 200


def test_verify_is_admin_only(client, make_craftsman, learner, admin, auth_headers):
    profile = make_craftsman(status=VerificationStatus.PENDING)
    url = f"/api/v1/craftsmen/{profile.id}/verification"
    assert client.put(url, json={"status": "VERIFIED"}, headers=auth_headers(learner)).status_code == 403

    resp = client.put(url, json={"status": "VERIFIED"}, headers=auth_headers(admin))
    assert resp.status_code == 200
    assert resp.json()["verification_status"] == "VERIFIED"


def test_search_filters(client, make_craftsman):
    make_craftsman(specialties=["竹編"], location="深水埗")
    make_craftsman(specialties=["手雕麻將"], location="佐敦")
    make_craftsman(specialties=["竹編"], status=VerificationStatus.PENDING)

    resp = client.get("/api/v1/craftsmen", params={"craft": "竹編"})
    assert resp.json()["total"] == 2

    resp = client.get("/api/v1/craftsmen", params={"craft": "竹編", "verified_only": True})
    assert resp.json()["total"] == 1

    resp = client.get("/api/v1/craftsmen", params={"location": "佐敦"})
    items = resp.json()["items"]
    assert len(items) == 1
    assert items[0]["craft_specialties"] == ["手雕麻將"]


def test_stats_counts(client, craftsman, make_course, make_product, learner, auth_headers):
    course = make_course(craftsman.id)
    make_product(craftsman.id)
    make_product(craftsman.id)
    client.post("/api/v1/bookings", json={"course_id": course.id}, headers=auth_headers(learner))
    client.post(f"/api/v1/social/follow/{craftsman.user_id}", headers=auth_headers(learner))

    resp = client.get(f"/api/v1/craftsmen/{craftsman.id}/stats")
    assert resp.status_code == 200
    stats = resp.json()
    assert stats["course_count"] == 1
    assert stats["product_count"] == 2
    assert stats["follower_count"] == 1
    assert stats["total_bookings"] == 1

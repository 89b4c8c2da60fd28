from decimal import Decimal

from heritage_crafts.db.models.enums import CourseStatus, UserRole
from heritage_crafts.db.models.users import User


def _course_payload(**extra):
    payload = {
        "title": {"zh-HK": "紮作入門", "en": "Paper Crafting 101"},
        "craft_category": "紮作",
        "max_participants": 2,
        "duration_hours": "3",
        "price": "450.00",
    }
    payload.update(extra)
    return payload


# -----------------------------
# Courses
# -----------------------------
def test_craftsman_creates_course(client, craftsman_user, craftsman, auth_headers):
    resp = client.post("/api/v1/courses", json=_course_payload(), headers=auth_headers(craftsman_user))
    assert resp.status_code == 201
    body = resp.json()
    assert body["craftsman_id"] == craftsman.id
    assert Decimal(body["price"]) == Decimal("450.00")


def test_user_without_profile_cannot_create_course(client, make_user, auth_headers):
    user = make_user(UserRole.CRAFTSMAN)
    assert client.post("/api/v1/courses", json=_course_payload(), headers=auth_headers(user)).status_code == 403


def test_course_list_filters_and_categories(client, craftsman, make_course):
    make_course(craftsman.id)
    make_course(craftsman.id, craft_category="紮作", title={"en": "Lion head"})
    make_course(craftsman.id, status=CourseStatus.DRAFT)

    resp = client.get("/api/v1/courses")
    assert resp.json()["total"] == 2

    resp = client.get("/api/v1/courses", params={"category": "紮作"})
    assert [c["title"]["en"] for c in resp.json()["items"]] == ["Lion head"]

    cats = {c["category"]: c["count"] for c in client.get("/api/v1/courses/categories").json()}
    assert cats["紮作"] == 1


def test_course_update_is_owner_only(client, craftsman, make_course, make_craftsman, auth_headers, session):
    course = make_course(craftsman.id)
    other = make_craftsman()
    other_user = session.get(User, other.user_id)
    resp = client.patch(f"/api/v1/courses/{course.id}", json={"price": "1"}, headers=auth_headers(other_user))
    assert resp.status_code == 403


def test_course_with_active_bookings_cannot_be_deleted(client, craftsman, craftsman_user, make_course, learner, auth_headers):
    course = make_course(craftsman.id)
    client.post("/api/v1/bookings", json={"course_id": course.id}, headers=auth_headers(learner))
    resp = client.delete(f"/api/v1/courses/{course.id}", headers=auth_headers(craftsman_user))
    assert resp.status_code == 409


def test_deleted_course_keeps_its_past_bookings(
    client, session, craftsman, craftsman_user, make_course, learner, auth_headers
):
    course = make_course(craftsman.id)
    booking_id = client.post("/api/v1/bookings", json={"course_id": course.id}, headers=auth_headers(learner)).json()["id"]
    client.post(f"/api/v1/bookings/{booking_id}/cancel", headers=auth_headers(learner))

    resp = client.delete(f"/api/v1/courses/{course.id}", headers=auth_headers(craftsman_user))
    assert resp.status_code == 204

    session.refresh(course)
    assert course.status == CourseStatus.INACTIVE
    assert client.get(f"/api/v1/bookings/{booking_id}", headers=auth_headers(learner)).json()["course_id"] == course.id


# -----------------------------
# Bookings
# -----------------------------
def test_booking_lifecycle(client, craftsman, craftsman_user, make_course, learner, auth_headers):
    course = make_course(craftsman.id)
    resp = client.post("/api/v1/bookings", json={"course_id": course.id, "notes": "vegetarian"}, headers=auth_headers(learner))
    assert resp.status_code == 201
    booking = resp.json()
    assert booking["status"] == "PENDING"

    # Le learner ne peut pas confirmer
    assert client.post(f"/api/v1/bookings/{booking['id']}/confirm", headers=auth_headers(learner)).status_code == 403

    resp = client.post(f"/api/v1/bookings/{booking['id']}/confirm", headers=auth_headers(craftsman_user))
    assert resp.status_code == 200
    assert resp.json()["status"] == "CONFIRMED"

    resp = client.post(f"/api/v1/bookings/{booking['id']}/complete", headers=auth_headers(craftsman_user))
    assert resp.json()["status"] == "COMPLETED"

    # COMPLETED → annulation impossible
    assert client.post(f"/api/v1/bookings/{booking['id']}/cancel", headers=auth_headers(learner)).status_code == 400

    # Notifications : NEW_BOOKING pour l'artisan, BOOKING_CONFIRMED pour le learner
    types = [n["type"] for n in client.get("/api/v1/notifications", headers=auth_headers(craftsman_user)).json()["items"]]
    assert "NEW_BOOKING" in types
    types = [n["type"] for n in client.get("/api/v1/notifications", headers=auth_headers(learner)).json()["items"]]
    assert "BOOKING_CONFIRMED" in types


def test_duplicate_active_booking_conflicts(client, craftsman, make_course, learner, auth_headers):
    course = make_course(craftsman.id)
    headers = auth_headers(learner)
    assert client.post("/api/v1/bookings", json={"course_id": course.id}, headers=headers).status_code == 201
    assert client.post("/api/v1/bookings", json={"course_id": course.id}, headers=headers).status_code == 409


def test_course_full(client, craftsman, make_course, make_user, auth_headers):
    course = make_course(craftsman.id, max_participants=1)
    first, second = make_user(), make_user()
    assert client.post("/api/v1/bookings", json={"course_id": course.id}, headers=auth_headers(first)).status_code == 201

    resp = client.post("/api/v1/bookings", json={"course_id": course.id}, headers=auth_headers(second))
    assert resp.status_code == 409
    assert resp.json()["detail"] == "Course is full"

    avail = client.get(f"/api/v1/courses/{course.id}/availability").json()
    assert avail == {"available": False, "current_bookings": 1, "max_participants": 1, "waitlist_count": 0}


def test_cancelled_booking_frees_a_seat(client, craftsman, make_course, make_user, auth_headers):
    course = make_course(craftsman.id, max_participants=1)
    first, second = make_user(), make_user()
    booking = client.post("/api/v1/bookings", json={"course_id": course.id}, headers=auth_headers(first)).json()

    assert client.post(f"/api/v1/bookings/{booking['id']}/cancel", headers=auth_headers(second)).status_code == 403
    assert client.post(f"/api/v1/bookings/{booking['id']}/cancel", headers=auth_headers(first)).status_code == 200
    assert client.post("/api/v1/bookings", json={"course_id": course.id}, headers=auth_headers(second)).status_code == 201


def test_inactive_or_missing_course(client, craftsman, make_course, learner, auth_headers):
    course = make_course(craftsman.id, status=CourseStatus.INACTIVE)
    headers = auth_headers(learner)
    assert client.post("/api/v1/bookings", json={"course_id": course.id}, headers=headers).status_code == 400
    assert client.post("/api/v1/bookings", json={"course_id": 999}, headers=headers).status_code == 404


def test_booking_stats_for_course_manager(client, craftsman, craftsman_user, make_course, make_user, auth_headers):
    course = make_course(craftsman.id, max_participants=None)
    for _ in range(3):
        client.post("/api/v1/bookings", json={"course_id": course.id}, headers=auth_headers(make_user()))

    learner = make_user()
    assert client.get(f"/api/v1/courses/{course.id}/bookings/stats", headers=auth_headers(learner)).status_code == 403

    stats = client.get(f"/api/v1/courses/{course.id}/bookings/stats", headers=auth_headers(craftsman_user)).json()
    assert stats == {"total": 3, "pending": 3, "confirmed": 0, "cancelled": 0, "completed": 0}

    resp = client.get(f"/api/v1/courses/{course.id}/bookings", headers=auth_headers(craftsman_user))
    assert len(resp.json()["items"]) == 3

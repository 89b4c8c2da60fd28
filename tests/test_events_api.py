from datetime import timedelta

from sqlmodel import select

from heritage_crafts.db.models.base import utcnow
from heritage_crafts.db.models.enums import EventRegistrationStatus, EventStatus
from heritage_crafts.db.models.events import EventRegistration
from heritage_crafts.db.models.users import User


def _event_payload(**extra):
    start = utcnow() + timedelta(days=7)
    payload = {
        "title": {"zh-HK": "醒獅紮作示範", "en": "Lion head crafting demo"},
        "event_type": "DEMONSTRATION",
        "category": "紮作",
        "start_datetime": start.isoformat(),
        "end_datetime": (start + timedelta(hours=3)).isoformat(),
        "location": {"address": {"zh-HK": "深水埗", "en": "Sham Shui Po"}},
        "max_participants": 1,
        "registration_fee": "50.00",
        "tags": ["lion", "family"],
    }
    payload.update(extra)
    return payload


def _open_event(client, organizer_headers, **extra):
    event = client.post("/api/v1/events", json=_event_payload(**extra), headers=organizer_headers).json()
    resp = client.post(f"/api/v1/events/{event['id']}/publish", headers=organizer_headers)
    assert resp.status_code == 200
    return resp.json()


# -----------------------------
# Création / publication
# -----------------------------
def test_craftsman_creates_draft_event(client, craftsman_user, auth_headers):
    resp = client.post("/api/v1/events", json=_event_payload(), headers=auth_headers(craftsman_user))
    assert resp.status_code == 201
    body = resp.json()
    assert body["status"] == "DRAFT"
    assert body["organizer_id"] == craftsman_user.id
    assert body["timezone"] == "Asia/Hong_Kong"

    # brouillon : invisible hors organisateur
    assert client.get(f"/api/v1/events/{body['id']}").status_code == 404
    assert client.get(f"/api/v1/events/{body['id']}", headers=auth_headers(craftsman_user)).status_code == 200


def test_learner_cannot_create_event(client, learner, auth_headers):
    assert client.post("/api/v1/events", json=_event_payload(), headers=auth_headers(learner)).status_code == 403


def test_event_dates_are_validated(client, craftsman_user, auth_headers):
    headers = auth_headers(craftsman_user)
    start = utcnow() + timedelta(days=3)
    backwards = _event_payload(start_datetime=start.isoformat(), end_datetime=(start - timedelta(hours=1)).isoformat())
    assert client.post("/api/v1/events", json=backwards, headers=headers).status_code == 400

    past = utcnow() - timedelta(days=1)
    in_the_past = _event_payload(start_datetime=past.isoformat(), end_datetime=(past + timedelta(hours=2)).isoformat())
    assert client.post("/api/v1/events", json=in_the_past, headers=headers).status_code == 400


def test_publish_opens_registration_once(client, craftsman_user, auth_headers):
    headers = auth_headers(craftsman_user)
    event = _open_event(client, headers)
    assert event["status"] == "REGISTRATION_OPEN"
    assert client.post(f"/api/v1/events/{event['id']}/publish", headers=headers).status_code == 400


def test_only_organizer_manages_event(client, craftsman_user, make_craftsman, session, auth_headers):
    event = client.post("/api/v1/events", json=_event_payload(), headers=auth_headers(craftsman_user)).json()
    other = make_craftsman()
    other_headers = auth_headers(session.get(User, other.user_id))
    assert client.patch(f"/api/v1/events/{event['id']}", json={"category": "x"}, headers=other_headers).status_code == 403
    assert client.post(f"/api/v1/events/{event['id']}/publish", headers=other_headers).status_code == 403


# -----------------------------
# Calendrier public
# -----------------------------
def test_public_list_shows_open_events_with_filters(client, craftsman_user, auth_headers):
    headers = auth_headers(craftsman_user)
    _open_event(client, headers)
    _open_event(client, headers, event_type="WORKSHOP", category="竹編", registration_fee="0", tags=["bamboo"])
    client.post("/api/v1/events", json=_event_payload(title={"en": "Still a draft"}), headers=headers)
    _open_event(client, headers, is_public=False, title={"en": "Private"})

    body = client.get("/api/v1/events").json()
    assert body["total"] == 2

    workshops = client.get("/api/v1/events", params={"event_type": "WORKSHOP"}).json()["items"]
    assert [e["category"] for e in workshops] == ["竹編"]
    free = client.get("/api/v1/events", params={"max_fee": "10"}).json()["items"]
    assert [e["tags"] for e in free] == [["bamboo"]]
    tagged = client.get("/api/v1/events", params={"tag": "lion"}).json()["items"]
    assert len(tagged) == 1

    mine = client.get("/api/v1/events/me/organized", headers=headers).json()
    assert mine["total"] == 4


# -----------------------------
# Inscriptions et liste d'attente
# -----------------------------
def test_registration_waitlist_and_promotion(client, craftsman_user, make_user, auth_headers):
    organizer = auth_headers(craftsman_user)
    event = _open_event(client, organizer)
    first, second = make_user(), make_user()

    resp = client.post(f"/api/v1/events/{event['id']}/register", json={"notes": "2 kids"}, headers=auth_headers(first))
    assert resp.status_code == 201
    assert resp.json()["status"] == "CONFIRMED"

    resp = client.post(f"/api/v1/events/{event['id']}/register", headers=auth_headers(second))
    assert resp.json()["status"] == "WAITLISTED"

    detail = client.get(f"/api/v1/events/{event['id']}").json()
    assert detail["confirmed_count"] == 1
    assert detail["waitlist_count"] == 1
    assert detail["spots_left"] == 0

    # doublon
    assert client.post(f"/api/v1/events/{event['id']}/register", headers=auth_headers(first)).status_code == 409

    resp = client.delete(f"/api/v1/events/{event['id']}/register", headers=auth_headers(first))
    assert resp.status_code == 200
    assert resp.json()["status"] == "CANCELLED"

    mine = client.get("/api/v1/events/me/registrations", headers=auth_headers(second)).json()["items"]
    assert mine[0]["status"] == "CONFIRMED"
    notes = client.get("/api/v1/notifications", headers=auth_headers(second)).json()["items"]
    assert notes[0]["details"]["event_id"] == event["id"]

    # l'organisateur est prévenu des inscriptions
    organizer_notes = client.get("/api/v1/notifications", headers=organizer).json()["items"]
    assert len(organizer_notes) == 2


def test_cancelled_registration_cannot_be_cancelled_twice_but_can_reregister(client, craftsman_user, learner, auth_headers):
    event = _open_event(client, auth_headers(craftsman_user), max_participants=5)
    headers = auth_headers(learner)
    assert client.delete(f"/api/v1/events/{event['id']}/register", headers=headers).status_code == 404

    client.post(f"/api/v1/events/{event['id']}/register", headers=headers)
    client.delete(f"/api/v1/events/{event['id']}/register", headers=headers)
    assert client.delete(f"/api/v1/events/{event['id']}/register", headers=headers).status_code == 400

    resp = client.post(f"/api/v1/events/{event['id']}/register", headers=headers)
    assert resp.status_code == 201
    assert resp.json()["status"] == "CONFIRMED"


def test_registration_needs_open_event(client, craftsman_user, learner, auth_headers):
    event = client.post("/api/v1/events", json=_event_payload(), headers=auth_headers(craftsman_user)).json()
    assert client.post(f"/api/v1/events/{event['id']}/register", headers=auth_headers(learner)).status_code == 400


def test_confirmed_registrations_lock_event_details(client, craftsman_user, learner, auth_headers):
    organizer = auth_headers(craftsman_user)
    event = _open_event(client, organizer)
    client.post(f"/api/v1/events/{event['id']}/register", headers=auth_headers(learner))

    resp = client.patch(f"/api/v1/events/{event['id']}", json={"category": "竹編"}, headers=organizer)
    assert resp.status_code == 400
    resp = client.patch(f"/api/v1/events/{event['id']}", json={"status": "REGISTRATION_CLOSED"}, headers=organizer)
    assert resp.status_code == 200
    assert resp.json()["status"] == "REGISTRATION_CLOSED"
    resp = client.patch(f"/api/v1/events/{event['id']}", json={"status": "DRAFT"}, headers=organizer)
    assert resp.status_code == 400


def test_cancelling_event_releases_registrations(client, session, craftsman_user, learner, auth_headers):
    organizer = auth_headers(craftsman_user)
    event = _open_event(client, organizer)
    client.post(f"/api/v1/events/{event['id']}/register", headers=auth_headers(learner))

    resp = client.post(f"/api/v1/events/{event['id']}/cancel", headers=organizer)
    assert resp.status_code == 200
    assert resp.json()["status"] == "CANCELLED"

    registration = session.exec(select(EventRegistration).where(EventRegistration.event_id == event["id"])).one()
    session.refresh(registration)
    assert registration.status == EventRegistrationStatus.CANCELLED
    assert client.post(f"/api/v1/events/{event['id']}/cancel", headers=organizer).status_code == 400


# -----------------------------
# Présence, avis, statistiques
# -----------------------------
def test_attendance_feedback_and_stats(client, craftsman_user, make_user, auth_headers):
    organizer = auth_headers(craftsman_user)
    event = _open_event(client, organizer, max_participants=5)
    came, absent = make_user(), make_user()
    for user in (came, absent):
        client.post(f"/api/v1/events/{event['id']}/register", headers=auth_headers(user))

    # pas encore pointé
    resp = client.post(f"/api/v1/events/{event['id']}/feedback", json={"rating": 5}, headers=auth_headers(came))
    assert resp.status_code == 400

    # seul l'organisateur pointe
    checkin = {"user_id": came.id, "attended": True}
    assert client.post(f"/api/v1/events/{event['id']}/attendance", json=checkin, headers=auth_headers(came)).status_code == 403

    resp = client.post(f"/api/v1/events/{event['id']}/attendance", json=checkin, headers=organizer)
    assert resp.json()["status"] == "ATTENDED"
    assert resp.json()["attended_at"] is not None
    resp = client.post(
        f"/api/v1/events/{event['id']}/attendance", json={"user_id": absent.id, "attended": False}, headers=organizer
    )
    assert resp.json()["status"] == "NO_SHOW"

    assert client.post(
        f"/api/v1/events/{event['id']}/feedback", json={"rating": 6}, headers=auth_headers(came)
    ).status_code == 422
    resp = client.post(
        f"/api/v1/events/{event['id']}/feedback", json={"rating": 4, "feedback": "Great"}, headers=auth_headers(came)
    )
    assert resp.status_code == 200
    assert resp.json()["rating"] == 4

    stats = client.get(f"/api/v1/events/{event['id']}/stats", headers=organizer).json()
    assert stats == {
        "total_registrations": 2,
        "confirmed": 0,
        "waitlisted": 0,
        "cancelled": 0,
        "attended": 1,
        "no_show": 1,
        "average_rating": 4.0,
        "feedback_count": 1,
    }

    registrations = client.get(
        f"/api/v1/events/{event['id']}/registrations", params={"status": "NO_SHOW"}, headers=organizer
    ).json()["items"]
    assert [r["user_id"] for r in registrations] == [absent.id]
    assert client.get(f"/api/v1/events/{event['id']}/stats", headers=auth_headers(came)).status_code == 403


def test_admin_manages_any_event(client, craftsman_user, admin, auth_headers):
    event = client.post("/api/v1/events", json=_event_payload(), headers=auth_headers(craftsman_user)).json()
    resp = client.post(f"/api/v1/events/{event['id']}/publish", headers=auth_headers(admin))
    assert resp.json()["status"] == EventStatus.REGISTRATION_OPEN.value

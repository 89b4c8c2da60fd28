from datetime import datetime, timedelta
from decimal import Decimal

from sqlmodel import select

from heritage_crafts.db.models.behavior import UserBehaviorEvent
from heritage_crafts.db.models.enums import BehaviorEventType, CourseStatus
from heritage_crafts.features.recommendations.services import event_weight, price_range_from_samples
from heritage_crafts.features.search.services import recency_score, relevance_score


def _track(client, headers, event_type, entity_type=None, entity_id=None):
    payload = {"event_type": event_type, "entity_type": entity_type, "entity_id": entity_id}
    return client.post("/api/v1/recommendations/events", json=payload, headers=headers)


# -----------------------------
# Scoring helpers
# -----------------------------
def test_event_weights():
    assert event_weight(BehaviorEventType.VIEW) == 1
    assert event_weight(BehaviorEventType.CLICK) == 2
    assert event_weight(BehaviorEventType.PURCHASE) == 5


def test_price_range_from_samples():
    assert price_range_from_samples([Decimal("100"), Decimal("200")]) is None
    low, high = price_range_from_samples([Decimal(v) for v in ("100", "200", "300", "400")])
    assert (low, high) == (Decimal("100.00"), Decimal("600.00"))


def test_relevance_score_levels():
    title = {"en": "Bamboo Basket", "zh-HK": "竹籃"}
    assert relevance_score("bamboo basket", title, None, []) == 1.0
    assert relevance_score("bamboo", title, None, []) == 0.8
    assert relevance_score("竹編", {"en": "Fan"}, None, ["竹編"]) == 0.6
    assert relevance_score("woven", {"en": "Fan"}, {"en": "Hand woven"}, []) == 0.5
    assert relevance_score("jade", title, None, []) == 0.0


def test_recency_score():
    now = datetime(2024, 1, 1)
    assert recency_score(now, now) == 1.0
    assert recency_score(now - timedelta(days=730), now) == 0.0
    assert 0.4 < recency_score(now - timedelta(days=180), now) < 0.6


# -----------------------------
# Recommendations
# -----------------------------
def test_track_event_anonymous_and_validation(client):
    resp = _track(client, {}, "view", "COURSE", 1)
    assert resp.status_code == 201
    assert resp.json()["user_id"] is None
    assert _track(client, {}, "view", None, 3).status_code == 400


def test_preferences_weight_categories_and_prices(client, craftsman, make_course, make_product, learner, auth_headers):
    course = make_course(craftsman.id)
    product = make_product(craftsman.id, craft_category="木雕")
    headers = auth_headers(learner)
    for _ in range(3):
        _track(client, headers, "view", "COURSE", course.id)
    _track(client, headers, "purchase", "PRODUCT", product.id)

    prefs = client.get("/api/v1/recommendations/preferences", headers=headers).json()
    assert prefs["craft_categories"] == ["木雕", "竹編"]
    assert Decimal(prefs["price_range"]["min"]) == Decimal("50.00")
    assert Decimal(prefs["price_range"]["max"]) == Decimal("450.00")
    assert prefs["preferred_language"] == "zh-HK"


def test_anonymous_gets_popular_fallback(client, craftsman, make_course):
    make_course(craftsman.id)
    sections = client.get("/api/v1/recommendations").json()["sections"]
    assert [s["type"] for s in sections] == ["popular"]
    assert {i["type"] for i in sections[0]["items"]} == {"craftsman", "course"}


def test_personal_section_skips_viewed_courses(client, craftsman, make_course, learner, auth_headers):
    seen = make_course(craftsman.id)
    fresh = make_course(craftsman.id, title={"en": "Advanced weaving"})
    headers = auth_headers(learner)
    _track(client, headers, "view", "COURSE", seen.id)

    sections = {s["type"]: s for s in client.get("/api/v1/recommendations", headers=headers).json()["sections"]}
    personal_courses = [i["id"] for i in sections["personal"]["items"] if i["type"] == "course"]
    assert personal_courses == [fresh.id]

    # aucun doublon entre sections
    keys = [(i["type"], i["id"]) for s in sections.values() for i in s["items"]]
    assert len(keys) == len(set(keys))


def test_similar_courses(client, craftsman, make_course):
    base = make_course(craftsman.id)
    sibling = make_course(craftsman.id)
    make_course(craftsman.id, status=CourseStatus.DRAFT)

    section = client.get(f"/api/v1/recommendations/similar/COURSE/{base.id}").json()
    assert [i["id"] for i in section["items"]] == [sibling.id]
    assert section["items"][0]["score"] == 0.8

    assert client.get("/api/v1/recommendations/similar/COURSE/9999").status_code == 404
    assert client.get("/api/v1/recommendations/similar/COMMENT/1").status_code == 400


# -----------------------------
# Search
# -----------------------------
def test_search_across_types(client, session, craftsman, make_course, make_product):
    make_course(craftsman.id)
    make_product(craftsman.id)
    make_product(craftsman.id, name={"en": "Jade Pendant"}, craft_category="玉雕")

    body = client.get("/api/v1/search", params={"q": "bamboo"}).json()
    assert body["total"] == 2
    assert body["facets"]["types"] == {"course": 1, "product": 1}
    assert all(r["relevance"] == 0.8 for r in body["items"])

    events = session.exec(select(UserBehaviorEvent).where(UserBehaviorEvent.event_type == BehaviorEventType.SEARCH)).all()
    assert events[0].details == {"query": "bamboo", "result_count": 2}


def test_search_type_filter_and_sort(client, craftsman, make_product):
    make_product(craftsman.id, price=Decimal("80.00"))
    make_product(craftsman.id, price=Decimal("20.00"))

    body = client.get("/api/v1/search", params={"types": "product", "sort": "price_asc"}).json()
    assert [Decimal(r["price"]) for r in body["items"]] == [Decimal("20.00"), Decimal("80.00")]

    body = client.get("/api/v1/search", params={"types": "product", "max_price": "50"}).json()
    assert body["total"] == 1


def test_search_rejects_unknown_type_and_sort(client):
    assert client.get("/api/v1/search", params={"types": "event"}).status_code == 400
    assert client.get("/api/v1/search", params={"sort": "random"}).status_code == 400


def test_search_boosts_preferred_category(client, craftsman, make_product, learner, auth_headers):
    liked = make_product(craftsman.id, name={"en": "Bamboo fan"}, craft_category="扇")
    other = make_product(craftsman.id, name={"en": "Bamboo tray"}, craft_category="竹編")
    headers = auth_headers(learner)
    _track(client, headers, "bookmark", "PRODUCT", liked.id)

    items = client.get("/api/v1/search", params={"q": "bamboo", "types": "product"}, headers=headers).json()["items"]
    assert [r["id"] for r in items] == [liked.id, other.id]


def test_suggestions(client, craftsman, make_course, make_product):
    make_course(craftsman.id)
    make_product(craftsman.id)
    texts = {(s["text"], s["type"]) for s in client.get("/api/v1/search/suggestions", params={"q": "Bamboo"}).json()}
    assert ("Bamboo Basket", "product") in texts
    assert ("Bamboo Weaving Workshop", "course") in texts
    assert client.get("/api/v1/search/suggestions", params={"q": ""}).status_code == 422

import pytest

from heritage_crafts.db.models.products import Product

SHIPPING = {"recipient_name": "Amy", "phone": "91234567", "address_line1": "1 Nathan Road"}


@pytest.fixture()
def product(craftsman, make_product):
    return make_product(craftsman.id)


def _review(client, user_headers, product_id, rating, **extra):
    return client.post(
        "/api/v1/reviews", json={"product_id": product_id, "rating": rating, **extra}, headers=user_headers
    )


def test_review_updates_product_rating(client, session, product, make_user, auth_headers):
    assert _review(client, auth_headers(make_user()), product.id, 5).status_code == 201
    assert _review(client, auth_headers(make_user()), product.id, 2).status_code == 201

    db_product = session.get(Product, product.id)
    session.refresh(db_product)
    assert db_product.review_count == 2
    assert db_product.average_rating == 3.5

    summary = client.get(f"/api/v1/reviews/products/{product.id}/summary").json()
    assert summary["review_count"] == 2
    assert summary["distribution"] == {"1": 0, "2": 1, "3": 0, "4": 0, "5": 1}


def test_one_review_per_product_and_order(client, product, learner, auth_headers):
    headers = auth_headers(learner)
    assert _review(client, headers, product.id, 4).status_code == 201
    assert _review(client, headers, product.id, 3).status_code == 409


def test_rating_bounds(client, product, learner, auth_headers):
    assert _review(client, auth_headers(learner), product.id, 6).status_code == 422
    assert _review(client, auth_headers(learner), 9999, 4).status_code == 404


def test_verified_purchase_requires_matching_order(client, product, learner, make_user, auth_headers):
    headers = auth_headers(learner)
    payload = {"shipping_address": SHIPPING, "items": [{"product_id": product.id, "quantity": 1}]}
    order_id = client.post("/api/v1/orders/direct", json=payload, headers=headers).json()["id"]

    resp = _review(client, headers, product.id, 5, order_id=order_id)
    assert resp.status_code == 201
    assert resp.json()["is_verified_purchase"] is True

    assert _review(client, auth_headers(make_user()), product.id, 5, order_id=order_id).status_code == 400


def test_list_sort_and_filter(client, product, make_user, auth_headers):
    for rating in (3, 5, 1):
        _review(client, auth_headers(make_user()), product.id, rating)

    high = client.get(f"/api/v1/reviews/products/{product.id}", params={"sort": "rating_high"}).json()["items"]
    assert [r["rating"] for r in high] == [5, 3, 1]

    only_five = client.get(f"/api/v1/reviews/products/{product.id}", params={"rating": 5}).json()["items"]
    assert len(only_five) == 1

    assert client.get(f"/api/v1/reviews/products/{product.id}", params={"sort": "random"}).status_code == 400


def test_update_and_delete_are_author_only(client, session, product, learner, make_user, admin, auth_headers):
    review_id = _review(client, auth_headers(learner), product.id, 2).json()["id"]
    stranger = auth_headers(make_user())

    assert client.patch(f"/api/v1/reviews/{review_id}", json={"rating": 5}, headers=stranger).status_code == 403
    resp = client.patch(f"/api/v1/reviews/{review_id}", json={"rating": 5}, headers=auth_headers(learner))
    assert resp.json()["rating"] == 5

    assert client.delete(f"/api/v1/reviews/{review_id}", headers=stranger).status_code == 403
    assert client.delete(f"/api/v1/reviews/{review_id}", headers=auth_headers(admin)).status_code == 204

    db_product = session.get(Product, product.id)
    session.refresh(db_product)
    assert db_product.review_count == 0
    assert db_product.average_rating == 0.0


def test_helpful_votes(client, product, learner, make_user, auth_headers):
    review_id = _review(client, auth_headers(learner), product.id, 4).json()["id"]
    voter = auth_headers(make_user())

    resp = client.post(f"/api/v1/reviews/{review_id}/helpful", headers=voter)
    assert resp.json() == {"review_id": review_id, "helpful_count": 1}
    assert client.post(f"/api/v1/reviews/{review_id}/helpful", headers=voter).status_code == 409
    assert client.post(f"/api/v1/reviews/{review_id}/helpful", headers=auth_headers(learner)).status_code == 400

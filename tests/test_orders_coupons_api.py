from datetime import timedelta
from decimal import Decimal

from sqlmodel import select

from heritage_crafts.db.models.base import utcnow
from heritage_crafts.db.models.coupons import Coupon
from heritage_crafts.db.models.enums import DiscountType, NotificationType, OrderStatus, PaymentStatus, ProductStatus
from heritage_crafts.db.models.notifications import Notification
from heritage_crafts.features.coupons.services import compute_discount

SHIPPING = {
    "recipient_name": "Amy Chan",
    "phone": "91234567",
    "address_line1": "1 Nathan Road",
    "district": "油尖旺",
}


def _coupon_payload(**extra):
    now = utcnow()
    payload = {
        "code": "welcome10",
        "discount_type": "PERCENTAGE",
        "discount_value": "10",
        "valid_from": (now - timedelta(days=1)).isoformat(),
        "valid_until": (now + timedelta(days=30)).isoformat(),
    }
    payload.update(extra)
    return payload


def _fill_cart(client, headers, product_id, quantity):
    resp = client.post("/api/v1/cart/items", json={"product_id": product_id, "quantity": quantity}, headers=headers)
    assert resp.status_code == 200


# -----------------------------
# Coupons
# -----------------------------
def test_compute_discount_is_capped():
    coupon = Coupon(
        code="X",
        discount_type=DiscountType.PERCENTAGE,
        discount_value=Decimal("50"),
        maximum_discount_amount=Decimal("30.00"),
        valid_from=utcnow(),
        valid_until=utcnow(),
    )
    assert compute_discount(coupon, Decimal("100.00")) == Decimal("30.00")

    coupon = Coupon(
        code="Y",
        discount_type=DiscountType.FIXED_AMOUNT,
        discount_value=Decimal("80"),
        valid_from=utcnow(),
        valid_until=utcnow(),
    )
    assert compute_discount(coupon, Decimal("50.00")) == Decimal("50.00")


def test_coupon_crud_is_admin_only(client, admin, learner, auth_headers):
    assert client.post("/api/v1/coupons", json=_coupon_payload(), headers=auth_headers(learner)).status_code == 403

    resp = client.post("/api/v1/coupons", json=_coupon_payload(), headers=auth_headers(admin))
    assert resp.status_code == 201
    assert resp.json()["code"] == "WELCOME10"
    assert client.post("/api/v1/coupons", json=_coupon_payload(), headers=auth_headers(admin)).status_code == 409


def test_coupon_with_inverted_dates_is_rejected(client, admin, auth_headers):
    now = utcnow()
    payload = _coupon_payload(valid_from=now.isoformat(), valid_until=(now - timedelta(days=1)).isoformat())
    assert client.post("/api/v1/coupons", json=payload, headers=auth_headers(admin)).status_code == 400


def test_coupon_validation_rules(client, admin, learner, auth_headers):
    client.post(
        "/api/v1/coupons",
        json=_coupon_payload(minimum_order_amount="100", applicable_categories=["竹編"], usage_limit=1),
        headers=auth_headers(admin),
    )
    headers = auth_headers(learner)

    def check(**payload):
        return client.post("/api/v1/coupons/validate", json=payload, headers=headers).json()

    ok = check(code="WELCOME10", order_amount="200", categories=["竹編"])
    assert ok["valid"] is True
    assert Decimal(ok["discount_amount"]) == Decimal("20.00")

    assert check(code="WELCOME10", order_amount="50", categories=["竹編"])["error"].startswith("Minimum order amount")
    assert check(code="WELCOME10", order_amount="200", categories=["木雕"])["valid"] is False
    assert check(code="NOPE", order_amount="200")["error"] == "Coupon not found"


def test_expired_coupon_is_invalid(client, admin, learner, auth_headers):
    now = utcnow()
    client.post(
        "/api/v1/coupons",
        json=_coupon_payload(
            valid_from=(now - timedelta(days=10)).isoformat(), valid_until=(now - timedelta(days=1)).isoformat()
        ),
        headers=auth_headers(admin),
    )
    body = client.post(
        "/api/v1/coupons/validate", json={"code": "WELCOME10", "order_amount": "100"}, headers=auth_headers(learner)
    ).json()
    assert body["valid"] is False


# -----------------------------
# Orders
# -----------------------------
def test_order_from_cart_reserves_stock_and_clears_cart(
    client, session, craftsman, craftsman_user, make_product, learner, auth_headers
):
    product = make_product(craftsman.id, inventory_quantity=3)
    headers = auth_headers(learner)
    _fill_cart(client, headers, product.id, 3)

    resp = client.post("/api/v1/orders", json={"shipping_address": SHIPPING}, headers=headers)
    assert resp.status_code == 201
    body = resp.json()
    assert Decimal(body["total_amount"]) == Decimal("300.00")
    assert body["status"] == OrderStatus.PENDING.value
    assert body["payment_status"] == PaymentStatus.PENDING.value
    assert body["items"][0]["quantity"] == 3

    session.refresh(product)
    assert product.inventory_quantity == 0
    assert product.status == ProductStatus.OUT_OF_STOCK
    assert client.get("/api/v1/cart", headers=headers).json()["items"] == []

    notes = session.exec(select(Notification).where(Notification.user_id == craftsman_user.id)).all()
    assert [n.type for n in notes] == [NotificationType.NEW_ORDER]


def test_empty_cart_cannot_be_ordered(client, learner, auth_headers):
    resp = client.post("/api/v1/orders", json={"shipping_address": SHIPPING}, headers=auth_headers(learner))
    assert resp.status_code == 400


def test_order_with_coupon_applies_discount(client, session, admin, craftsman, make_product, learner, auth_headers):
    client.post("/api/v1/coupons", json=_coupon_payload(), headers=auth_headers(admin))
    product = make_product(craftsman.id)
    headers = auth_headers(learner)
    _fill_cart(client, headers, product.id, 2)

    resp = client.post(
        "/api/v1/orders", json={"shipping_address": SHIPPING, "coupon_code": "WELCOME10"}, headers=headers
    )
    body = resp.json()
    assert Decimal(body["discount_amount"]) == Decimal("20.00")
    assert Decimal(body["total_amount"]) == Decimal("180.00")
    assert body["coupon_code"] == "WELCOME10"

    coupon = session.exec(select(Coupon).where(Coupon.code == "WELCOME10")).one()
    assert coupon.used_count == 1


def test_direct_order_with_insufficient_stock_rolls_back(client, session, craftsman, make_product, learner, auth_headers):
    plenty = make_product(craftsman.id, inventory_quantity=10)
    scarce = make_product(craftsman.id, inventory_quantity=1)
    payload = {
        "shipping_address": SHIPPING,
        "items": [{"product_id": plenty.id, "quantity": 2}, {"product_id": scarce.id, "quantity": 5}],
    }
    resp = client.post("/api/v1/orders/direct", json=payload, headers=auth_headers(learner))
    assert resp.status_code == 409

    session.refresh(plenty)
    assert plenty.inventory_quantity == 10


def test_fully_discounted_order_is_settled(client, admin, craftsman, make_product, learner, auth_headers):
    client.post("/api/v1/coupons", json=_coupon_payload(code="free", discount_value="100"), headers=auth_headers(admin))
    product = make_product(craftsman.id)
    payload = {
        "shipping_address": SHIPPING,
        "coupon_code": "FREE",
        "items": [{"product_id": product.id, "quantity": 1}],
    }
    resp = client.post("/api/v1/orders/direct", json=payload, headers=auth_headers(learner))
    assert resp.status_code == 201
    body = resp.json()
    assert Decimal(body["total_amount"]) == Decimal("0.00")
    assert body["status"] == OrderStatus.CONFIRMED.value
    assert body["payment_status"] == PaymentStatus.COMPLETED.value

    pay = client.post(
        "/api/v1/payments",
        json={"order_id": body["id"], "provider": "stripe", "amount": "0.01", "payment_method_id": "pm_card_visa"},
        headers=auth_headers(learner),
    )
    assert pay.status_code == 409


def test_direct_order_merges_duplicate_lines(client, session, craftsman, make_product, learner, auth_headers):
    last_unit = make_product(craftsman.id, inventory_quantity=1)
    payload = {
        "shipping_address": SHIPPING,
        "items": [{"product_id": last_unit.id, "quantity": 1}, {"product_id": last_unit.id, "quantity": 1}],
    }
    resp = client.post("/api/v1/orders/direct", json=payload, headers=auth_headers(learner))
    assert resp.status_code == 409
    session.refresh(last_unit)
    assert last_unit.inventory_quantity == 1

    product = make_product(craftsman.id, inventory_quantity=5)
    payload["items"] = [
        {"product_id": product.id, "quantity": 2, "customization_notes": "red ribbon"},
        {"product_id": product.id, "quantity": 1},
    ]
    body = client.post("/api/v1/orders/direct", json=payload, headers=auth_headers(learner)).json()
    assert [(i["product_id"], i["quantity"], i["customization_notes"]) for i in body["items"]] == [
        (product.id, 3, "red ribbon")
    ]
    assert Decimal(body["total_amount"]) == Decimal("300.00")


def test_order_status_transitions(client, craftsman, craftsman_user, make_product, learner, auth_headers):
    product = make_product(craftsman.id)
    payload = {"shipping_address": SHIPPING, "items": [{"product_id": product.id, "quantity": 1}]}
    order_id = client.post("/api/v1/orders/direct", json=payload, headers=auth_headers(learner)).json()["id"]
    manager = auth_headers(craftsman_user)

    def move(target, headers=manager):
        return client.put(f"/api/v1/orders/{order_id}/status", json={"status": target}, headers=headers)

    assert move("SHIPPED").status_code == 400
    assert move("CONFIRMED", auth_headers(learner)).status_code == 403
    for target in ("CONFIRMED", "PROCESSING", "SHIPPED", "DELIVERED"):
        resp = move(target)
        assert resp.status_code == 200
        assert resp.json()["status"] == target

    assert client.post(f"/api/v1/orders/{order_id}/cancel", headers=auth_headers(learner)).status_code == 400


def test_cancel_order_releases_stock(client, session, craftsman, make_product, learner, auth_headers):
    product = make_product(craftsman.id, inventory_quantity=5)
    payload = {"shipping_address": SHIPPING, "items": [{"product_id": product.id, "quantity": 5}]}
    headers = auth_headers(learner)
    order_id = client.post("/api/v1/orders/direct", json=payload, headers=headers).json()["id"]

    resp = client.post(f"/api/v1/orders/{order_id}/cancel", headers=headers)
    assert resp.json()["status"] == OrderStatus.CANCELLED.value
    assert resp.json()["payment_status"] == PaymentStatus.FAILED.value

    session.refresh(product)
    assert product.inventory_quantity == 5
    assert product.status == ProductStatus.ACTIVE


def test_order_visibility(client, craftsman, craftsman_user, make_product, make_user, learner, auth_headers):
    product = make_product(craftsman.id)
    payload = {"shipping_address": SHIPPING, "items": [{"product_id": product.id, "quantity": 1}]}
    order_id = client.post("/api/v1/orders/direct", json=payload, headers=auth_headers(learner)).json()["id"]

    assert client.get(f"/api/v1/orders/{order_id}", headers=auth_headers(learner)).status_code == 200
    assert client.get(f"/api/v1/orders/{order_id}", headers=auth_headers(craftsman_user)).status_code == 200
    assert client.get(f"/api/v1/orders/{order_id}", headers=auth_headers(make_user())).status_code == 403

    mine = client.get("/api/v1/orders/me", headers=auth_headers(learner)).json()["items"]
    assert [o["id"] for o in mine] == [order_id]
    theirs = client.get("/api/v1/orders/craftsman", headers=auth_headers(craftsman_user)).json()["items"]
    assert [o["id"] for o in theirs] == [order_id]


def test_order_stats(client, admin, craftsman, make_product, learner, auth_headers):
    product = make_product(craftsman.id)
    payload = {"shipping_address": SHIPPING, "items": [{"product_id": product.id, "quantity": 1}]}
    headers = auth_headers(learner)
    client.post("/api/v1/orders/direct", json=payload, headers=headers)
    cancelled = client.post("/api/v1/orders/direct", json=payload, headers=headers).json()["id"]
    client.post(f"/api/v1/orders/{cancelled}/cancel", headers=headers)

    stats = client.get("/api/v1/orders/stats", headers=headers).json()
    assert stats["total_orders"] == 2
    assert stats["pending_orders"] == 1
    assert stats["cancelled_orders"] == 1
    assert Decimal(stats["total_revenue"]) == Decimal("0")

    assert client.get("/api/v1/orders/stats", params={"global": True}, headers=headers).status_code == 403
    assert client.get("/api/v1/orders/stats", params={"global": True}, headers=auth_headers(admin)).status_code == 200

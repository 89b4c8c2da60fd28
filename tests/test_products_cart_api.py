from decimal import Decimal

from heritage_crafts.db.models.enums import ProductStatus
from heritage_crafts.features.products.services import status_for_quantity


def test_status_for_quantity():
    assert status_for_quantity(ProductStatus.ACTIVE, 0) == ProductStatus.OUT_OF_STOCK
    assert status_for_quantity(ProductStatus.OUT_OF_STOCK, 3) == ProductStatus.ACTIVE
    assert status_for_quantity(ProductStatus.INACTIVE, 0) == ProductStatus.INACTIVE
    assert status_for_quantity(ProductStatus.ACTIVE, 5) == ProductStatus.ACTIVE


# -----------------------------
# Products
# -----------------------------
def test_create_product_without_stock_is_out_of_stock(client, craftsman_user, auth_headers):
    payload = {"name": {"en": "Fan"}, "price": "80.00", "inventory_quantity": 0, "craft_category": "扇"}
    resp = client.post("/api/v1/products", json=payload, headers=auth_headers(craftsman_user))
    assert resp.status_code == 201
    assert resp.json()["status"] == ProductStatus.OUT_OF_STOCK.value


def test_learner_cannot_create_product(client, learner, auth_headers):
    payload = {"name": {"en": "Fan"}, "price": "80.00"}
    assert client.post("/api/v1/products", json=payload, headers=auth_headers(learner)).status_code == 403


def test_inventory_update_toggles_status(client, craftsman, craftsman_user, make_product, auth_headers):
    product = make_product(craftsman.id)
    headers = auth_headers(craftsman_user)

    resp = client.put(f"/api/v1/products/{product.id}/inventory", json={"quantity": 0}, headers=headers)
    assert resp.json()["status"] == ProductStatus.OUT_OF_STOCK.value

    resp = client.put(f"/api/v1/products/{product.id}/inventory", json={"quantity": 4}, headers=headers)
    assert resp.json()["status"] == ProductStatus.ACTIVE.value
    assert resp.json()["inventory_quantity"] == 4

    resp = client.put(f"/api/v1/products/{product.id}/inventory", json={"quantity": -1}, headers=headers)
    assert resp.status_code == 400


def test_product_list_filters(client, craftsman, make_product):
    make_product(craftsman.id, price=Decimal("50.00"))
    make_product(craftsman.id, price=Decimal("500.00"), craft_category="木雕")
    make_product(craftsman.id, status=ProductStatus.INACTIVE)

    assert client.get("/api/v1/products").json()["total"] == 2
    resp = client.get("/api/v1/products", params={"max_price": "100"})
    assert [Decimal(p["price"]) for p in resp.json()["items"]] == [Decimal("50.00")]
    resp = client.get("/api/v1/products", params={"category": "木雕"})
    assert resp.json()["total"] == 1


def test_low_stock_is_scoped_to_craftsman(client, craftsman, craftsman_user, make_craftsman, make_product, auth_headers, admin):
    make_product(craftsman.id, inventory_quantity=2)
    make_product(craftsman.id, inventory_quantity=50)
    other = make_craftsman()
    make_product(other.id, inventory_quantity=1)

    mine = client.get("/api/v1/products/low-stock", params={"threshold": 5}, headers=auth_headers(craftsman_user))
    assert [p["inventory_quantity"] for p in mine.json()] == [2]

    everything = client.get("/api/v1/products/low-stock", params={"threshold": 5}, headers=auth_headers(admin))
    assert [p["inventory_quantity"] for p in everything.json()] == [1, 2]


def test_activate_without_stock_is_rejected(client, craftsman, craftsman_user, make_product, auth_headers):
    product = make_product(craftsman.id, inventory_quantity=0, status=ProductStatus.OUT_OF_STOCK)
    resp = client.patch(
        f"/api/v1/products/{product.id}", json={"status": "ACTIVE"}, headers=auth_headers(craftsman_user)
    )
    assert resp.status_code == 400


def _direct_order(client, headers, product_id):
    payload = {
        "shipping_address": {"recipient_name": "Amy", "phone": "91234567", "address_line1": "1 Nathan Road"},
        "items": [{"product_id": product_id, "quantity": 1}],
    }
    resp = client.post("/api/v1/orders/direct", json=payload, headers=headers)
    assert resp.status_code == 201
    return resp.json()["id"]


def test_product_with_pending_orders_cannot_be_deleted(client, craftsman, craftsman_user, make_product, learner, auth_headers):
    product = make_product(craftsman.id)
    _direct_order(client, auth_headers(learner), product.id)
    resp = client.delete(f"/api/v1/products/{product.id}", headers=auth_headers(craftsman_user))
    assert resp.status_code == 409


def test_deleted_product_is_withdrawn_not_erased(
    client, session, craftsman, craftsman_user, make_product, make_user, learner, admin, auth_headers
):
    product = make_product(craftsman.id)
    order_id = _direct_order(client, auth_headers(learner), product.id)
    manager = auth_headers(craftsman_user)
    for status in ("CONFIRMED", "PROCESSING", "SHIPPED", "DELIVERED"):
        client.put(f"/api/v1/orders/{order_id}/status", json={"status": status}, headers=manager)

    shopper = make_user()
    client.post("/api/v1/cart/items", json={"product_id": product.id, "quantity": 1}, headers=auth_headers(shopper))

    assert client.delete(f"/api/v1/products/{product.id}", headers=manager).status_code == 204

    session.refresh(product)
    assert product.status == ProductStatus.INACTIVE
    assert client.get("/api/v1/cart", headers=auth_headers(shopper)).json()["items"] == []
    assert product.id not in [p["id"] for p in client.get("/api/v1/products").json()["items"]]

    order = client.get(f"/api/v1/orders/{order_id}", headers=auth_headers(admin)).json()
    assert order["items"][0]["product_id"] == product.id


# -----------------------------
# Cart
# -----------------------------
def test_cart_add_merges_quantities(client, craftsman, make_product, learner, auth_headers):
    product = make_product(craftsman.id)
    headers = auth_headers(learner)

    client.post("/api/v1/cart/items", json={"product_id": product.id, "quantity": 2}, headers=headers)
    resp = client.post("/api/v1/cart/items", json={"product_id": product.id, "quantity": 3}, headers=headers)
    body = resp.json()
    assert resp.status_code == 200
    assert body["total_items"] == 5
    assert Decimal(body["total_amount"]) == Decimal("500.00")
    assert len(body["items"]) == 1


def test_cart_add_rejects_bad_quantities(client, craftsman, make_product, learner, auth_headers):
    product = make_product(craftsman.id, inventory_quantity=3)
    headers = auth_headers(learner)

    assert client.post("/api/v1/cart/items", json={"product_id": product.id, "quantity": 0}, headers=headers).status_code == 400
    resp = client.post("/api/v1/cart/items", json={"product_id": product.id, "quantity": 4}, headers=headers)
    assert resp.status_code == 400
    assert "Only 3" in resp.json()["detail"]
    assert client.post("/api/v1/cart/items", json={"product_id": 9999, "quantity": 1}, headers=headers).status_code == 404


def test_cart_update_zero_removes_line(client, craftsman, make_product, learner, auth_headers):
    product = make_product(craftsman.id)
    headers = auth_headers(learner)
    client.post("/api/v1/cart/items", json={"product_id": product.id, "quantity": 2}, headers=headers)

    resp = client.put(f"/api/v1/cart/items/{product.id}", json={"quantity": 0}, headers=headers)
    assert resp.json()["items"] == []
    assert client.put(f"/api/v1/cart/items/{product.id}", json={"quantity": 1}, headers=headers).status_code == 404


def test_cart_validation_reports_stock_changes(client, session, craftsman, make_product, learner, auth_headers):
    product = make_product(craftsman.id, inventory_quantity=5)
    headers = auth_headers(learner)
    client.post("/api/v1/cart/items", json={"product_id": product.id, "quantity": 4}, headers=headers)
    assert client.get("/api/v1/cart/validate", headers=headers).json() == {"valid": True, "errors": []}

    product.inventory_quantity = 2
    session.add(product)
    session.commit()

    check = client.get("/api/v1/cart/validate", headers=headers).json()
    assert check["valid"] is False
    assert "Only 2" in check["errors"][0]


def test_inactive_products_excluded_from_totals(client, session, craftsman, make_product, learner, auth_headers):
    product = make_product(craftsman.id)
    headers = auth_headers(learner)
    client.post("/api/v1/cart/items", json={"product_id": product.id, "quantity": 1}, headers=headers)

    product.status = ProductStatus.INACTIVE
    session.add(product)
    session.commit()

    body = client.get("/api/v1/cart", headers=headers).json()
    assert len(body["items"]) == 1
    assert body["total_items"] == 0
    assert Decimal(body["total_amount"]) == Decimal("0")


def test_guest_cart_merge_skips_invalid_lines(client, craftsman, make_product, learner, auth_headers):
    product = make_product(craftsman.id)
    payload = {"items": [{"product_id": product.id, "quantity": 2}, {"product_id": 9999, "quantity": 1}]}
    resp = client.post("/api/v1/cart/merge", json=payload, headers=auth_headers(learner))
    assert resp.status_code == 200
    assert resp.json()["total_items"] == 2


def test_clear_cart(client, craftsman, make_product, learner, auth_headers):
    product = make_product(craftsman.id)
    headers = auth_headers(learner)
    client.post("/api/v1/cart/items", json={"product_id": product.id}, headers=headers)
    assert client.delete("/api/v1/cart", headers=headers).status_code == 204
    assert client.get("/api/v1/cart", headers=headers).json()["items"] == []

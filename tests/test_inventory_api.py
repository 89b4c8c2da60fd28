from datetime import timedelta

from heritage_crafts.db.models.base import utcnow
from heritage_crafts.db.models.enums import AlertType, ProductStatus
from heritage_crafts.db.models.inventory import InventoryAlert


def test_check_creates_low_and_out_of_stock_alerts(client, craftsman, craftsman_user, make_product, auth_headers):
    make_product(craftsman.id, inventory_quantity=3)
    make_product(craftsman.id, inventory_quantity=0, status=ProductStatus.OUT_OF_STOCK)
    make_product(craftsman.id, inventory_quantity=50)
    make_product(craftsman.id, inventory_quantity=0, status=ProductStatus.INACTIVE)
    headers = auth_headers(craftsman_user)

    created = client.post("/api/v1/inventory/check", headers=headers).json()
    assert sorted(a["alert_type"] for a in created) == [AlertType.LOW_STOCK.value, AlertType.OUT_OF_STOCK.value]

    # une seule alerte par produit sur 24 h
    assert client.post("/api/v1/inventory/check", headers=headers).json() == []


def test_custom_threshold_applies(client, craftsman, craftsman_user, make_product, auth_headers):
    make_product(craftsman.id, inventory_quantity=8)
    headers = auth_headers(craftsman_user)

    assert client.get("/api/v1/inventory/threshold", headers=headers).json()["low_stock_threshold"] == 5
    resp = client.put("/api/v1/inventory/threshold", json={"low_stock_threshold": 10}, headers=headers)
    assert resp.json() == {"craftsman_id": craftsman.id, "low_stock_threshold": 10}

    created = client.post("/api/v1/inventory/check", headers=headers).json()
    assert [a["threshold"] for a in created] == [10]


def test_learner_has_no_inventory_access(client, learner, auth_headers):
    assert client.post("/api/v1/inventory/check", headers=auth_headers(learner)).status_code == 403
    assert client.get("/api/v1/inventory/threshold", headers=auth_headers(learner)).status_code == 403


def test_alerts_are_scoped_to_owner(client, craftsman, craftsman_user, make_craftsman, make_product, admin, auth_headers):
    make_product(craftsman.id, inventory_quantity=1)
    other = make_craftsman()
    make_product(other.id, inventory_quantity=1)
    client.post("/api/v1/inventory/check", headers=auth_headers(admin))

    mine = client.get("/api/v1/inventory/alerts", headers=auth_headers(craftsman_user)).json()["items"]
    assert [a["craftsman_id"] for a in mine] == [craftsman.id]

    everything = client.get("/api/v1/inventory/alerts", headers=auth_headers(admin)).json()["items"]
    assert len(everything) == 2

    foreign = next(a for a in everything if a["craftsman_id"] == other.id)
    resp = client.post(f"/api/v1/inventory/alerts/{foreign['id']}/acknowledge", headers=auth_headers(craftsman_user))
    assert resp.status_code == 403


def test_acknowledge_and_stats(client, craftsman, craftsman_user, make_product, auth_headers):
    make_product(craftsman.id, inventory_quantity=2)
    headers = auth_headers(craftsman_user)
    alert = client.post("/api/v1/inventory/check", headers=headers).json()[0]

    stats = client.get("/api/v1/inventory/alerts/stats", headers=headers).json()
    assert stats["total"] == 1
    assert stats["unacknowledged"] == 1
    assert stats["by_type"][AlertType.LOW_STOCK.value] == 1

    resp = client.post(f"/api/v1/inventory/alerts/{alert['id']}/acknowledge", headers=headers)
    assert resp.json()["is_acknowledged"] is True
    assert client.get("/api/v1/inventory/alerts/stats", headers=headers).json()["unacknowledged"] == 0

    pending = client.get("/api/v1/inventory/alerts", params={"acknowledged": False}, headers=headers).json()
    assert pending["items"] == []


def test_restock_reminder_is_unique(client, craftsman, craftsman_user, make_product, auth_headers):
    product = make_product(craftsman.id)
    headers = auth_headers(craftsman_user)
    payload = {"product_id": product.id, "message": "Order more bamboo"}

    resp = client.post("/api/v1/inventory/restock-reminders", json=payload, headers=headers)
    assert resp.status_code == 201
    assert resp.json()["alert_type"] == AlertType.RESTOCK_REMINDER.value
    assert client.post("/api/v1/inventory/restock-reminders", json=payload, headers=headers).status_code == 409


def test_cleanup_removes_old_acknowledged_alerts(client, session, craftsman, make_product, admin, craftsman_user, auth_headers):
    product = make_product(craftsman.id)
    old = utcnow() - timedelta(days=60)
    session.add(InventoryAlert(
        product_id=product.id, craftsman_id=craftsman.id, alert_type=AlertType.LOW_STOCK,
        threshold=5, current_quantity=1, is_acknowledged=True, created_at=old,
    ))
    session.add(InventoryAlert(
        product_id=product.id, craftsman_id=craftsman.id, alert_type=AlertType.LOW_STOCK,
        threshold=5, current_quantity=1, is_acknowledged=False, created_at=old,
    ))
    session.commit()

    assert client.delete("/api/v1/inventory/alerts/cleanup", headers=auth_headers(craftsman_user)).status_code == 403
    resp = client.delete("/api/v1/inventory/alerts/cleanup", params={"days": 30}, headers=auth_headers(admin))
    assert resp.json() == {"deleted": 1}

"""Admin console tests."""

from decimal import Decimal

import pytest

from conftest import SHIPPING_ADDRESS, fill_cart, make_product
from storefront.extensions import db
from storefront.models import AuditLog, Product, User


@pytest.fixture
def order_id(app, user_client, user_id, product_id):
    fill_cart(app, user_id, (product_id, 3))
    response = user_client.post(
        "/api/orders", json={"shippingAddress": SHIPPING_ADDRESS})
    assert response.status_code == 201
    return response.get_json()["order"]["id"]


class TestAccess:
    @pytest.mark.parametrize("path", [
        "/api/admin/stats",
        "/api/admin/users",
        "/api/admin/orders",
        "/api/admin/products",
    ])
    def test_customers_are_forbidden(self, user_client, path):
        response = user_client.get(path)
        assert response.status_code == 403
        assert response.get_json()["error"] == "Insufficient permissions"

    def test_guests_must_log_in(self, client):
        assert client.get("/api/admin/stats").status_code == 401


class TestOrders:
    def test_update_status_and_tracking(self, admin_client, order_id):
        response = admin_client.put(
            f"/api/admin/orders/{order_id}",
            json={"status": "shipped", "trackingNumber": " TRK-42 "})

        assert response.status_code == 200
        order = response.get_json()["order"]
        assert order["status"] == "shipped"
        assert order["trackingNumber"] == "TRK-42"
        assert order["user"]["email"] == "alice@example.com"
        assert order["total"] == 81.0

    def test_invalid_status(self, admin_client, order_id):
        response = admin_client.put(
            f"/api/admin/orders/{order_id}", json={"status": "lost"})
        assert response.status_code == 400
        assert response.get_json()["error"] == "Invalid status"

    def test_unknown_order(self, admin_client):
        response = admin_client.put(
            "/api/admin/orders/999", json={"status": "shipped"})
        assert response.status_code == 404

    def test_cancel_does_not_restock_or_refund(
            self, app, admin_client, order_id, user_id, product_id):
        response = admin_client.put(
            f"/api/admin/orders/{order_id}", json={"status": "cancelled"})
        assert response.status_code == 200

        with app.app_context():
            assert db.session.get(Product, product_id).stock == 7
            assert db.session.get(User, user_id).wallet_balance == (
                Decimal("19.00"))

    def test_list_filters(self, admin_client, order_id):
        body = admin_client.get("/api/admin/orders").get_json()
        assert [o["id"] for o in body["orders"]] == [order_id]

        pending = admin_client.get("/api/admin/orders?status=pending")
        assert len(pending.get_json()["orders"]) == 1
        shipped = admin_client.get("/api/admin/orders?status=shipped")
        assert shipped.get_json()["orders"] == []

        by_name = admin_client.get("/api/admin/orders?search=alice")
        assert len(by_name.get_json()["orders"]) == 1

    def test_search_wildcards_match_literally(self, admin_client, order_id):
        for term in ("%25", "_"):
            response = admin_client.get(f"/api/admin/orders?search={term}")
            assert response.get_json()["orders"] == []

    def test_status_change_is_audited(self, app, admin_client, order_id):
        admin_client.put(
            f"/api/admin/orders/{order_id}", json={"status": "processing"})

        with app.app_context():
            entry = AuditLog.query.filter_by(
                action="ORDER_STATUS_UPDATE").one()
            assert entry.target_id == order_id
            assert entry.get_payload()["to"] == "processing"


class TestDashboard:
    def test_stats(self, admin_client, order_id):
        body = admin_client.get("/api/admin/stats").get_json()

        assert body["stats"] == {
            "totalUsers": 1,
            "totalProducts": 1,
            "totalOrders": 1,
            "totalRevenue": 81.0,
        }
        assert [o["id"] for o in body["recentOrders"]] == [order_id]
        assert len(body["monthlySales"]) == 1
        assert body["monthlySales"][0]["total"] == 81.0
        assert body["monthlySales"][0]["count"] == 1

    def test_empty_store(self, admin_client):
        body = admin_client.get("/api/admin/stats").get_json()
        assert body["stats"]["totalRevenue"] == 0
        assert body["monthlySales"] == []


class TestProducts:
    NEW_PRODUCT = {
        "name": "Lamp",
        "description": "Desk lamp",
        "category": "Home",
        "price": 35.5,
        "stock": 12,
    }

    def test_create(self, admin_client):
        response = admin_client.post("/api/products", json=self.NEW_PRODUCT)

        assert response.status_code == 201
        product = response.get_json()["product"]
        assert product["price"] == 35.5
        assert product["isActive"] is True

    def test_create_validation(self, admin_client):
        response = admin_client.post(
            "/api/products", json={"name": "Lamp", "price": -1})

        assert response.status_code == 400
        fields = {e["field"] for e in response.get_json()["errors"]}
        assert fields == {"description", "category", "price", "stock"}

    def test_customer_cannot_create(self, user_client):
        response = user_client.post("/api/products", json=self.NEW_PRODUCT)
        assert response.status_code == 403

    def test_update(self, admin_client, product_id):
        response = admin_client.put(
            f"/api/products/{product_id}", json={"price": "19.50"})
        assert response.status_code == 200
        assert response.get_json()["product"]["price"] == 19.5

    def test_delete_is_soft(self, app, admin_client, client, product_id):
        response = admin_client.delete(f"/api/products/{product_id}")
        assert response.status_code == 200

        assert client.get(f"/api/products/{product_id}").status_code == 404
        with app.app_context():
            assert db.session.get(Product, product_id).is_active is False

        listing = admin_client.get("/api/admin/products").get_json()
        assert [p["isActive"] for p in listing["products"]] == [False]

    def test_admin_listing_includes_inactive(self, app, admin_client):
        make_product(app, name="Active")
        make_product(app, name="Retired", is_active=False)

        body = admin_client.get("/api/admin/products").get_json()
        assert sorted(p["name"] for p in body["products"]) == [
            "Active", "Retired"]


class TestUsers:
    def test_list(self, admin_client, user_id):
        body = admin_client.get("/api/admin/users").get_json()
        emails = sorted(u["email"] for u in body["users"])
        assert emails == ["admin@example.com", "alice@example.com"]

        found = admin_client.get("/api/admin/users?search=alice").get_json()
        assert [u["id"] for u in found["users"]] == [user_id]

    def test_change_role(self, admin_client, user_id):
        response = admin_client.put(
            f"/api/admin/users/{user_id}/role", json={"role": "admin"})
        assert response.status_code == 200
        assert response.get_json()["user"]["role"] == "admin"

    def test_invalid_role(self, admin_client, user_id):
        response = admin_client.put(
            f"/api/admin/users/{user_id}/role", json={"role": "root"})
        assert response.status_code == 400
        assert response.get_json()["error"] == "Invalid role"

    def test_unknown_user(self, admin_client):
        response = admin_client.put(
            "/api/admin/users/999/role", json={"role": "admin"})
        assert response.status_code == 404

"""HTTP tests for the customer order endpoints."""

from conftest import SHIPPING_ADDRESS, fill_cart, login, make_user
from storefront.extensions import db
from storefront.models import Order, Product


def _place(client, address=SHIPPING_ADDRESS):
    return client.post("/api/orders", json={"shippingAddress": address})


class TestPlaceOrder:
    def test_created(self, app, user_client, user_id, product_id):
        fill_cart(app, user_id, (product_id, 3))

        response = _place(user_client)

        assert response.status_code == 201
        body = response.get_json()
        assert body["message"] == "Order created successfully"
        order = body["order"]
        assert order["orderNumber"].startswith("ORD-")
        assert order["subtotal"] == 75.0
        assert order["tax"] == 6.0
        assert order["shipping"] == 0.0
        assert order["total"] == 81.0
        assert order["status"] == "pending"
        assert order["paymentMethod"] == "wallet"
        assert order["paymentStatus"] == "paid"
        assert order["shippingAddress"] == SHIPPING_ADDRESS
        assert order["items"][0]["quantity"] == 3
        assert order["items"][0]["price"] == 25.0

        cart = user_client.get("/api/cart").get_json()
        assert cart["items"] == []
        wallet = user_client.get("/api/wallet").get_json()
        assert wallet["balance"] == 19.0

    def test_requires_login(self, client):
        response = _place(client)
        assert response.status_code == 401
        assert response.get_json()["login_required"] is True

    def test_missing_address_field(self, app, user_client, user_id,
                                   product_id):
        fill_cart(app, user_id, (product_id, 1))
        address = dict(SHIPPING_ADDRESS)
        del address["phone"]

        response = _place(user_client, address)

        assert response.status_code == 400
        body = response.get_json()
        assert body["error"] == "Shipping address field phone is required"
        assert body["field"] == "phone"

    def test_empty_cart(self, user_client):
        response = _place(user_client)
        assert response.status_code == 400
        assert response.get_json()["error"] == "Cart is empty"

    def test_insufficient_stock(self, app, user_client, user_id, product_id):
        fill_cart(app, user_id, (product_id, 3))
        with app.app_context():
            db.session.get(Product, product_id).stock = 1
            db.session.commit()

        response = _place(user_client)

        assert response.status_code == 400
        body = response.get_json()
        assert body["error"].startswith("Insufficient stock for Widget")
        assert body["available"] == 1
        assert body["requested"] == 3

    def test_insufficient_balance(self, app, product_id):
        user_id = make_user(app, "bob@example.com", balance="10.00")
        client = login(app.test_client(), "bob@example.com")
        fill_cart(app, user_id, (product_id, 1))

        response = _place(client)

        assert response.status_code == 400
        body = response.get_json()
        assert body["error"] == (
            "Insufficient wallet balance. "
            "Required: $37.00, Available: $10.00")
        assert body["required"] == 37.0
        assert body["available"] == 10.0
        with app.app_context():
            assert Order.query.count() == 0


class TestOrderHistory:
    def test_list_and_detail(self, app, user_client, user_id, product_id):
        fill_cart(app, user_id, (product_id, 1))
        created = _place(user_client).get_json()["order"]

        listing = user_client.get("/api/orders").get_json()
        assert [o["id"] for o in listing["orders"]] == [created["id"]]
        assert listing["pagination"]["total"] == 1

        detail = user_client.get(f"/api/orders/{created['id']}")
        assert detail.status_code == 200
        assert detail.get_json()["order"]["orderNumber"] == (
            created["orderNumber"])

    def test_other_users_order_is_not_found(
            self, app, user_client, user_id, product_id):
        fill_cart(app, user_id, (product_id, 1))
        order_id = _place(user_client).get_json()["order"]["id"]

        make_user(app, "eve@example.com")
        other = login(app.test_client(), "eve@example.com")

        response = other.get(f"/api/orders/{order_id}")
        assert response.status_code == 404
        assert response.get_json()["error"] == "Order not found"
        assert other.get("/api/orders").get_json()["orders"] == []


class TestRequestBody:
    def test_array_body_is_rejected(self, user_client):
        response = user_client.post("/api/orders", json=[SHIPPING_ADDRESS])
        assert response.status_code == 400
        assert response.get_json()["error"] == (
            "Request body must be a JSON object")

    def test_non_object_bodies_across_endpoints(
            self, admin_client, product_id):
        for method, path in [
            ("post", "/api/cart/add"),
            ("put", "/api/cart/update"),
            ("put", f"/api/products/{product_id}"),
            ("put", "/api/auth/profile"),
        ]:
            response = getattr(admin_client, method)(path, json=[1, 2])
            assert response.status_code == 400, path

    def test_missing_body_reads_as_empty(self, user_client):
        response = user_client.post("/api/orders")
        assert response.status_code == 400
        assert response.get_json()["error"] == "Shipping address is required"

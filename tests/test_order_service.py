"""Tests for the order placement transaction."""

import threading
from decimal import Decimal

import pytest
from sqlalchemy import event

from conftest import SHIPPING_ADDRESS, fill_cart, make_product, make_user
from storefront.errors import (
    EmptyCartError,
    InsufficientBalanceError,
    InsufficientStockError,
    ProductUnavailableError,
    ValidationError,
)
from storefront.extensions import db
from storefront.models import (
    Order,
    OrderStatus,
    PaymentStatus,
    Product,
    TransactionType,
    User,
    WalletTransaction,
)
from storefront.services.cart_service import ServerCart
from storefront.services.order_service import place_order
from storefront.services.wallet_service import get_wallet


def _checkout(app, user_id, address=SHIPPING_ADDRESS):
    with app.app_context():
        user = db.session.get(User, user_id)
        order = place_order(user, address, ServerCart(user_id))
        return order.id


def _state(app, user_id, product_id):
    with app.app_context():
        return {
            "stock": db.session.get(Product, product_id).stock,
            "balance": db.session.get(User, user_id).wallet_balance,
            "cart": [
                (line.product_id, line.quantity)
                for line in ServerCart(user_id).read()],
            "orders": Order.query.count(),
        }


class TestSuccessfulCheckout:
    def test_scenario_debits_wallet_and_stock(self, app, user_id, product_id):
        fill_cart(app, user_id, (product_id, 3))

        order_id = _checkout(app, user_id)

        with app.app_context():
            order = db.session.get(Order, order_id)
            assert order.subtotal == Decimal("75.00")
            assert order.tax == Decimal("6.00")
            assert order.shipping == Decimal("0")
            assert order.total == Decimal("81.00")
            assert order.status == OrderStatus.PENDING
            assert order.payment_status == PaymentStatus.PAID
            assert order.payment_method.value == "wallet"
            assert order.order_number.startswith("ORD-")

            assert db.session.get(Product, product_id).stock == 7
            balance, transactions = get_wallet(user_id)
            assert balance == Decimal("19.00")

            purchases = [
                t for t in transactions
                if t.type == TransactionType.PURCHASE]
            assert len(purchases) == 1
            assert purchases[0].amount == Decimal("-81.00")
            assert order.order_number in purchases[0].description

            assert ServerCart(user_id).read() == []

    def test_items_snapshot_price_at_purchase(self, app, user_id, product_id):
        fill_cart(app, user_id, (product_id, 2))
        order_id = _checkout(app, user_id)

        with app.app_context():
            db.session.get(Product, product_id).price = Decimal("30.00")
            db.session.commit()

            order = db.session.get(Order, order_id)
            assert len(order.items) == 1
            item = order.items[0]
            assert item.unit_price == Decimal("25.00")
            assert item.quantity == 2
            assert order.subtotal == sum(
                i.unit_price * i.quantity for i in order.items)

    def test_uses_current_price_not_price_when_added(
            self, app, user_id, product_id):
        fill_cart(app, user_id, (product_id, 1))
        with app.app_context():
            db.session.get(Product, product_id).price = Decimal("40.00")
            db.session.commit()

        order_id = _checkout(app, user_id)

        with app.app_context():
            order = db.session.get(Order, order_id)
            assert order.subtotal == Decimal("40.00")
            assert order.shipping == Decimal("10")
            assert order.total == Decimal("53.20")

    def test_address_is_trimmed_snapshot(self, app, user_id, product_id):
        fill_cart(app, user_id, (product_id, 1))
        address = {k: f"  {v}  " for k, v in SHIPPING_ADDRESS.items()}

        order_id = _checkout(app, user_id, address)

        with app.app_context():
            order = db.session.get(Order, order_id)
            assert order.shipping_name == "Alice Buyer"
            assert order.shipping_postal_code == "12345"

    def test_ledger_matches_balance(self, app, user_id):
        first = make_product(app, name="First", price="10.00")
        second = make_product(app, name="Second", price="7.35", stock=4)
        fill_cart(app, user_id, (first, 2), (second, 4))

        _checkout(app, user_id)

        with app.app_context():
            balance, transactions = get_wallet(user_id)
            assert balance == sum(t.amount for t in transactions)
            assert db.session.get(Product, second).stock == 0


class TestRowLocking:
    def test_products_are_locked_in_id_order(self, app, user_id):
        first = make_product(app, name="First")
        second = make_product(app, name="Second")
        fill_cart(app, user_id, (second, 1), (first, 1))
        statements = []

        def capture(conn, cursor, statement, params, context, many):
            statements.append(statement)

        with app.app_context():
            event.listen(db.engine, "before_cursor_execute", capture)
            try:
                place_order(
                    db.session.get(User, user_id), SHIPPING_ADDRESS,
                    ServerCart(user_id))
            finally:
                event.remove(db.engine, "before_cursor_execute", capture)

        lock_reads = [
            s for s in statements
            if s.lstrip().startswith("SELECT") and "IN (" in s
            and "FROM products" in s]
        assert lock_reads
        assert "ORDER BY products.id" in lock_reads[0]


class TestPreconditions:
    def test_missing_address_field_is_reported_first(self, app, user_id):
        address = dict(SHIPPING_ADDRESS, city="   ")
        with app.app_context():
            user = db.session.get(User, user_id)
            with pytest.raises(ValidationError) as exc:
                place_order(user, address, ServerCart(user_id))
        assert exc.value.field == "city"
        assert "city" in exc.value.message

    def test_missing_address(self, app, user_id):
        with app.app_context():
            user = db.session.get(User, user_id)
            with pytest.raises(ValidationError) as exc:
                place_order(user, None, ServerCart(user_id))
        assert exc.value.message == "Shipping address is required"

    def test_empty_cart(self, app, user_id):
        with pytest.raises(EmptyCartError):
            _checkout(app, user_id)

    def test_inactive_product(self, app, user_id, product_id):
        fill_cart(app, user_id, (product_id, 1))
        with app.app_context():
            db.session.get(Product, product_id).is_active = False
            db.session.commit()

        with pytest.raises(ProductUnavailableError) as exc:
            _checkout(app, user_id)
        assert exc.value.message == "Product Widget is no longer available"

    def test_insufficient_stock_changes_nothing(
            self, app, user_id, product_id):
        fill_cart(app, user_id, (product_id, 3))
        with app.app_context():
            db.session.get(Product, product_id).stock = 2
            db.session.commit()
        before = _state(app, user_id, product_id)

        with pytest.raises(InsufficientStockError) as exc:
            _checkout(app, user_id)

        assert exc.value.message == (
            "Insufficient stock for Widget. Available: 2, Requested: 3")
        assert _state(app, user_id, product_id) == before

    def test_insufficient_balance_changes_nothing(self, app, product_id):
        user_id = make_user(app, "bob@example.com", balance="50.00")
        fill_cart(app, user_id, (product_id, 3))
        before = _state(app, user_id, product_id)

        with pytest.raises(InsufficientBalanceError) as exc:
            _checkout(app, user_id)

        assert exc.value.message == (
            "Insufficient wallet balance. "
            "Required: $81.00, Available: $50.00")
        assert _state(app, user_id, product_id) == before
        with app.app_context():
            assert WalletTransaction.query.filter_by(
                user_id=user_id,
                type=TransactionType.PURCHASE).count() == 0

    def test_exact_balance_is_enough(self, app, product_id):
        user_id = make_user(app, "carol@example.com", balance="81.00")
        fill_cart(app, user_id, (product_id, 3))

        _checkout(app, user_id)

        with app.app_context():
            assert db.session.get(User, user_id).wallet_balance == 0


class TestConcurrentCheckout:
    def test_last_unit_is_sold_once(self, file_app):
        app = file_app
        product_id = make_product(app, stock=1)
        buyers = [
            make_user(app, f"buyer{i}@example.com", balance="100.00")
            for i in range(2)
        ]
        for buyer in buyers:
            fill_cart(app, buyer, (product_id, 1))

        barrier = threading.Barrier(len(buyers))
        results = {}

        def checkout(buyer):
            with app.app_context():
                user = db.session.get(User, buyer)
                barrier.wait()
                try:
                    order = place_order(
                        user, SHIPPING_ADDRESS, ServerCart(buyer))
                    results[buyer] = order.order_number
                except InsufficientStockError as e:
                    results[buyer] = e

        threads = [
            threading.Thread(target=checkout, args=(b,)) for b in buyers]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=30)

        successes = [r for r in results.values() if isinstance(r, str)]
        failures = [
            r for r in results.values()
            if isinstance(r, InsufficientStockError)]
        assert len(successes) == 1
        assert len(failures) == 1

        with app.app_context():
            assert db.session.get(Product, product_id).stock == 0
            assert Order.query.count() == 1
            balances = sorted(
                db.session.get(User, b).wallet_balance for b in buyers)
            assert balances == [Decimal("63.00"), Decimal("100.00")]

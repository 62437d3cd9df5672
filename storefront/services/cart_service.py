"""Cart storage behind a single capability interface.

Authenticated users get a :class:`ServerCart` persisted in ``carts`` /
``cart_items``; guests get a :class:`SessionCart` kept in the signed session
cookie. Checkout only ever talks to :class:`CartStore`.
"""
from dataclasses import dataclass, field
from flask import session
from flask_login import current_user
from storefront.extensions import db
from storefront.errors import (
    InsufficientStockError,
    NotFoundError,
    ValidationError,
)
from storefront.models import Cart, CartItem, Product
from storefront.utils import to_int
import logging

logger = logging.getLogger(__name__)

SESSION_CART_KEY = 'cart'


@dataclass
class CartLine:
    product_id: int
    quantity: int
    product: dict = field(default_factory=dict)


def parse_quantity(value, default=None):
    if value is None and default is not None:
        return default
    quantity = to_int(value)
    if quantity is None:
        raise ValidationError('Quantity must be an integer', field='quantity')
    if quantity <= 0:
        raise ValidationError(
            'Quantity must be greater than 0', field='quantity')
    return quantity


def parse_product_id(value):
    product_id = to_int(value)
    if not product_id:
        raise ValidationError(
            'Product ID cannot be empty', field='productId')
    return product_id


class CartStore:
    """Capability interface shared by guest and user carts."""

    def read(self):
        raise NotImplementedError

    def add(self, product_id, quantity=1):
        raise NotImplementedError

    def update(self, product_id, quantity):
        raise NotImplementedError

    def remove(self, product_id):
        raise NotImplementedError

    def clear(self):
        raise NotImplementedError

    def is_empty(self):
        return not self.read()


class ServerCart(CartStore):
    """Cart rows owned by one user.

    Mutations flush only; the request (or the checkout transaction) that
    owns the session decides when to commit.
    """

    def __init__(self, user_id):
        self.user_id = user_id

    def _cart(self, create=False):
        cart = Cart.query.filter_by(user_id=self.user_id).first()
        if not cart and create:
            cart = Cart(user_id=self.user_id)
            db.session.add(cart)
            db.session.flush()
        return cart

    def _item(self, product_id):
        cart = self._cart()
        if not cart:
            return None
        return CartItem.query.filter_by(
            cart_id=cart.id,
            product_id=product_id
        ).first()

    def read(self):
        cart = self._cart()
        if not cart:
            return []
        items = cart.items.order_by(
            CartItem.added_at, CartItem.product_id).all()
        return [
            CartLine(
                product_id=item.product_id,
                quantity=item.quantity,
                product=_product_fields(item.product),
            )
            for item in items
        ]

    def add(self, product_id, quantity=1):
        product = Product.query.filter_by(
            id=product_id,
            is_active=True
        ).first()
        if not product:
            raise NotFoundError('Product not found')

        item = self._item(product_id)
        new_quantity = quantity + (item.quantity if item else 0)
        if new_quantity > product.stock:
            raise InsufficientStockError(
                product.name, product.stock, new_quantity,
                product_id=product.id)

        if item:
            item.quantity = new_quantity
        else:
            item = CartItem(
                cart_id=self._cart(create=True).id,
                product_id=product_id,
                quantity=quantity
            )
            db.session.add(item)
        db.session.flush()
        return item

    def update(self, product_id, quantity):
        item = self._item(product_id)
        if not item:
            raise NotFoundError('Item not found in cart')

        product = db.session.get(Product, product_id)
        if product is None:
            raise NotFoundError('Product not found')
        if product.stock < quantity:
            raise InsufficientStockError(
                product.name, product.stock, quantity,
                product_id=product.id)

        item.quantity = quantity
        db.session.flush()
        return item

    def remove(self, product_id):
        item = self._item(product_id)
        if not item:
            raise NotFoundError('Item not found in cart')
        db.session.delete(item)
        db.session.flush()

    def clear(self):
        cart = self._cart()
        if cart:
            CartItem.query.filter_by(cart_id=cart.id).delete(
                synchronize_session=False)
            db.session.flush()


class SessionCart(CartStore):
    """Guest cart kept in the session cookie.

    Adding a line stores a placeholder product (empty name, zero price)
    instead of looking the product up; callers must not treat it as a
    price source.
    """

    def __init__(self, store=None):
        self.store = session if store is None else store

    def _lines(self):
        return list(self.store.get(SESSION_CART_KEY, []))

    def _save(self, lines):
        self.store[SESSION_CART_KEY] = lines
        if hasattr(self.store, 'modified'):
            self.store.modified = True

    def read(self):
        return [
            CartLine(
                product_id=line['product']['id'],
                quantity=line['quantity'],
                product=dict(line['product']),
            )
            for line in self._lines()
        ]

    def add(self, product_id, quantity=1):
        lines = self._lines()
        for line in lines:
            if line['product']['id'] == product_id:
                line['quantity'] += quantity
                break
        else:
            lines.append({
                'product': {
                    'id': product_id,
                    'name': '',
                    'price': 0,
                    'image': '',
                },
                'quantity': quantity,
            })
        self._save(lines)

    def update(self, product_id, quantity):
        lines = self._lines()
        for line in lines:
            if line['product']['id'] == product_id:
                line['quantity'] = quantity
                self._save(lines)
                return
        raise NotFoundError('Item not found in cart')

    def remove(self, product_id):
        lines = self._lines()
        kept = [ln for ln in lines if ln['product']['id'] != product_id]
        if len(kept) == len(lines):
            raise NotFoundError('Item not found in cart')
        self._save(kept)

    def clear(self):
        self._save([])


def get_cart_store():
    if current_user.is_authenticated:
        return ServerCart(current_user.id)
    return SessionCart()


def _product_fields(product):
    if product is None:
        return {}
    return {
        'id': product.id,
        'name': product.name,
        'price': float(product.price),
        'image': product.image,
        'stock': product.stock,
        'isActive': product.is_active,
    }

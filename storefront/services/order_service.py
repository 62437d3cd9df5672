"""Order placement and the operator order workflow.

:func:`place_order` turns a cart into an order, paid from the wallet, as one
database transaction. Every business rule is checked before the first write;
the writes themselves are conditional (stock, balance) so a concurrent
checkout that got in first makes this one fail cleanly instead of
overselling or overdrawing.
"""
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from sqlalchemy import or_, update
from sqlalchemy.exc import SQLAlchemyError
from storefront.extensions import db
from storefront.errors import (
    BusinessRuleError,
    EmptyCartError,
    InsufficientBalanceError,
    InsufficientStockError,
    NotFoundError,
    ProductUnavailableError,
    ValidationError,
)
from storefront.models import (
    Order,
    OrderItem,
    OrderPaymentMethod,
    OrderStatus,
    PaymentStatus,
    Product,
    TransactionType,
    User,
)
from storefront.services.audit_service import log_audit
from storefront.services.wallet_service import apply_delta
from storefront.utils import escape_like
import logging
import uuid

logger = logging.getLogger(__name__)

TAX_RATE = Decimal('0.08')
FREE_SHIPPING_THRESHOLD = Decimal('50')
FLAT_SHIPPING_FEE = Decimal('10')

# (request key, Order column suffix)
SHIPPING_ADDRESS_FIELDS = (
    ('name', 'name'),
    ('address', 'address'),
    ('city', 'city'),
    ('postalCode', 'postal_code'),
    ('phone', 'phone'),
)


@dataclass(frozen=True)
class OrderTotals:
    subtotal: Decimal
    tax: Decimal
    shipping: Decimal
    total: Decimal


def calculate_shipping(subtotal):
    if subtotal > FREE_SHIPPING_THRESHOLD:
        return Decimal('0')
    return FLAT_SHIPPING_FEE


def calculate_totals(lines):
    """Totals for ``(unit_price, quantity)`` pairs at full precision."""
    subtotal = sum(
        (Decimal(price) * quantity for price, quantity in lines),
        Decimal('0'))
    tax = subtotal * TAX_RATE
    shipping = calculate_shipping(subtotal)
    return OrderTotals(
        subtotal=subtotal,
        tax=tax,
        shipping=shipping,
        total=subtotal + tax + shipping,
    )


def validate_shipping_address(data):
    required = [key for key, _ in SHIPPING_ADDRESS_FIELDS]
    if not isinstance(data, dict) or not data:
        raise ValidationError(
            'Shipping address is required',
            field='shippingAddress',
            required=required)

    address = {}
    missing = []
    for key, column in SHIPPING_ADDRESS_FIELDS:
        value = data.get(key)
        value = '' if value is None else str(value).strip()
        if not value:
            missing.append(key)
        address[column] = value

    if missing:
        raise ValidationError(
            f'Shipping address field {missing[0]} is required',
            field=missing[0],
            missing=missing,
            required=required)
    return address


def generate_order_number():
    return (
        f'ORD-{datetime.utcnow():%Y%m%d}-'
        f'{uuid.uuid4().hex[:8].upper()}'
    )


def _lock_products(product_ids):
    rows = Product.query.filter(
        Product.id.in_(product_ids)
    ).order_by(Product.id).with_for_update().populate_existing().all()
    return {p.id: p for p in rows}


def _decrement_stock(product, quantity):
    result = db.session.execute(
        update(Product).where(
            Product.id == product.id,
            Product.is_active.is_(True),
            Product.stock >= quantity,
        ).values(
            stock=Product.stock - quantity
        ).execution_options(synchronize_session='fetch'))
    if result.rowcount == 1:
        return

    current = db.session.query(
        Product.stock, Product.is_active
    ).filter(Product.id == product.id).first()
    if current is None or not current.is_active:
        raise ProductUnavailableError(product.name, product_id=product.id)
    raise InsufficientStockError(
        product.name, current.stock, quantity, product_id=product.id)


def place_order(user, shipping_address, cart):
    """Create a wallet-paid order from ``cart`` for ``user``.

    Preconditions are checked in a fixed order, each raising its own
    error: address fields, empty cart, unavailable product, insufficient
    stock, insufficient balance. On success the order, its items, the
    purchase ledger entry, the stock decrements and the emptied cart are
    committed together; on any failure nothing is.
    """
    address = validate_shipping_address(shipping_address)

    lines = cart.read()
    if not lines:
        raise EmptyCartError()

    products = _lock_products([line.product_id for line in lines])

    priced = []
    for line in lines:
        product = products.get(line.product_id)
        if product is None or not product.is_active:
            raise ProductUnavailableError(
                product.name if product else None,
                product_id=line.product_id)
        if product.stock < line.quantity:
            raise InsufficientStockError(
                product.name, product.stock, line.quantity,
                product_id=product.id)
        priced.append((product, line.quantity))

    totals = calculate_totals(
        (product.price, quantity) for product, quantity in priced)

    balance = db.session.query(User.wallet_balance).filter(
        User.id == user.id).with_for_update().scalar()
    if balance is None:
        raise NotFoundError('User not found')
    if balance < totals.total:
        raise InsufficientBalanceError(totals.total, balance)

    try:
        order = Order(
            order_number=generate_order_number(),
            user_id=user.id,
            subtotal=totals.subtotal,
            tax=totals.tax,
            shipping=totals.shipping,
            total=totals.total,
            status=OrderStatus.PENDING,
            payment_method=OrderPaymentMethod.WALLET,
            payment_status=PaymentStatus.PAID,
            shipping_name=address['name'],
            shipping_address=address['address'],
            shipping_city=address['city'],
            shipping_postal_code=address['postal_code'],
            shipping_phone=address['phone'],
        )
        db.session.add(order)
        db.session.flush()

        for product, quantity in priced:
            db.session.add(OrderItem(
                order_id=order.id,
                product_id=product.id,
                unit_price=product.price,
                quantity=quantity,
            ))
            _decrement_stock(product, quantity)

        apply_delta(
            user.id,
            -totals.total,
            TransactionType.PURCHASE,
            f'Order payment - #{order.order_number}')

        cart.clear()
        db.session.commit()
    except BusinessRuleError as e:
        db.session.rollback()
        logger.info("Checkout for user %s lost a race: %s", user.id, e)
        raise
    except SQLAlchemyError:
        db.session.rollback()
        logger.error(
            "Checkout for user %s failed to persist", user.id, exc_info=True)
        raise

    log_audit(
        actor_id=user.id,
        actor_role=user.role.value,
        action='ORDER_CREATE',
        target_type='ORDER',
        target_id=order.id,
        payload={
            'order_number': order.order_number,
            'total': str(totals.total),
            'items': [
                {'product_id': p.id, 'quantity': q} for p, q in priced]})

    return order


def list_user_orders(user_id, page, per_page):
    return Order.query.filter_by(user_id=user_id).order_by(
        Order.created_at.desc(), Order.id.desc()
    ).paginate(page=page, per_page=per_page, error_out=False)


def get_user_order(user_id, order_id):
    order = Order.query.filter_by(id=order_id, user_id=user_id).first()
    if not order:
        raise NotFoundError('Order not found')
    return order


def parse_order_status(value):
    try:
        return OrderStatus(value)
    except ValueError:
        raise ValidationError('Invalid status', field='status')


def search_orders(status=None, search=None):
    query = Order.query
    if status:
        query = query.filter(Order.status == parse_order_status(status))
    if search:
        term = f'%{escape_like(search.strip())}%'
        query = query.filter(or_(
            Order.order_number.ilike(term, escape='\\'),
            Order.shipping_name.ilike(term, escape='\\'),
        ))
    return query.order_by(Order.created_at.desc(), Order.id.desc())


def _optional_text(data, key):
    value = data[key]
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f'{key} must be a string', field=key)
    return value.strip()


def update_order(order_id, data, operator):
    """Operator update of status, tracking number and notes.

    Items and amounts are never touched. Cancelling does not restock or
    refund.
    """
    order = db.session.get(Order, order_id)
    if order is None:
        raise NotFoundError('Order not found')

    old_status = order.status
    if data.get('status'):
        order.status = parse_order_status(data['status'])
    if 'trackingNumber' in data:
        order.tracking_number = _optional_text(data, 'trackingNumber')
    if 'notes' in data:
        order.notes = _optional_text(data, 'notes')

    db.session.commit()

    if order.status == OrderStatus.CANCELLED and old_status != order.status:
        logger.warning(
            "Order %s cancelled by operator %s; stock and wallet debit "
            "are not reversed",
            order.order_number,
            operator.id)

    log_audit(
        actor_id=operator.id,
        actor_role=operator.role.value,
        action='ORDER_STATUS_UPDATE',
        target_type='ORDER',
        target_id=order.id,
        payload={
            'from': old_status.value,
            'to': order.status.value,
            'tracking_number': order.tracking_number,
            'notes': order.notes})
    return order

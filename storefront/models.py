from storefront.extensions import db
from flask_login import UserMixin
from werkzeug.security import generate_password_hash, check_password_hash
from datetime import datetime
from decimal import Decimal
from sqlalchemy import CheckConstraint, UniqueConstraint
import enum
import json


class UserRole(enum.Enum):
    USER = 'USER'
    ADMIN = 'ADMIN'


class OrderStatus(enum.Enum):
    PENDING = 'pending'
    PROCESSING = 'processing'
    SHIPPED = 'shipped'
    DELIVERED = 'delivered'
    CANCELLED = 'cancelled'


class PaymentStatus(enum.Enum):
    PENDING = 'pending'
    PAID = 'paid'


class OrderPaymentMethod(enum.Enum):
    WALLET = 'wallet'


class TransactionType(enum.Enum):
    TOPUP = 'topup'
    PURCHASE = 'purchase'


class TransactionStatus(enum.Enum):
    PENDING = 'pending'
    COMPLETED = 'completed'
    FAILED = 'failed'


class TopupStatus(enum.Enum):
    PENDING = 'pending'
    APPROVED = 'approved'
    REJECTED = 'rejected'


class TopupPaymentMethod(enum.Enum):
    BANK_TRANSFER = 'bank_transfer'
    CREDIT_CARD = 'credit_card'
    PAYPAL = 'paypal'


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


# Money columns. Prices keep two places; computed amounts (tax, totals,
# ledger entries) keep four so full-precision results survive storage.
Price = db.Numeric(10, 2, asdecimal=True)
Money = db.Numeric(14, 4, asdecimal=True)


class User(UserMixin, db.Model):
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(120), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    role = db.Column(
        db.Enum(UserRole),
        nullable=False,
        default=UserRole.USER)
    address = db.Column(db.Text, nullable=True)
    phone = db.Column(db.String(30), nullable=True)
    # Cached running total of wallet_transactions.amount for this user.
    wallet_balance = db.Column(Money, nullable=False, default=Decimal('0'))
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(
        db.DateTime,
        default=datetime.utcnow,
        nullable=False)
    last_login_at = db.Column(db.DateTime, nullable=True)

    # Relationships
    cart = db.relationship(
        'Cart',
        backref='user',
        uselist=False,
        cascade='all, delete-orphan')
    orders = db.relationship('Order', backref='user', lazy='dynamic')
    wallet_transactions = db.relationship(
        'WalletTransaction',
        backref='user',
        lazy='dynamic',
        order_by='WalletTransaction.id')

    __table_args__ = (
        CheckConstraint(
            'wallet_balance >= 0',
            name='check_wallet_balance_non_negative'),
    )

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        return check_password_hash(self.password_hash, password)

    @property
    def is_admin(self):
        return self.role == UserRole.ADMIN

    def __repr__(self):
        return f'<User {self.email}>'


class Product(db.Model):
    __tablename__ = 'products'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False, index=True)
    description = db.Column(db.Text, nullable=False, default='')
    price = db.Column(Price, nullable=False)
    category = db.Column(db.String(100), nullable=False, index=True)
    stock = db.Column(db.Integer, nullable=False, default=0)
    image = db.Column(db.String(500), nullable=True)
    # Soft delete
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(
        db.DateTime,
        default=datetime.utcnow,
        nullable=False)
    updated_at = db.Column(
        db.DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False)

    cart_items = db.relationship(
        'CartItem',
        backref='product',
        lazy='dynamic',
        cascade='all, delete-orphan')
    order_items = db.relationship(
        'OrderItem',
        backref='product',
        lazy='dynamic')

    __table_args__ = (
        CheckConstraint('stock >= 0', name='check_stock_non_negative'),
        CheckConstraint('price >= 0', name='check_price_non_negative'),
    )

    def __repr__(self):
        return f'<Product {self.name}>'


class Cart(db.Model):
    __tablename__ = 'carts'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(
        db.Integer,
        db.ForeignKey(
            'users.id',
            ondelete='CASCADE'),
        unique=True,
        nullable=False)
    updated_at = db.Column(
        db.DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False)

    items = db.relationship(
        'CartItem',
        backref='cart',
        lazy='dynamic',
        cascade='all, delete-orphan')

    def __repr__(self):
        return f'<Cart {self.id} for user {self.user_id}>'


class CartItem(db.Model):
    __tablename__ = 'cart_items'

    cart_id = db.Column(
        db.Integer,
        db.ForeignKey(
            'carts.id',
            ondelete='CASCADE'),
        primary_key=True)
    product_id = db.Column(
        db.Integer,
        db.ForeignKey(
            'products.id',
            ondelete='CASCADE'),
        primary_key=True)
    quantity = db.Column(db.Integer, nullable=False, default=1)
    added_at = db.Column(
        db.DateTime,
        default=datetime.utcnow,
        nullable=False)

    __table_args__ = (
        CheckConstraint('quantity > 0', name='check_quantity_positive'),
    )

    def __repr__(self):
        return (
            f"<CartItem cart={self.cart_id} product={self.product_id} "
            f"qty={self.quantity}>"
        )


class WalletTransaction(db.Model):
    __tablename__ = 'wallet_transactions'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(
        db.Integer,
        db.ForeignKey(
            'users.id',
            ondelete='CASCADE'),
        nullable=False,
        index=True)
    type = db.Column(
        db.Enum(
            TransactionType,
            values_callable=_enum_values),
        nullable=False)
    # Signed: purchases are negative, top-ups positive.
    amount = db.Column(Money, nullable=False)
    description = db.Column(db.String(255), nullable=False)
    status = db.Column(
        db.Enum(
            TransactionStatus,
            values_callable=_enum_values),
        default=TransactionStatus.COMPLETED,
        nullable=False)
    created_at = db.Column(
        db.DateTime,
        default=datetime.utcnow,
        nullable=False,
        index=True)

    def __repr__(self):
        return (
            f'<WalletTransaction {self.id} type={self.type} '
            f'amount={self.amount}>'
        )


class TopupRequest(db.Model):
    __tablename__ = 'topup_requests'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(
        db.Integer,
        db.ForeignKey(
            'users.id',
            ondelete='CASCADE'),
        nullable=False,
        index=True)
    amount = db.Column(Price, nullable=False)
    payment_method = db.Column(
        db.Enum(
            TopupPaymentMethod,
            values_callable=_enum_values),
        nullable=False)
    payment_proof = db.Column(db.Text, nullable=False)
    status = db.Column(
        db.Enum(
            TopupStatus,
            values_callable=_enum_values),
        default=TopupStatus.PENDING,
        nullable=False,
        index=True)
    admin_notes = db.Column(db.Text, nullable=False, default='')
    processed_by = db.Column(
        db.Integer,
        db.ForeignKey('users.id'),
        nullable=True)
    processed_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(
        db.DateTime,
        default=datetime.utcnow,
        nullable=False)
    updated_at = db.Column(
        db.DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False)

    user = db.relationship(
        'User',
        foreign_keys=[user_id],
        backref=db.backref('topup_requests', lazy='dynamic'))
    processor = db.relationship('User', foreign_keys=[processed_by])

    __table_args__ = (
        CheckConstraint('amount > 0', name='check_topup_amount_positive'),
    )

    def __repr__(self):
        return f'<TopupRequest {self.id} status={self.status}>'


class Order(db.Model):
    __tablename__ = 'orders'

    id = db.Column(db.Integer, primary_key=True)
    order_number = db.Column(
        db.String(32),
        unique=True,
        nullable=False,
        index=True)
    user_id = db.Column(
        db.Integer,
        db.ForeignKey(
            'users.id',
            ondelete='CASCADE'),
        nullable=False,
        index=True)
    subtotal = db.Column(Money, nullable=False)
    tax = db.Column(Money, nullable=False)
    shipping = db.Column(Money, nullable=False)
    total = db.Column(Money, nullable=False)
    status = db.Column(
        db.Enum(
            OrderStatus,
            values_callable=_enum_values),
        default=OrderStatus.PENDING,
        nullable=False,
        index=True)
    payment_method = db.Column(
        db.Enum(
            OrderPaymentMethod,
            values_callable=_enum_values),
        default=OrderPaymentMethod.WALLET,
        nullable=False)
    payment_status = db.Column(
        db.Enum(
            PaymentStatus,
            values_callable=_enum_values),
        default=PaymentStatus.PENDING,
        nullable=False)

    # Shipping address snapshot
    shipping_name = db.Column(db.String(100), nullable=False)
    shipping_address = db.Column(db.Text, nullable=False)
    shipping_city = db.Column(db.String(100), nullable=False)
    shipping_postal_code = db.Column(db.String(20), nullable=False)
    shipping_phone = db.Column(db.String(30), nullable=False)

    tracking_number = db.Column(db.String(100), nullable=True)
    notes = db.Column(db.Text, nullable=True)
    created_at = db.Column(
        db.DateTime,
        default=datetime.utcnow,
        nullable=False,
        index=True)
    updated_at = db.Column(
        db.DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False)

    items = db.relationship(
        'OrderItem',
        backref='order',
        order_by='OrderItem.id',
        cascade='all, delete-orphan')

    def __repr__(self):
        return f'<Order {self.order_number} status={self.status}>'


class OrderItem(db.Model):
    __tablename__ = 'order_items'

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(
        db.Integer,
        db.ForeignKey(
            'orders.id',
            ondelete='CASCADE'),
        nullable=False,
        index=True)
    product_id = db.Column(
        db.Integer,
        db.ForeignKey('products.id'),
        nullable=False,
        index=True)
    # Order snapshot price.
    unit_price = db.Column(Price, nullable=False)
    quantity = db.Column(db.Integer, nullable=False)

    __table_args__ = (
        CheckConstraint('quantity > 0', name='check_order_quantity_positive'),
        UniqueConstraint(
            'order_id',
            'product_id',
            name='uq_order_item_product'),
    )

    def __repr__(self):
        return (
            f"<OrderItem {self.id} order={self.order_id} "
            f"product={self.product_id}>"
        )


class AuditLog(db.Model):
    __tablename__ = 'audit_logs'

    id = db.Column(db.Integer, primary_key=True)
    actor_id = db.Column(
        db.Integer,
        db.ForeignKey(
            'users.id',
            ondelete='SET NULL'),
        nullable=True)
    actor_role = db.Column(db.String(20), nullable=False)
    # e.g., ORDER_CREATE, TOPUP_APPROVED
    action = db.Column(db.String(100), nullable=False)
    # ORDER, TOPUP_REQUEST, PRODUCT, etc.
    target_type = db.Column(db.String(50), nullable=True)
    target_id = db.Column(db.Integer, nullable=True)
    ip = db.Column(db.String(45), nullable=True)
    user_agent = db.Column(db.String(500), nullable=True)
    # JSON format key field snapshot
    payload_json = db.Column(db.Text, nullable=True)
    created_at = db.Column(
        db.DateTime,
        default=datetime.utcnow,
        nullable=False,
        index=True)

    actor = db.relationship('User', foreign_keys=[actor_id])

    def set_payload(self, data):
        self.payload_json = json.dumps(data, ensure_ascii=False, default=str)

    def get_payload(self):
        if self.payload_json:
            return json.loads(self.payload_json)
        return {}

    def __repr__(self):
        return f'<AuditLog {self.id} action={self.action}>'

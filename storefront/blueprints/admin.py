from flask import Blueprint, request, jsonify
from flask_login import login_required, current_user
from sqlalchemy import extract, func, or_
from storefront.extensions import db
from storefront.models import Order, Product, User, UserRole
from storefront.middleware import role_required
from storefront.serializers import (
    order_payload,
    pagination_payload,
    product_payload,
    user_payload,
)
from storefront.services import catalog_service, order_service
from storefront.services.audit_service import log_audit
from storefront.utils import get_json_body, get_page_args, money
import logging

logger = logging.getLogger(__name__)

bp = Blueprint('admin', __name__)

RECENT_ORDERS_LIMIT = 10
MONTHLY_SALES_MONTHS = 12


def _monthly_sales():
    year = extract('year', Order.created_at)
    month = extract('month', Order.created_at)
    rows = db.session.query(
        year.label('year'),
        month.label('month'),
        func.sum(Order.total).label('total'),
        func.count(Order.id).label('count'),
    ).group_by(year, month).order_by(
        year.desc(), month.desc()
    ).limit(MONTHLY_SALES_MONTHS).all()

    return [{
        'year': int(r.year),
        'month': int(r.month),
        'total': money(r.total),
        'count': r.count,
    } for r in reversed(rows)]


@bp.route('/admin/stats', methods=['GET'])
@login_required
@role_required('ADMIN')
def dashboard():
    revenue = db.session.query(
        func.coalesce(func.sum(Order.total), 0)).scalar()
    recent_orders = Order.query.order_by(
        Order.created_at.desc(), Order.id.desc()
    ).limit(RECENT_ORDERS_LIMIT).all()

    return jsonify({
        'stats': {
            'totalUsers': User.query.filter_by(role=UserRole.USER).count(),
            'totalProducts': Product.query.filter_by(
                is_active=True).count(),
            'totalOrders': Order.query.count(),
            'totalRevenue': money(revenue),
        },
        'recentOrders': [
            order_payload(o, include_user=True) for o in recent_orders],
        'monthlySales': _monthly_sales(),
    })


@bp.route('/admin/users', methods=['GET'])
@login_required
@role_required('ADMIN')
def list_users():
    page, per_page = get_page_args()
    search = (request.args.get('search') or '').strip()

    query = User.query
    if search:
        term = f'%{search}%'
        query = query.filter(or_(User.name.ilike(term), User.email.ilike(term)))

    users = query.order_by(User.created_at.desc(), User.id.desc()).paginate(
        page=page, per_page=per_page, error_out=False
    )
    return jsonify({
        'users': [user_payload(u) for u in users.items],
        'pagination': pagination_payload(users),
    })


@bp.route('/admin/users/<int:user_id>/role', methods=['PUT'])
@login_required
@role_required('ADMIN')
def update_user_role(user_id):
    user = db.get_or_404(User, user_id)
    data = get_json_body()
    role_raw = (data.get('role') or '').strip().upper()

    try:
        new_role = UserRole[role_raw]
    except KeyError:
        return jsonify({'error': 'Invalid role'}), 400

    old_role = user.role
    user.role = new_role
    db.session.commit()

    log_audit(
        actor_id=current_user.id,
        actor_role=current_user.role.value,
        action='ADMIN_USER_ROLE_UPDATE',
        target_type='USER',
        target_id=user.id,
        payload={'from': old_role.value, 'to': new_role.value}
    )

    return jsonify({
        'message': 'User role updated successfully',
        'user': user_payload(user),
    })


@bp.route('/admin/orders', methods=['GET'])
@login_required
@role_required('ADMIN')
def admin_orders():
    page, per_page = get_page_args()
    query = order_service.search_orders(
        status=(request.args.get('status') or '').strip().lower() or None,
        search=request.args.get('search'),
    )
    orders = query.paginate(page=page, per_page=per_page, error_out=False)

    return jsonify({
        'orders': [order_payload(o, include_user=True) for o in orders.items],
        'pagination': pagination_payload(orders),
    })


@bp.route('/admin/orders/<int:order_id>', methods=['PUT'])
@login_required
@role_required('ADMIN')
def update_order(order_id):
    data = get_json_body()
    order = order_service.update_order(order_id, data, current_user)
    return jsonify({
        'message': 'Order updated successfully',
        'order': order_payload(order, include_user=True),
    })


@bp.route('/admin/products', methods=['GET'])
@login_required
@role_required('ADMIN')
def admin_products():
    page, per_page = get_page_args()
    query = catalog_service.search_products(
        search=request.args.get('search'),
        category=request.args.get('category'),
        include_inactive=True,
    )
    products = query.paginate(page=page, per_page=per_page, error_out=False)

    return jsonify({
        'products': [product_payload(p) for p in products.items],
        'pagination': pagination_payload(products),
    })

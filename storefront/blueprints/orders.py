from flask import Blueprint, current_app, jsonify
from flask_login import login_required, current_user
from storefront.serializers import order_payload, pagination_payload
from storefront.services import order_service
from storefront.services.cart_service import ServerCart
from storefront.services.notifications import notify
from storefront.utils import get_json_body, get_page_args
import logging

logger = logging.getLogger(__name__)

bp = Blueprint('orders', __name__)


@bp.route('/orders', methods=['POST'])
@login_required
def create_order():
    data = get_json_body()

    order = order_service.place_order(
        current_user,
        data.get('shippingAddress'),
        ServerCart(current_user.id),
    )
    notice = notify(
        'success',
        'Order created successfully',
        f'Order #{order.order_number} has been placed.')

    return jsonify({
        'message': notice.title,
        'order': order_payload(order),
    }), 201


@bp.route('/orders', methods=['GET'])
@login_required
def order_list():
    page, per_page = get_page_args(current_app.config['ORDERS_PER_PAGE'])
    orders = order_service.list_user_orders(current_user.id, page, per_page)

    return jsonify({
        'orders': [order_payload(o) for o in orders.items],
        'pagination': pagination_payload(orders),
    })


@bp.route('/orders/<int:order_id>', methods=['GET'])
@login_required
def order_detail(order_id):
    order = order_service.get_user_order(current_user.id, order_id)
    return jsonify({'order': order_payload(order)})

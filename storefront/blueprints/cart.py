from flask import Blueprint, jsonify
from storefront.extensions import db
from storefront.serializers import cart_payload
from storefront.services.cart_service import (
    get_cart_store,
    parse_product_id,
    parse_quantity,
)
from storefront.utils import get_json_body
import logging

logger = logging.getLogger(__name__)

bp = Blueprint('cart', __name__)


def _cart_response(cart, status=200):
    return jsonify(cart_payload(cart.read())), status


@bp.route('/cart', methods=['GET'])
def get_cart():
    return _cart_response(get_cart_store())


@bp.route('/cart/add', methods=['POST'])
def add_cart_item():
    data = get_json_body()
    product_id = parse_product_id(data.get('productId'))
    quantity = parse_quantity(data.get('quantity'), default=1)

    cart = get_cart_store()
    cart.add(product_id, quantity)
    db.session.commit()

    return _cart_response(cart, 201)


@bp.route('/cart/update', methods=['PUT'])
def update_cart_item():
    data = get_json_body()
    product_id = parse_product_id(data.get('productId'))
    quantity = parse_quantity(data.get('quantity'))

    cart = get_cart_store()
    cart.update(product_id, quantity)
    db.session.commit()

    return _cart_response(cart)


@bp.route('/cart/remove/<int:product_id>', methods=['DELETE'])
def delete_cart_item(product_id):
    cart = get_cart_store()
    cart.remove(product_id)
    db.session.commit()

    return _cart_response(cart)


@bp.route('/cart', methods=['DELETE'])
def clear_cart():
    cart = get_cart_store()
    cart.clear()
    db.session.commit()

    return _cart_response(cart)

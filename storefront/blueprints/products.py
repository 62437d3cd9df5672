from flask import Blueprint, current_app, request, jsonify
from flask_login import login_required
from storefront.middleware import role_required
from storefront.serializers import pagination_payload, product_payload
from storefront.services import catalog_service
from storefront.utils import get_json_body, get_page_args
import logging

logger = logging.getLogger(__name__)

bp = Blueprint('products', __name__)


@bp.route('/products', methods=['GET'])
def product_list():
    page, per_page = get_page_args(
        current_app.config['PRODUCTS_PER_PAGE'])
    query = catalog_service.search_products(
        search=request.args.get('search'),
        category=request.args.get('category'),
        min_price=request.args.get('minPrice'),
        max_price=request.args.get('maxPrice'),
        sort_by=request.args.get('sortBy', 'createdAt'),
        sort_order=request.args.get('sortOrder', 'desc'),
    )
    result = query.paginate(page=page, per_page=per_page, error_out=False)

    return jsonify({
        'products': [product_payload(p) for p in result.items],
        'pagination': pagination_payload(result),
    })


@bp.route('/products/categories', methods=['GET'])
def category_list():
    return jsonify(catalog_service.list_categories())


@bp.route('/products/<int:product_id>', methods=['GET'])
def product_detail(product_id):
    product = catalog_service.get_active_product(product_id)
    return jsonify(product_payload(product))


@bp.route('/products', methods=['POST'])
@login_required
@role_required('ADMIN')
def create_product():
    data = get_json_body()
    product = catalog_service.create_product(data)
    return jsonify({
        'message': 'Product created successfully',
        'product': product_payload(product),
    }), 201


@bp.route('/products/<int:product_id>', methods=['PUT'])
@login_required
@role_required('ADMIN')
def update_product(product_id):
    data = get_json_body()
    product = catalog_service.update_product(product_id, data)
    return jsonify({
        'message': 'Product updated successfully',
        'product': product_payload(product),
    })


@bp.route('/products/<int:product_id>', methods=['DELETE'])
@login_required
@role_required('ADMIN')
def delete_product(product_id):
    catalog_service.deactivate_product(product_id)
    return jsonify({'message': 'Product deleted successfully'})

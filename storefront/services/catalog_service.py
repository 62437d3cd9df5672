from storefront.extensions import db
from storefront.errors import NotFoundError, ValidationError
from storefront.models import Product
from storefront.utils import escape_like, to_decimal, to_int
from sqlalchemy import or_
import re
import logging

logger = logging.getLogger(__name__)

SORT_COLUMNS = {
    'createdAt': Product.created_at,
    'price': Product.price,
    'name': Product.name,
    'stock': Product.stock,
}

PRODUCT_TEXT_FIELDS = ('name', 'description', 'category')


def _sanitize_query(query):
    if not query:
        return None
    q = str(query).replace('\x00', '').strip()
    if not q:
        return None
    q = re.sub(r'\s+', ' ', q)
    return q[:80]


def search_products(
        search=None,
        category=None,
        min_price=None,
        max_price=None,
        sort_by='createdAt',
        sort_order='desc',
        include_inactive=False):
    """Build the catalog query; customers only ever see active products."""
    query = Product.query
    if not include_inactive:
        query = query.filter(Product.is_active.is_(True))

    term = _sanitize_query(search)
    if term:
        pattern = f'%{escape_like(term)}%'
        query = query.filter(or_(
            Product.name.ilike(pattern, escape='\\'),
            Product.description.ilike(pattern, escape='\\'),
        ))

    category = _sanitize_query(category)
    if category:
        query = query.filter(
            Product.category.ilike(f'%{escape_like(category)}%', escape='\\'))

    low = to_decimal(min_price) if min_price not in (None, '') else None
    high = to_decimal(max_price) if max_price not in (None, '') else None
    if low is not None:
        query = query.filter(Product.price >= low)
    if high is not None:
        query = query.filter(Product.price <= high)

    column = SORT_COLUMNS.get(sort_by, Product.created_at)
    ordering = column.asc() if sort_order == 'asc' else column.desc()
    return query.order_by(ordering, Product.id.desc())


def list_categories():
    rows = db.session.query(Product.category).filter(
        Product.is_active.is_(True)
    ).distinct().order_by(Product.category).all()
    return [row.category for row in rows]


def get_active_product(product_id):
    product = Product.query.filter_by(id=product_id, is_active=True).first()
    if not product:
        raise NotFoundError('Product not found')
    return product


def get_product(product_id):
    product = db.session.get(Product, product_id)
    if not product:
        raise NotFoundError('Product not found')
    return product


def _validate_product_fields(data, partial):
    errors = []
    values = {}

    for key in PRODUCT_TEXT_FIELDS:
        if key not in data:
            if not partial:
                errors.append({
                    'field': key,
                    'message': f'Product {key} is required'})
            continue
        value = data.get(key)
        value = value.strip() if isinstance(value, str) else ''
        if not value:
            errors.append({
                'field': key,
                'message': f'Product {key} cannot be empty'})
        else:
            values[key] = value

    if 'price' in data or not partial:
        price = to_decimal(data.get('price'))
        if price is None:
            errors.append({'field': 'price',
                           'message': 'Price must be a number'})
        elif price < 0:
            errors.append({'field': 'price',
                           'message': 'Price must not be negative'})
        else:
            values['price'] = price

    if 'stock' in data or not partial:
        stock = to_int(data.get('stock'))
        if stock is None or stock < 0:
            errors.append({
                'field': 'stock',
                'message': 'Stock must be a non-negative integer'})
        else:
            values['stock'] = stock

    if 'image' in data:
        image = data.get('image')
        values['image'] = image.strip() if isinstance(image, str) else None

    if 'isActive' in data:
        if not isinstance(data['isActive'], bool):
            errors.append({'field': 'isActive',
                           'message': 'isActive must be a boolean'})
        else:
            values['is_active'] = data['isActive']

    if errors:
        raise ValidationError('Validation failed', errors=errors)
    return values


def create_product(data):
    values = _validate_product_fields(data, partial=False)
    product = Product(**values)
    db.session.add(product)
    db.session.commit()
    logger.info("Product %s created: %s", product.id, product.name)
    return product


def update_product(product_id, data):
    product = get_product(product_id)
    values = _validate_product_fields(data, partial=True)
    for key, value in values.items():
        setattr(product, key, value)
    db.session.commit()
    logger.info(
        "Product %s updated: %s", product.id, sorted(values.keys()))
    return product


def deactivate_product(product_id):
    product = get_product(product_id)
    product.is_active = False
    db.session.commit()
    logger.info("Product %s deactivated", product.id)
    return product

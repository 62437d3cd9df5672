from flask import jsonify
from werkzeug.exceptions import HTTPException
from storefront.extensions import db
import logging

logger = logging.getLogger(__name__)


class StorefrontError(Exception):
    """Base for errors reported to API callers with a specific reason."""

    status_code = 400

    def __init__(self, message, **details):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self):
        payload = {'error': self.message}
        payload.update(
            {k: v for k, v in self.details.items() if v is not None})
        return payload


class ValidationError(StorefrontError):
    """Missing or malformed input."""

    def __init__(self, message, field=None, errors=None, **details):
        super().__init__(message, field=field, errors=errors, **details)
        self.field = field
        self.errors = errors or []


class NotFoundError(StorefrontError):
    status_code = 404


class BusinessRuleError(StorefrontError):
    """Valid input that the current state of the store refuses."""


class EmptyCartError(BusinessRuleError):
    def __init__(self):
        super().__init__('Cart is empty')


class ProductUnavailableError(BusinessRuleError):
    def __init__(self, product_name=None, product_id=None):
        super().__init__(
            f'Product {product_name or "Unknown"} is no longer available',
            product_id=product_id)


class InsufficientStockError(BusinessRuleError):
    def __init__(self, product_name, available, requested, product_id=None):
        super().__init__(
            f'Insufficient stock for {product_name}. '
            f'Available: {available}, Requested: {requested}',
            product_id=product_id,
            available=available,
            requested=requested)
        self.product_name = product_name
        self.available = available
        self.requested = requested


class InsufficientBalanceError(BusinessRuleError):
    def __init__(self, required, available):
        super().__init__(
            f'Insufficient wallet balance. '
            f'Required: ${required:.2f}, Available: ${available:.2f}',
            required=float(required),
            available=float(available))
        self.required = required
        self.available = available


class AlreadyProcessedError(BusinessRuleError):
    def __init__(self):
        super().__init__('Request has already been processed')


def register_error_handlers(app):

    @app.errorhandler(StorefrontError)
    def handle_storefront_error(error):
        db.session.rollback()
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        return jsonify({'error': error.description}), error.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(error):
        db.session.rollback()
        logger.error("Unhandled error: %s", error, exc_info=True)
        payload = {'error': 'Server error'}
        if app.debug:
            payload['detail'] = str(error)
        return jsonify(payload), 500

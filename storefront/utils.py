from decimal import Decimal, InvalidOperation
from flask import current_app, request
from storefront.errors import ValidationError
import logging

logger = logging.getLogger(__name__)


def get_page_args(default_per_page=None):
    """Read ``page``/``limit`` query args, clamped to sane bounds."""
    if default_per_page is None:
        default_per_page = current_app.config['ITEMS_PER_PAGE']
    max_per_page = current_app.config.get('MAX_PER_PAGE', 100)

    page = request.args.get('page', 1, type=int) or 1
    per_page = request.args.get('limit', default_per_page, type=int)
    if not per_page or per_page < 1:
        per_page = default_per_page
    return max(1, page), min(per_page, max_per_page)


def get_json_body():
    """Request JSON as a dict; an empty or unparseable body reads as ``{}``."""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError('Request body must be a JSON object')
    return data


def to_decimal(value):
    """Parse a JSON number or numeric string; None when not a number."""
    if value is None or isinstance(value, bool):
        return None
    try:
        result = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not result.is_finite():
        return None
    return result


def to_int(value):
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def money(value):
    """JSON representation of a stored decimal amount."""
    if value is None:
        return None
    return float(value)


def isoformat(dt):
    return dt.isoformat() if dt else None


def escape_like(term):
    return (
        term.replace('\\', '\\\\').replace('%', '\\%').replace('_', '\\_')
    )

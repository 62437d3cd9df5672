from flask import Blueprint, jsonify
from flask_login import (
    login_user,
    logout_user,
    login_required,
    current_user,
)
from storefront.extensions import db
from storefront.models import User, UserRole
from storefront.serializers import user_payload
from storefront.services.audit_service import log_audit
from storefront.utils import get_json_body
from datetime import datetime
import logging
import re

logger = logging.getLogger(__name__)

bp = Blueprint('auth', __name__)

EMAIL_RE = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')
PROFILE_FIELDS = ('name', 'address', 'phone')


@bp.route('/auth/register', methods=['POST'])
def register():
    data = get_json_body()
    name = (data.get('name') or '').strip()
    email = (data.get('email') or '').strip().lower()
    password = data.get('password') or ''

    if not name:
        return jsonify({'error': 'Name cannot be empty'}), 400
    if not EMAIL_RE.match(email):
        return jsonify({'error': 'Invalid email address'}), 400
    if len(password) < 6:
        return jsonify(
            {'error': 'Password must be at least 6 characters'}), 400

    if User.query.filter_by(email=email).first():
        return jsonify({'error': 'Email already registered'}), 400

    user = User(name=name, email=email, role=UserRole.USER)
    user.set_password(password)
    db.session.add(user)
    db.session.commit()

    login_user(user)

    log_audit(
        actor_id=user.id,
        actor_role=user.role.value,
        action='REGISTER',
        target_type='USER',
        target_id=user.id,
    )

    return jsonify({'ok': True, 'user': user_payload(user)}), 201


@bp.route('/auth/login', methods=['POST'])
def login():
    data = get_json_body()
    email = (data.get('email') or '').strip().lower()
    password = data.get('password') or ''

    if not email or not password:
        return jsonify({'error': 'Email and password cannot be empty'}), 400

    user = User.query.filter_by(email=email).first()

    if user and user.check_password(password) and user.is_active:
        login_user(user, remember=True)
        user.last_login_at = datetime.utcnow()
        db.session.commit()

        log_audit(
            actor_id=user.id,
            actor_role=user.role.value,
            action='LOGIN_SUCCESS',
            target_type='USER',
            target_id=user.id,
            payload={'event': 'login_success'}
        )
        return jsonify({'ok': True, 'user': user_payload(user)})

    log_audit(
        actor_id=None,
        actor_role='ANONYMOUS',
        action='LOGIN_FAILED',
        target_type='USER',
        target_id=None,
        payload={
            'reason': 'invalid_credentials' if user else 'user_not_found'})
    return jsonify({'error': 'Invalid email or password'}), 401


@bp.route('/auth/logout', methods=['POST'])
@login_required
def logout():
    log_audit(
        actor_id=current_user.id,
        actor_role=current_user.role.value,
        action='LOGOUT',
        target_type='USER',
        target_id=current_user.id,
    )
    logout_user()
    return jsonify({'ok': True})


@bp.route('/auth/profile', methods=['GET'])
@login_required
def get_profile():
    return jsonify(user_payload(current_user))


@bp.route('/auth/profile', methods=['PUT'])
@login_required
def update_profile():
    data = get_json_body()

    for field in PROFILE_FIELDS:
        if field not in data:
            continue
        value = data.get(field)
        if value is not None and not isinstance(value, str):
            return jsonify({'error': f'{field} must be a string'}), 400
        value = (value or '').strip()
        if field == 'name' and not value:
            return jsonify({'error': 'Name cannot be empty'}), 400
        setattr(current_user, field, value or None)

    db.session.commit()
    return jsonify({'ok': True, 'user': user_payload(current_user)})

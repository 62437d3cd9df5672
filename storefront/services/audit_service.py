from storefront.extensions import db
from storefront.models import AuditLog
from flask import has_request_context, request
from sqlalchemy.exc import SQLAlchemyError
import logging
import json

logger = logging.getLogger(__name__)
major_logger = logging.getLogger('major_events')

MAJOR_ACTION_PREFIXES = (
    'LOGIN',
    'LOGOUT',
    'REGISTER',
    'ORDER_',
    'TOPUP_',
)


def setup_major_events_log(path):
    if major_logger.handlers or not path:
        return
    handler = logging.FileHandler(path)
    formatter = logging.Formatter(
        '%(asctime)s - %(levelname)s - %(message)s')
    handler.setFormatter(formatter)
    major_logger.addHandler(handler)
    major_logger.setLevel(logging.INFO)
    major_logger.propagate = False


def _should_log_major(action: str) -> bool:
    if not action:
        return False
    return action.startswith(MAJOR_ACTION_PREFIXES)


def _brief(payload):
    if payload is None:
        return None
    text = json.dumps(
        payload, ensure_ascii=False, separators=(',', ':'), default=str)
    if len(text) > 600:
        text = text[:600] + '...'
    return text


def log_audit(
        actor_id=None,
        actor_role='ANONYMOUS',
        action='',
        target_type=None,
        target_id=None,
        payload=None):
    """Persist an audit row and echo a short line to the app log.

    Runs after the audited unit of work has committed; a failure here is
    logged and rolled back without touching the caller's result.
    """
    path = None
    method = None
    ip = None
    user_agent = None
    if has_request_context():
        path = request.path
        method = request.method
        ip = request.remote_addr
        user_agent = request.headers.get('User-Agent')

    try:
        audit = AuditLog(
            actor_id=actor_id,
            actor_role=actor_role,
            action=action,
            target_type=target_type,
            target_id=target_id,
            ip=ip,
            user_agent=user_agent
        )

        if payload:
            audit.set_payload(payload)

        db.session.add(audit)
        db.session.commit()
    except SQLAlchemyError as e:
        logger.error(f"Failed to log audit: {e}", exc_info=True)
        db.session.rollback()
        return

    payload_brief = _brief(payload)
    logger.info(
        "AUDIT action=%s actor_role=%s actor_id=%s target_type=%s "
        "target_id=%s method=%s path=%s payload=%s",
        action,
        actor_role,
        actor_id,
        target_type,
        target_id,
        method,
        path,
        payload_brief,
    )

    if _should_log_major(action):
        major_logger.info(
            "action=%s actor_role=%s actor_id=%s target_type=%s "
            "target_id=%s method=%s path=%s payload=%s",
            action,
            actor_role,
            actor_id,
            target_type,
            target_id,
            method,
            path,
            payload_brief,
        )
